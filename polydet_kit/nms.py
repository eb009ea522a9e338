import asyncio
from concurrent.futures import Executor
from dataclasses import dataclass
from functools import partial
from typing import Optional

import numpy as np


@dataclass(frozen=True)
class NMSConfig:
    max_output_size: int = 500
    iou_threshold: float = 0.45
    score_threshold: float = 0.2


def nms(boxes: np.ndarray, scores: np.ndarray, cfg: NMSConfig = NMSConfig()) -> np.ndarray:
    """
    Greedy NumPy NMS. Expects boxes shape (N, 4) as [y1, x1, y2, x2] and scores shape (N,).

    Boxes scoring below `score_threshold` are dropped up front. A box is
    suppressed only when its IoU with an already selected box is strictly
    greater than `iou_threshold`. Returns kept indices, highest score first.
    """

    boxes = np.asarray(boxes, dtype=np.float64)
    scores = np.asarray(scores, dtype=np.float64).reshape(-1)

    if boxes.size == 0 or scores.size == 0:
        return np.empty((0,), dtype=np.int32)
    if boxes.ndim != 2 or boxes.shape[1] != 4:
        raise ValueError(f"Expected boxes shape (N, 4), got {boxes.shape}")
    if boxes.shape[0] != scores.shape[0]:
        raise ValueError(f"Got {boxes.shape[0]} boxes but {scores.shape[0]} scores")

    # Corners may come in either diagonal order.
    y1 = np.minimum(boxes[:, 0], boxes[:, 2])
    x1 = np.minimum(boxes[:, 1], boxes[:, 3])
    y2 = np.maximum(boxes[:, 0], boxes[:, 2])
    x2 = np.maximum(boxes[:, 1], boxes[:, 3])
    areas = (y2 - y1) * (x2 - x1)

    candidates = np.flatnonzero(scores >= cfg.score_threshold)
    # Stable so equal scores keep index order, run after run.
    order = candidates[np.argsort(-scores[candidates], kind="stable")]
    keep = []

    while order.size > 0 and len(keep) < cfg.max_output_size:
        i = order[0]
        keep.append(i)
        rest = order[1:]

        yy1 = np.maximum(y1[i], y1[rest])
        xx1 = np.maximum(x1[i], x1[rest])
        yy2 = np.minimum(y2[i], y2[rest])
        xx2 = np.minimum(x2[i], x2[rest])

        h = np.maximum(0.0, yy2 - yy1)
        w = np.maximum(0.0, xx2 - xx1)
        inter = h * w
        union = areas[i] + areas[rest] - inter
        iou = np.where(union > 0.0, inter / np.maximum(union, 1e-12), 0.0)

        order = rest[iou <= cfg.iou_threshold]

    return np.array(keep, dtype=np.int32)


async def nms_async(
    boxes: np.ndarray,
    scores: np.ndarray,
    cfg: NMSConfig = NMSConfig(),
    executor: Optional[Executor] = None,
) -> np.ndarray:
    """
    Run `nms` in an executor so a frame loop can keep the event loop free.

    `executor=None` uses the loop's default thread pool.
    """

    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(executor, partial(nms, boxes, scores, cfg))
