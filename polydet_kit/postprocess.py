from enum import IntEnum
from typing import Tuple

import numpy as np

from .errors import ShapeMismatchError
from .geometry import corners_envelope, rotated_corners


class Attr(IntEnum):
    """
    Attribute offsets inside one detection record.

    Class scores occupy [CLASS0, CLASS0 + num_class). Oriented models append
    the rotation (radians) as the last attribute.
    """

    CX = 0
    CY = 1
    W = 2
    H = 3
    CLASS0 = 4


ROTATION = -1


def transpose_output(output: np.ndarray, num_class: int, oriented: bool = False) -> np.ndarray:
    """
    Validate the raw (1, attributes, detections) output and return (1, detections, attributes).
    """

    if num_class < 1:
        raise ValueError(f"num_class must be >= 1, got {num_class}")

    p = np.asarray(output, dtype=np.float32)
    if p.ndim != 3:
        raise ShapeMismatchError(f"Expected output of rank 3 (1, attributes, detections), got shape {p.shape}")
    if p.shape[0] != 1:
        raise ShapeMismatchError(f"Batch > 1 is not supported (got shape {p.shape}). Pass one frame at a time.")

    needed = Attr.CLASS0 + num_class + (1 if oriented else 0)
    if p.shape[1] < needed:
        kind = "oriented" if oriented else "axis-aligned"
        raise ShapeMismatchError(
            f"{kind} output with {num_class} classes needs at least {needed} attributes, got shape {p.shape}"
        )

    return np.transpose(p, (0, 2, 1))


def _class_scores(records: np.ndarray, num_class: int) -> np.ndarray:
    # Index the batch axis only; squeezing would collapse a single-class block.
    return records[0, :, Attr.CLASS0 : Attr.CLASS0 + num_class]


def decode(output: np.ndarray, num_class: int) -> Tuple[np.ndarray, np.ndarray]:
    """
    Decode an axis-aligned model output.

    Returns:
        boxes: (N, 4) as [y1, x1, y2, x2] in model space
        raw_scores: (N, num_class)
    """

    records = transpose_output(output, num_class)
    rec = records[0]

    w = rec[:, Attr.W]
    h = rec[:, Attr.H]
    x1 = rec[:, Attr.CX] - w / 2
    y1 = rec[:, Attr.CY] - h / 2
    boxes = np.stack([y1, x1, y1 + h, x1 + w], axis=1)

    return boxes, _class_scores(records, num_class)


def decode_oriented(output: np.ndarray, num_class: int) -> Tuple[np.ndarray, np.ndarray]:
    """
    Decode an oriented (OBB) model output.

    Returns:
        boxes: (N, 5) as [cx, cy, w, h, rotation] in model space
        raw_scores: (N, num_class)
    """

    records = transpose_output(output, num_class, oriented=True)
    rec = records[0]
    boxes = np.stack(
        [rec[:, Attr.CX], rec[:, Attr.CY], rec[:, Attr.W], rec[:, Attr.H], rec[:, ROTATION]],
        axis=1,
    )
    return boxes, _class_scores(records, num_class)


def reduce_scores(raw_scores: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Best score and class index per detection; ties go to the lowest class index."""
    raw_scores = np.asarray(raw_scores)
    if raw_scores.ndim != 2:
        raise ShapeMismatchError(f"Expected scores of shape (N, num_class), got {raw_scores.shape}")
    return raw_scores.max(axis=1), raw_scores.argmax(axis=1).astype(np.int32)


def oriented_nms_boxes(boxes: np.ndarray, envelope: bool = False) -> np.ndarray:
    """
    Boxes handed to NMS for oriented detections.

    By default the first four attributes (cx, cy, w, h) are used as-is as the
    [y1, x1, y2, x2] surrogate. With `envelope=True` the axis-aligned hull of
    the rotated rectangle is used instead.
    """

    boxes = np.asarray(boxes).reshape(-1, 5)
    if not envelope:
        return boxes[:, :4]
    corners = rotated_corners(boxes[:, 0], boxes[:, 1], boxes[:, 2], boxes[:, 3], boxes[:, 4])
    return corners_envelope(corners).astype(np.float32)


def boxes_to_polygons(boxes: np.ndarray) -> np.ndarray:
    """
    [y1, x1, y2, x2] boxes -> (N, 4, 2) (y, x) polygons.

    Corner order: (y1, x1), (y1, x2), (y2, x2), (y2, x1). No rescaling.
    """

    boxes = np.asarray(boxes).reshape(-1, 4)
    y1, x1, y2, x2 = boxes.T
    return np.stack(
        [
            np.stack([y1, x1], axis=-1),
            np.stack([y1, x2], axis=-1),
            np.stack([y2, x2], axis=-1),
            np.stack([y2, x1], axis=-1),
        ],
        axis=1,
    )


def oriented_boxes_to_polygons(boxes: np.ndarray, ratios: Tuple[float, float]) -> np.ndarray:
    """
    [cx, cy, w, h, rotation] model-space boxes -> (N, 4, 2) (y, x) polygons in source pixels.
    """

    boxes = np.asarray(boxes, dtype=np.float64).reshape(-1, 5)
    x_ratio, y_ratio = ratios

    corners = rotated_corners(
        boxes[:, 0] * x_ratio,
        boxes[:, 1] * y_ratio,
        boxes[:, 2] * x_ratio,
        boxes[:, 3] * y_ratio,
        boxes[:, 4],
    )
    # (x, y) -> (y, x)
    return corners[..., ::-1].astype(np.float32)
