from __future__ import annotations

import argparse
import asyncio
import logging
from typing import Iterable

import cv2
import numpy as np

from polydet_kit import PolygonRenderer, load_pipeline, load_pipeline_config
from polydet_kit.config import PipelineConfig


logger = logging.getLogger("run_detect")


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run a YOLO (axis-aligned or OBB) model and draw polygons.")
    parser.add_argument("--model", required=True, help="Path to .onnx / .torchscript model")
    parser.add_argument("--labels", required=True, help="labels.json or names: file")
    parser.add_argument("--obb", action="store_true", help="Model is an oriented (OBB) export")
    parser.add_argument("--config", default=None, help="Optional pipeline config JSON")
    src = parser.add_mutually_exclusive_group(required=True)
    src.add_argument("--image", default=None)
    src.add_argument("--video", default=None)
    src.add_argument("--webcam", type=int, default=None)
    parser.add_argument("--every", type=int, default=1, help="Process every Nth frame")
    parser.add_argument("--no-show", action="store_true")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser.parse_args()


def _iter_frames(args: argparse.Namespace) -> Iterable[np.ndarray]:
    if args.image is not None:
        img = cv2.imread(args.image)
        if img is None:
            raise FileNotFoundError(f"Could not read image at path: {args.image}")
        yield img
        return

    if args.video is not None:
        cap = cv2.VideoCapture(args.video)
        if not cap.isOpened():
            raise FileNotFoundError(f"Could not open video: {args.video}")
    else:
        cap = cv2.VideoCapture(int(args.webcam))
        if not cap.isOpened():
            raise RuntimeError(f"Could not open webcam index: {args.webcam}")

    frame_idx = 0
    try:
        while True:
            ok, frame = cap.read()
            if not ok or frame is None:
                break
            frame_idx += 1
            if (frame_idx - 1) % max(int(args.every), 1) != 0:
                continue
            yield frame
    finally:
        cap.release()


async def _run(args: argparse.Namespace) -> None:
    cfg = load_pipeline_config(args.config) if args.config else PipelineConfig()
    pipeline = load_pipeline(args.model, args.labels, config=cfg)
    wait_ms = 0 if args.image is not None else 1

    for frame in _iter_frames(args):
        # Models are trained on RGB; OpenCV hands us BGR.
        rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        canvas = frame.copy()
        renderer = PolygonRenderer(canvas, pipeline.labels, apply_ratios=not args.obb)

        if args.obb:
            boxes, scores, classes = await pipeline.detect_obb(rgb, renderer)
            for box, score, cls_id in zip(boxes, scores, classes):
                print(pipeline.labels[int(cls_id)], f"{float(score):.3f}", np.round(box, 2).tolist())
        else:
            result = await pipeline.detect(rgb, renderer)
            for i, poly in enumerate(result.source_polygons()):
                print(result.label_for(i), f"{float(result.scores[i]):.3f}", np.round(poly, 1).tolist())

        if not args.no_show:
            cv2.imshow("detections", canvas)
            if cv2.waitKey(wait_ms) & 0xFF == ord("q"):
                break

    if not args.no_show:
        cv2.destroyAllWindows()


def main() -> None:
    args = _parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    asyncio.run(_run(args))


if __name__ == "__main__":
    main()
