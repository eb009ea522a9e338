from __future__ import annotations

from typing import Optional, Sequence, Tuple

import numpy as np


def _color_for_class_id(class_id: int) -> Tuple[int, int, int]:
    """
    Deterministic BGR color for a class id (OpenCV expects BGR).
    """

    palette = [
        (255, 56, 56),
        (255, 157, 151),
        (255, 112, 31),
        (255, 178, 29),
        (207, 210, 49),
        (72, 249, 10),
        (146, 204, 23),
        (61, 219, 134),
        (26, 147, 52),
        (0, 212, 187),
        (44, 153, 168),
        (0, 194, 255),
        (52, 69, 147),
        (100, 115, 255),
        (0, 24, 236),
        (132, 56, 255),
        (82, 0, 133),
        (203, 56, 255),
        (255, 149, 200),
        (255, 55, 199),
    ]
    if 0 <= class_id < len(palette):
        return palette[class_id]

    rng = np.random.default_rng(int(class_id))
    bgr = rng.integers(0, 256, size=3, dtype=np.uint8)
    return int(bgr[0]), int(bgr[1]), int(bgr[2])


class PolygonRenderer:
    """
    Polygon sink that draws onto an OpenCV BGR canvas in place.

    Args:
        canvas: (H, W, 3) image the polygons are drawn on (source-image size).
        labels: optional class names indexed by class id.
        apply_ratios: multiply points by the frame ratios. Leave True for
            `DetectionPipeline.detect` (model-space polygons) and set False for
            `detect_obb`, whose polygons are already in source pixels.
    """

    def __init__(
        self,
        canvas: np.ndarray,
        labels: Optional[Sequence[str]] = None,
        *,
        apply_ratios: bool = True,
        show_score: bool = True,
        line_thickness: int = 2,
        font_scale: float = 0.5,
        font_thickness: int = 1,
    ):
        if canvas is None or not hasattr(canvas, "shape"):
            raise TypeError("canvas must be a NumPy array (BGR).")
        if canvas.ndim != 3 or canvas.shape[2] != 3:
            raise ValueError(f"Expected canvas shape (H, W, 3), got {getattr(canvas, 'shape', None)}")

        self.canvas = canvas
        self.labels = list(labels or [])
        self.apply_ratios = apply_ratios
        self.show_score = show_score
        self.line_thickness = line_thickness
        self.font_scale = font_scale
        self.font_thickness = font_thickness

    def _label(self, class_id: int, score: float) -> str:
        label = self.labels[class_id] if 0 <= class_id < len(self.labels) else str(class_id)
        if self.show_score:
            label = f"{label} {score:.2f}"
        return label

    def __call__(
        self,
        polygons: np.ndarray,
        scores: np.ndarray,
        classes: np.ndarray,
        ratios: Tuple[float, float],
    ) -> None:
        try:
            import cv2  # type: ignore
        except Exception as e:  # pragma: no cover
            raise ImportError("OpenCV is required for PolygonRenderer. Install with `pip install opencv-python`.") from e

        points_yx = np.asarray(polygons, dtype=np.float64).reshape(-1, 4, 2)
        if points_yx.shape[0] != len(scores) or len(scores) != len(classes):
            raise ValueError(
                f"Misaligned result: {points_yx.shape[0]} polygons, {len(scores)} scores, {len(classes)} classes"
            )

        if self.apply_ratios:
            x_ratio, y_ratio = ratios
            points_yx = points_yx * np.array([y_ratio, x_ratio])

        h, w = self.canvas.shape[:2]
        for pts, score, class_id in zip(points_yx, scores, classes):
            class_id = int(class_id)
            color = _color_for_class_id(class_id)
            pts_xy = np.round(pts[:, ::-1]).astype(np.int32)
            cv2.polylines(self.canvas, [pts_xy], isClosed=True, color=color, thickness=self.line_thickness)

            label = self._label(class_id, float(score))
            (tw, th), baseline = cv2.getTextSize(label, cv2.FONT_HERSHEY_SIMPLEX, self.font_scale, self.font_thickness)

            # Anchor the label at the top-most corner, above it if there is room.
            x0, y0 = pts_xy[np.argmin(pts_xy[:, 1])]
            x0 = int(np.clip(x0, 0, w - 1))
            y_text_top = int(y0) - th - baseline
            if y_text_top < 0:
                y_text_top = int(np.clip(y0, 0, h - 1))

            x_text_right = min(x0 + tw, w - 1)
            y_text_bottom = min(y_text_top + th + baseline, h - 1)

            cv2.rectangle(self.canvas, (x0, y_text_top), (x_text_right, y_text_bottom), color, thickness=-1)
            cv2.putText(
                self.canvas,
                label,
                (x0, min(y_text_top + th, h - 1)),
                cv2.FONT_HERSHEY_SIMPLEX,
                self.font_scale,
                (255, 255, 255),
                thickness=self.font_thickness,
                lineType=cv2.LINE_AA,
            )
