from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, Sequence, Tuple

import numpy as np


class DetectionModel(Protocol):
    """
    Anything that can run the detector network.

    `input_shape` is NHWC, e.g. (1, 640, 640, 3); `execute` takes a float32
    tensor of that shape and returns the raw (1, attributes, detections) output.
    """

    @property
    def input_shape(self) -> Sequence[int]: ...

    def execute(self, tensor: np.ndarray) -> np.ndarray: ...


class PolygonSink(Protocol):
    """
    Receives one frame's result.

    `polygons` is flat: polygon i is polygons[8 * i : 8 * i + 8] as four (y, x)
    pairs and matches scores[i] / classes[i].
    """

    def __call__(
        self,
        polygons: np.ndarray,
        scores: np.ndarray,
        classes: np.ndarray,
        ratios: Tuple[float, float],
    ) -> None: ...


@dataclass(frozen=True)
class DetectionResult:
    """
    Index-aligned polygons, scores and classes for one frame.

    polygons has shape (N, 4, 2) holding (y, x) points. When `source_space` is
    False the points are still in the padded model square and must be
    multiplied by `ratios` (x by ratios[0], y by ratios[1]) to land on the
    source image.
    """

    polygons: np.ndarray
    scores: np.ndarray
    classes: np.ndarray
    ratios: Tuple[float, float] = (1.0, 1.0)
    source_space: bool = False
    labels: Sequence[str] = field(default=(), repr=False)

    def __len__(self) -> int:
        return int(self.scores.shape[0])

    def flat_polygons(self) -> np.ndarray:
        return self.polygons.reshape(-1)

    def source_polygons(self) -> np.ndarray:
        """Polygons in source-image pixels regardless of `source_space`."""
        if self.source_space:
            return self.polygons
        x_ratio, y_ratio = self.ratios
        return self.polygons * np.array([y_ratio, x_ratio], dtype=self.polygons.dtype)

    def label_for(self, index: int) -> str:
        class_id = int(self.classes[index])
        if 0 <= class_id < len(self.labels):
            return self.labels[class_id]
        return str(class_id)
