from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Tuple, Union

from .nms import NMSConfig


@dataclass(frozen=True)
class PipelineConfig:
    max_output_size: int = 500
    iou_threshold: float = 0.45
    score_threshold: float = 0.2
    # Oriented models are fed a fixed (width, height) input regardless of input_shape.
    obb_input_size: Tuple[int, int] = (640, 640)
    # Suppress oriented boxes on their rotated hull instead of the raw (cx, cy, w, h) surrogate.
    obb_nms_envelope: bool = False

    def __post_init__(self) -> None:
        if self.max_output_size <= 0:
            raise ValueError("max_output_size must be > 0")
        if not 0.0 <= self.iou_threshold <= 1.0:
            raise ValueError("iou_threshold must be in [0, 1]")
        if not 0.0 <= self.score_threshold <= 1.0:
            raise ValueError("score_threshold must be in [0, 1]")
        if len(self.obb_input_size) != 2 or min(self.obb_input_size) <= 0:
            raise ValueError("obb_input_size must be two positive integers")

    @property
    def nms(self) -> NMSConfig:
        return NMSConfig(
            max_output_size=self.max_output_size,
            iou_threshold=self.iou_threshold,
            score_threshold=self.score_threshold,
        )


def _require_number(payload: Dict[str, Any], key: str) -> float:
    value = payload[key]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{key} must be a number")
    return float(value)


def _require_int(payload: Dict[str, Any], key: str) -> int:
    value = payload[key]
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{key} must be an integer")
    return int(value)


def load_pipeline_config(path: Union[str, Path]) -> PipelineConfig:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Pipeline config not found: {path}")
    raw = path.read_text(encoding="utf-8")
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid pipeline config JSON: {path}") from exc
    if not isinstance(payload, dict):
        raise ValueError("Pipeline config must be a JSON object")

    allowed = {
        "max_output_size",
        "iou_threshold",
        "score_threshold",
        "obb_input_size",
        "obb_nms_envelope",
    }
    unknown = sorted(set(payload.keys()) - allowed)
    if unknown:
        raise ValueError(f"Unknown pipeline config keys: {unknown}")

    kwargs: Dict[str, Any] = {}
    if "max_output_size" in payload:
        kwargs["max_output_size"] = _require_int(payload, "max_output_size")
    for key in ("iou_threshold", "score_threshold"):
        if key in payload:
            kwargs[key] = _require_number(payload, key)
    if "obb_input_size" in payload:
        size = payload["obb_input_size"]
        if (
            not isinstance(size, list)
            or len(size) != 2
            or any(isinstance(v, bool) or not isinstance(v, int) for v in size)
        ):
            raise ValueError("obb_input_size must be a [width, height] list of integers")
        kwargs["obb_input_size"] = (int(size[0]), int(size[1]))
    if "obb_nms_envelope" in payload:
        if not isinstance(payload["obb_nms_envelope"], bool):
            raise ValueError("obb_nms_envelope must be a boolean")
        kwargs["obb_nms_envelope"] = payload["obb_nms_envelope"]

    return PipelineConfig(**kwargs)
