"""
YOLO detector output -> polygons.

Turns raw axis-aligned or oriented (OBB) detector output into 4-point polygons:
square letterbox preprocessing, box decoding, class score reduction, NMS and
rotated-corner geometry. Works on NumPy arrays; OpenCV is used for padding,
resizing and drawing.
"""

from .types import DetectionModel, DetectionResult, PolygonSink
from .errors import InferenceError, PolydetError, ShapeMismatchError
from .geometry import corners_envelope, rotated_corners
from .letterbox import PreprocessResult, pad_to_square, preprocess
from .nms import NMSConfig, nms, nms_async
from .postprocess import (
    Attr,
    boxes_to_polygons,
    decode,
    decode_oriented,
    oriented_boxes_to_polygons,
    oriented_nms_boxes,
    reduce_scores,
)
from .scope import TensorScope
from .config import PipelineConfig, load_pipeline_config
from .runtime import DetectionPipeline, load_pipeline, find_project_root, resolve_path
from .metadata import load_labels
from .visualize import PolygonRenderer

__all__ = [
    "DetectionModel",
    "DetectionResult",
    "PolygonSink",
    "InferenceError",
    "PolydetError",
    "ShapeMismatchError",
    "corners_envelope",
    "rotated_corners",
    "PreprocessResult",
    "pad_to_square",
    "preprocess",
    "NMSConfig",
    "nms",
    "nms_async",
    "Attr",
    "boxes_to_polygons",
    "decode",
    "decode_oriented",
    "oriented_boxes_to_polygons",
    "oriented_nms_boxes",
    "reduce_scores",
    "TensorScope",
    "PipelineConfig",
    "load_pipeline_config",
    "DetectionPipeline",
    "load_pipeline",
    "find_project_root",
    "resolve_path",
    "load_labels",
    "PolygonRenderer",
]
