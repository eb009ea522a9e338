from __future__ import annotations

import logging
from concurrent.futures import Executor
from pathlib import Path
from typing import Callable, Optional, Sequence, Tuple, Union

import numpy as np

from .config import PipelineConfig
from .errors import InferenceError, PolydetError, ShapeMismatchError
from .letterbox import preprocess
from .metadata import load_labels
from .nms import nms_async
from .postprocess import (
    boxes_to_polygons,
    decode,
    decode_oriented,
    oriented_boxes_to_polygons,
    oriented_nms_boxes,
    reduce_scores,
)
from .scope import TensorScope
from .types import DetectionModel, DetectionResult, PolygonSink


PathLike = Union[str, Path]

logger = logging.getLogger(__name__)


def find_project_root(
    start: Optional[PathLike] = None,
    markers: Sequence[str] = ("pyproject.toml", ".git"),
) -> Path:
    """
    Best-effort project root discovery: first parent of `start` (default cwd) holding a marker.
    """

    p = Path(start).resolve() if start is not None else Path.cwd().resolve()
    if p.is_file():
        p = p.parent
    for parent in (p, *p.parents):
        if any((parent / m).exists() for m in markers):
            return parent
    return p


def resolve_path(path: PathLike, root: Optional[PathLike] = "auto") -> Path:
    """Absolute paths pass through; relative ones resolve against `root` or the project root."""
    p = Path(path)
    if p.is_absolute():
        return p
    base = find_project_root() if root in ("auto", None) else Path(root).resolve()
    return (base / p).resolve()


class DetectionPipeline:
    """
    Frame -> polygons: preprocess -> inference -> decode -> NMS -> polygons -> sink.

    Two entry points share the same skeleton:

    - `detect`: axis-aligned models. Polygons stay in the padded model square
      and the sink gets the ratios needed to scale them.
    - `detect_obb`: oriented models. Polygons are scaled to source pixels
      before they reach the sink, and the raw survivors are returned too.

    Every call owns a `TensorScope`, so concurrent calls on the same model do
    not share intermediates. The model is only ever read.
    """

    def __init__(
        self,
        model: DetectionModel,
        labels: Optional[Sequence[str]] = None,
        *,
        num_class: Optional[int] = None,
        config: PipelineConfig = PipelineConfig(),
        executor: Optional[Executor] = None,
        backend_name: Optional[str] = None,
    ):
        self.model = model
        self.labels = tuple(labels or ())
        self.num_class = int(num_class) if num_class is not None else len(self.labels)
        if self.num_class < 1:
            raise ValueError("Pass labels or num_class >= 1")
        self.config = config
        self.executor = executor
        self.backend_name = backend_name

    @property
    def model_size(self) -> Tuple[int, int]:
        """(width, height) read from the model's NHWC input shape."""
        shape = tuple(self.model.input_shape)
        if len(shape) != 4:
            raise ShapeMismatchError(f"Expected a 4D model input shape, got {shape}")
        return int(shape[2]), int(shape[1])

    def _execute(self, tensor: np.ndarray) -> np.ndarray:
        try:
            output = self.model.execute(tensor)
        except PolydetError:
            raise
        except Exception as exc:
            raise InferenceError(f"Model execution failed: {exc}") from exc
        if output is None or not hasattr(output, "shape"):
            raise InferenceError(f"Model returned {type(output).__name__}, expected an array")
        return output

    def _deliver(
        self,
        result: DetectionResult,
        sink: Optional[PolygonSink],
        callback: Optional[Callable[[], None]],
    ) -> None:
        if sink is not None:
            sink(result.flat_polygons(), result.scores, result.classes, result.ratios)
        if callback is not None:
            callback()

    async def detect(
        self,
        source: np.ndarray,
        sink: Optional[PolygonSink] = None,
        callback: Optional[Callable[[], None]] = None,
    ) -> DetectionResult:
        """
        Run an axis-aligned model on one frame.

        Returns the `DetectionResult` handed to `sink`; its polygons are in
        model space (`source_space=False`).
        """

        model_width, model_height = self.model_size

        with TensorScope("detect") as scope:
            prep = preprocess(source, model_width, model_height)
            tensor = scope.track(prep.tensor)
            output = scope.track(self._execute(tensor))

            boxes, raw_scores = scope.track(decode(output, self.num_class))
            scores, classes = scope.track(reduce_scores(raw_scores))
            keep = scope.track(await nms_async(boxes, scores, self.config.nms, self.executor))

            result = DetectionResult(
                polygons=boxes_to_polygons(boxes[keep]),
                scores=scores[keep],
                classes=classes[keep],
                ratios=prep.ratios,
                source_space=False,
                labels=self.labels,
            )
            logger.debug("detect: %d candidates, %d kept", boxes.shape[0], len(result))

            self._deliver(result, sink, callback)

        return result

    async def detect_obb(
        self,
        source: np.ndarray,
        sink: Optional[PolygonSink] = None,
        callback: Optional[Callable[[], None]] = None,
    ) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """
        Run an oriented model on one frame.

        The sink receives polygons already in source pixels. Returns the kept
        (boxes, scores, classes); boxes are model-space [cx, cy, w, h, rotation].
        """

        model_width, model_height = self.config.obb_input_size

        with TensorScope("detect_obb") as scope:
            prep = preprocess(source, model_width, model_height)
            tensor = scope.track(prep.tensor)
            output = scope.track(self._execute(tensor))

            boxes, raw_scores = scope.track(decode_oriented(output, self.num_class))
            scores, classes = scope.track(reduce_scores(raw_scores))
            nms_boxes = scope.track(oriented_nms_boxes(boxes, envelope=self.config.obb_nms_envelope))
            keep = scope.track(await nms_async(nms_boxes, scores, self.config.nms, self.executor))

            boxes_data = boxes[keep]
            scores_data = scores[keep]
            classes_data = classes[keep]

            result = DetectionResult(
                polygons=oriented_boxes_to_polygons(boxes_data, prep.ratios),
                scores=scores_data,
                classes=classes_data,
                ratios=prep.ratios,
                source_space=True,
                labels=self.labels,
            )
            logger.debug("detect_obb: %d candidates, %d kept", boxes.shape[0], len(result))

            self._deliver(result, sink, callback)

        return boxes_data, scores_data, classes_data


def load_pipeline(
    model_path: PathLike,
    labels: Union[PathLike, Sequence[str]],
    *,
    backend: Optional[str] = None,
    root: Optional[PathLike] = "auto",
    config: PipelineConfig = PipelineConfig(),
    input_size: Tuple[int, int] = (640, 640),
    onnx_providers: Optional[Sequence[str]] = None,
    torch_device: str = "cpu",
    torch_half: bool = False,
    torch_output_index: int = 0,
) -> DetectionPipeline:
    """
    Build a pipeline for a model on disk.

    Args:
        model_path: weights/model file; relative paths resolve against the project root by default
        labels: list of class names, or a path readable by `load_labels`
        backend: "onnxruntime" or "torchscript"; None infers it from the extension
        input_size: (width, height) used when the model does not declare a fixed input size
    """

    resolved = resolve_path(model_path, root=root)
    if isinstance(labels, (str, Path)):
        labels = load_labels(resolve_path(labels, root=root))

    chosen = backend
    if chosen is None:
        suffix = resolved.suffix.lower()
        if suffix == ".onnx":
            chosen = "onnxruntime"
        elif suffix in {".torchscript", ".ts", ".pt"}:
            chosen = "torchscript"
        else:
            raise ValueError(
                f"Could not infer backend from extension '{suffix}'. Pass backend=... explicitly."
            )

    chosen = chosen.lower()
    if chosen == "onnxruntime":
        from .backends.onnxruntime_backend import OnnxRuntimeBackend, OnnxRuntimeBackendConfig

        model = OnnxRuntimeBackend(
            resolved,
            OnnxRuntimeBackendConfig(providers=onnx_providers, default_input_size=input_size),
        )
    elif chosen == "torchscript":
        from .backends.torchscript_backend import TorchScriptBackend, TorchScriptBackendConfig

        model = TorchScriptBackend(
            resolved,
            TorchScriptBackendConfig(
                device=torch_device,
                half=torch_half,
                output_index=torch_output_index,
                input_size=input_size,
            ),
        )
    else:
        raise ValueError(f"Unsupported backend: {backend!r}")

    logger.info("Loaded %s model %s (%d classes)", chosen, resolved, len(labels))
    return DetectionPipeline(model, labels, config=config, backend_name=chosen)
