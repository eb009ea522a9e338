from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence, Tuple, Union

import numpy as np


PathLike = Union[str, Path]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OnnxRuntimeBackendConfig:
    """
    Configuration for ONNX Runtime inference.

    - providers: ORT execution providers (e.g., ["CUDAExecutionProvider", "CPUExecutionProvider"])
    - input_name/output_name: override auto-selected I/O names if needed
    - default_input_size: (width, height) used when the graph has dynamic spatial dims
    """

    providers: Optional[Sequence[str]] = None
    input_name: Optional[str] = None
    output_name: Optional[str] = None
    default_input_size: Tuple[int, int] = (640, 640)


def _static_dim(value: object, fallback: int) -> int:
    return value if isinstance(value, int) and value > 0 else fallback


class OnnxRuntimeBackend:
    """
    ONNX Runtime model exposing `input_shape` (NHWC) and `execute`.

    YOLO exports usually take NCHW; NHWC tensors from the preprocessor are
    transposed before the session runs when the graph is channels-first.
    """

    def __init__(self, model_path: PathLike, cfg: OnnxRuntimeBackendConfig = OnnxRuntimeBackendConfig()):
        try:
            import onnxruntime as ort  # type: ignore
        except Exception as e:  # pragma: no cover
            raise ImportError(
                "onnxruntime is required for the ONNX backend. Install it with `pip install onnxruntime` "
                "(or `onnxruntime-gpu`)."
            ) from e

        self.model_path = Path(model_path)
        if not self.model_path.exists():
            raise FileNotFoundError(str(self.model_path))

        providers = list(cfg.providers) if cfg.providers is not None else None
        self.session = ort.InferenceSession(str(self.model_path), sess_options=ort.SessionOptions(), providers=providers)

        model_input = self.session.get_inputs()[0]
        self.input_name = cfg.input_name or model_input.name
        self.output_name = cfg.output_name or self.session.get_outputs()[0].name

        dims = list(model_input.shape) if model_input.shape is not None else []
        width, height = cfg.default_input_size
        self.channels_first = len(dims) == 4 and dims[1] == 3
        if self.channels_first:
            height, width = _static_dim(dims[2], height), _static_dim(dims[3], width)
        elif len(dims) == 4:
            height, width = _static_dim(dims[1], height), _static_dim(dims[2], width)
        self._input_shape = (1, height, width, 3)

        logger.info(
            "ONNX Runtime session ready: %s input=%s providers=%s",
            self.model_path.name,
            self._input_shape,
            self.session.get_providers(),
        )

    @property
    def input_shape(self) -> Tuple[int, int, int, int]:
        return self._input_shape

    def execute(self, tensor: np.ndarray) -> np.ndarray:
        blob = np.transpose(tensor, (0, 3, 1, 2)) if self.channels_first else tensor
        blob = np.ascontiguousarray(blob, dtype=np.float32)
        outputs = self.session.run([self.output_name], {self.input_name: blob})
        return outputs[0]
