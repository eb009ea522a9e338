from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Tuple, Union

import numpy as np


PathLike = Union[str, Path]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TorchScriptBackendConfig:
    """
    Configuration for TorchScript inference.

    - device: "cpu" or "cuda" (if available)
    - half: cast input to float16 (only if the model expects it)
    - output_index: if the model returns multiple outputs, select this index
    - input_size: (width, height) the model was exported with
    """

    device: str = "cpu"
    half: bool = False
    output_index: int = 0
    input_size: Tuple[int, int] = (640, 640)


class TorchScriptBackend:
    """
    TorchScript model exposing `input_shape` (NHWC) and `execute`.

    The scripted module is fed NCHW, as YOLO exports expect.
    """

    def __init__(self, model_path: PathLike, cfg: TorchScriptBackendConfig = TorchScriptBackendConfig()):
        try:
            import torch  # type: ignore
        except Exception as e:  # pragma: no cover
            raise ImportError("torch is required for the TorchScript backend. Install with `pip install torch`.") from e

        self._torch = torch
        self.model_path = Path(model_path)
        if not self.model_path.exists():
            raise FileNotFoundError(str(self.model_path))

        self.device = torch.device(cfg.device)
        self.half = cfg.half
        self.output_index = cfg.output_index
        width, height = cfg.input_size
        self._input_shape = (1, int(height), int(width), 3)

        model = torch.jit.load(str(self.model_path), map_location=self.device)
        model.eval()
        self.model = model
        logger.info("TorchScript model ready: %s on %s", self.model_path.name, self.device)

    @property
    def input_shape(self) -> Tuple[int, int, int, int]:
        return self._input_shape

    def execute(self, tensor: np.ndarray) -> np.ndarray:
        torch = self._torch
        x = torch.as_tensor(np.transpose(tensor, (0, 3, 1, 2)), device=self.device)
        x = x.half() if self.half else x.float()
        x = x.contiguous()

        with torch.no_grad():
            y = self.model(x)

        if isinstance(y, (tuple, list)):
            y = y[self.output_index]
        return y.detach().float().to("cpu").numpy()
