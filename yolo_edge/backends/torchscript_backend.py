from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Union

import numpy as np

from ..errors import RuntimeInvocationError

LOGGER = logging.getLogger(__name__)

PathLike = Union[str, Path]


@dataclass(frozen=True)
class TorchScriptBackendConfig:
    """
    Configuration for TorchScript inference.

    - device: "cpu" or "cuda" (if available)
    - thread_count: intra-op threads (CPU only)
    - output_index: if the model returns multiple outputs, select this index
    """

    device: str = "cpu"
    thread_count: int = 1
    output_index: int = 0


class TorchScriptBackend:
    """
    Minimal TorchScript backend using `torch.jit.load`.

    Float models get float32 input, quantized exports get the uint8 blob as-is.
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
        self.output_index = cfg.output_index
        if self.device.type == "cpu":
            torch.set_num_threads(cfg.thread_count)

        try:
            model = torch.jit.load(str(self.model_path), map_location=self.device)
        except Exception as e:
            raise RuntimeInvocationError(f"Failed to load TorchScript model {self.model_path}: {e}") from e
        model.eval()
        self.model = model
        LOGGER.info("Loaded %s on %s", self.model_path.name, self.device)

    def infer(self, blob: np.ndarray) -> np.ndarray:
        torch = self._torch
        x = torch.as_tensor(blob, device=self.device).contiguous()

        with torch.no_grad():
            y = self.model(x)

        if isinstance(y, (tuple, list)):
            y = y[self.output_index]

        if hasattr(y, "detach"):
            y = y.detach()
        return y.to("cpu").float().numpy()
