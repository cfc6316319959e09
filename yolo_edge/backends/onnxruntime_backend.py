from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence, Union

import numpy as np

from ..errors import RuntimeInvocationError

LOGGER = logging.getLogger(__name__)

PathLike = Union[str, Path]


@dataclass(frozen=True)
class OnnxRuntimeBackendConfig:
    """
    Configuration for ONNX Runtime inference.

    - providers: ORT execution providers (e.g., ["CPUExecutionProvider"])
    - input_name/output_name: override auto-selected I/O names if needed
    - thread_count: intra-op threads for the session
    """

    providers: Optional[Sequence[str]] = None
    input_name: Optional[str] = None
    output_name: Optional[str] = None
    thread_count: int = 1


class OnnxRuntimeBackend:
    """
    Minimal ONNX Runtime backend.

    Expects a (1, H, W, 3) blob (uint8 or float32, matching the model input)
    and returns the primary output as a NumPy array.
    """

    def __init__(self, model_path: PathLike, cfg: OnnxRuntimeBackendConfig = OnnxRuntimeBackendConfig()):
        try:
            import onnxruntime as ort  # type: ignore
        except Exception as e:  # pragma: no cover
            raise ImportError(
                "onnxruntime is required for the ONNX backend. Install it with `pip install onnxruntime`."
            ) from e

        self._ort = ort
        self.model_path = Path(model_path)
        if not self.model_path.exists():
            raise FileNotFoundError(str(self.model_path))

        sess_opts = ort.SessionOptions()
        sess_opts.intra_op_num_threads = cfg.thread_count
        providers = list(cfg.providers) if cfg.providers is not None else None
        try:
            self.session = ort.InferenceSession(str(self.model_path), sess_options=sess_opts, providers=providers)
        except Exception as e:
            raise RuntimeInvocationError(f"Failed to create ONNX Runtime session for {self.model_path}: {e}") from e

        model_input = self.session.get_inputs()[0]
        self.input_name = cfg.input_name or model_input.name
        self.input_type = model_input.type
        # If output_name not provided, pick first output.
        self.output_name = cfg.output_name or self.session.get_outputs()[0].name
        LOGGER.info("Loaded %s (input %s %s)", self.model_path.name, self.input_name, self.input_type)

    @property
    def input_is_uint8(self) -> bool:
        return self.input_type == "tensor(uint8)"

    def infer(self, blob: np.ndarray) -> np.ndarray:
        outputs = self.session.run([self.output_name], {self.input_name: blob})
        return outputs[0]
