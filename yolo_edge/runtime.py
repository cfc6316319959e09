from __future__ import annotations

import logging
import time
from dataclasses import replace
from pathlib import Path
from typing import Callable, Optional, Sequence, Union

import numpy as np

from .errors import FrameError, RuntimeInvocationError
from .labels import LabelTable
from .model_config import ModelConfig
from .postprocess import DetectionPostprocessor, PostConfig
from .preprocess import FramePreprocessor
from .types import Detection, Frame, InferenceResult

LOGGER = logging.getLogger(__name__)

PathLike = Union[str, Path]


def find_project_root(
    start: Optional[PathLike] = None,
    markers: Sequence[str] = ("pyproject.toml", "setup.py", ".git", "requirements.txt"),
) -> Path:
    """
    Best-effort project root discovery.

    Useful when models and label files live in `<root>/models`.
    """

    p = Path(start) if start is not None else Path.cwd()
    p = p.resolve()

    # If a file is provided, start from its directory.
    if p.is_file():
        p = p.parent

    for parent in (p, *p.parents):
        for m in markers:
            if (parent / m).exists():
                return parent
    return p


def resolve_path(path: PathLike, root: Optional[PathLike] = "auto") -> Path:
    """
    Resolve `path` to an absolute Path.

    - Absolute paths are returned as-is.
    - Relative paths are resolved against `root` if provided, project root (auto) otherwise.
    """

    p = Path(path)
    if p.is_absolute():
        return p

    if root == "auto" or root is None:
        base = find_project_root()
    else:
        base = Path(root).resolve()

    return (base / p).resolve()


class ObjectDetector:
    """
    Frame -> input tensor -> inference -> detections.

    `infer_fn` is the opaque runtime call. Per-frame failures (unsupported
    format, resize, allocation, runtime errors) are logged and turn into
    `None`; a model/post-processor mismatch is raised.
    """

    def __init__(
        self,
        infer_fn: Callable[[np.ndarray], np.ndarray],
        model_cfg: ModelConfig,
        labels: LabelTable,
        *,
        backend: Optional[object] = None,
        backend_name: Optional[str] = None,
        max_detections: Optional[int] = 300,
        input_quantized: Optional[bool] = None,
    ):
        self._infer_fn = infer_fn
        self.backend = backend
        self.backend_name = backend_name
        self.model_cfg = model_cfg
        self.labels = labels
        self.input_quantized = bool(model_cfg.quantized or input_quantized)
        self.pre = FramePreprocessor(model_cfg)
        self.post = DetectionPostprocessor(
            PostConfig(
                num_classes=len(labels),
                conf_threshold=model_cfg.confidence_threshold,
                iou_threshold=model_cfg.iou_threshold,
                max_detections=max_detections,
            )
        )

    def __call__(self, frame: Frame) -> Optional[InferenceResult]:
        return self.run_inference(frame)

    def run_inference(self, frame: Frame) -> Optional[InferenceResult]:
        try:
            blob = self.pre(frame, quantized=self.input_quantized)
            preds, elapsed_ms = self._invoke(blob)
        except FrameError as e:
            LOGGER.warning("Dropping frame at %s stage: %s", e.stage, e)
            return None

        detections = [self._label(det) for det in self.post.process(preds, image_size=(frame.width, frame.height))]
        LOGGER.debug("Inference took %.1f ms, %d detections", elapsed_ms, len(detections))
        return InferenceResult(inference_time_ms=elapsed_ms, detections=detections)

    def _invoke(self, blob: np.ndarray):
        start = time.perf_counter()
        try:
            preds = self._infer_fn(blob)
        except Exception as e:
            raise RuntimeInvocationError(f"Inference runtime failed: {e}") from e
        elapsed_ms = (time.perf_counter() - start) * 1000.0
        return preds, elapsed_ms

    def _label(self, det: Detection) -> Detection:
        return replace(det, label=self.labels.name_for(det.class_index))


def load_detector(
    model_path: PathLike,
    labels_path: PathLike,
    *,
    backend: Optional[str] = None,
    root: Optional[PathLike] = "auto",
    labels_have_background: bool = False,
    default_width: int = 640,
    default_height: int = 640,
    confidence_threshold: float = 0.5,
    iou_threshold: float = 0.45,
    max_detections: Optional[int] = 300,
    thread_count: int = 1,
    channels_first: bool = False,
    onnx_providers: Optional[Sequence[str]] = None,
    torch_device: str = "cpu",
) -> ObjectDetector:
    """
    Create a detector for a model on disk.

    Typical usage:
        detector = load_detector("models/yolov5n-fp16-img640.onnx", "models/coco.txt")

    Input size and quantization are read from the model file name
    (e.g. "img320", "int8"); the defaults apply when no marker is present.
    """

    resolved = resolve_path(model_path, root=root)
    labels = LabelTable.from_file(resolve_path(labels_path, root=root), has_background=labels_have_background)
    LOGGER.info("Loaded %d labels", len(labels))

    model_cfg = ModelConfig.from_model_name(
        resolved,
        default_width=default_width,
        default_height=default_height,
        thread_count=thread_count,
        confidence_threshold=confidence_threshold,
        iou_threshold=iou_threshold,
        channels_first=channels_first,
    )
    LOGGER.info(
        "Model %s: input %dx%d, quantized=%s",
        resolved.name,
        model_cfg.input_width,
        model_cfg.input_height,
        model_cfg.quantized,
    )

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

        ort_backend = OnnxRuntimeBackend(
            resolved,
            OnnxRuntimeBackendConfig(providers=onnx_providers, thread_count=model_cfg.thread_count),
        )
        return ObjectDetector(
            ort_backend.infer,
            model_cfg,
            labels,
            backend=ort_backend,
            backend_name="onnxruntime",
            max_detections=max_detections,
            input_quantized=ort_backend.input_is_uint8,
        )

    if chosen == "torchscript":
        from .backends.torchscript_backend import TorchScriptBackend, TorchScriptBackendConfig

        ts_backend = TorchScriptBackend(
            resolved,
            TorchScriptBackendConfig(device=torch_device, thread_count=model_cfg.thread_count),
        )
        return ObjectDetector(
            ts_backend.infer,
            model_cfg,
            labels,
            backend=ts_backend,
            backend_name="torchscript",
            max_detections=max_detections,
        )

    raise ValueError(f"Unsupported backend: {backend!r}")
