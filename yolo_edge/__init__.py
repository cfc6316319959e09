"""
Camera-frame YOLO detection: preprocessing, post-processing and a thin
pipeline around an opaque inference runtime.

Core pre/post-processing only needs NumPy (and OpenCV when frames must be
resized). Inference runtimes live in `yolo_edge.backends` and are imported
lazily.
"""

from .colors import color_for_class
from .config import DetectorSettings, load_detector_settings
from .errors import (
    AllocationError,
    ConfigurationMismatchError,
    DetectionError,
    FrameError,
    ResizeError,
    RuntimeInvocationError,
    UnsupportedPixelFormatError,
)
from .labels import LabelTable
from .model_config import ModelConfig
from .nms import NMSConfig, batched_nms, box_iou, nms
from .postprocess import DetectionPostprocessor, PostConfig
from .preprocess import FramePreprocessor
from .runtime import ObjectDetector, find_project_root, load_detector, resolve_path
from .types import Detection, Frame, InferenceResult, PixelFormat, Rect

__all__ = [
    "color_for_class",
    "DetectorSettings",
    "load_detector_settings",
    "AllocationError",
    "ConfigurationMismatchError",
    "DetectionError",
    "FrameError",
    "ResizeError",
    "RuntimeInvocationError",
    "UnsupportedPixelFormatError",
    "LabelTable",
    "ModelConfig",
    "NMSConfig",
    "batched_nms",
    "box_iou",
    "nms",
    "DetectionPostprocessor",
    "PostConfig",
    "FramePreprocessor",
    "ObjectDetector",
    "find_project_root",
    "load_detector",
    "resolve_path",
    "Detection",
    "Frame",
    "InferenceResult",
    "PixelFormat",
    "Rect",
]
