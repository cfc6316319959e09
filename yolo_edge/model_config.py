from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Union


PathLike = Union[str, Path]

# Input resolutions encoded in exported model names, e.g. "yolov5n-fp16-img640".
KNOWN_RESOLUTIONS = (320, 480, 640, 768, 960)
QUANTIZED_MARKER = "int8"
MAX_THREAD_COUNT = 9

_RESOLUTION_RE = re.compile(r"img(\d+)")


@dataclass(frozen=True)
class ModelConfig:
    """
    Input geometry and thresholds for one exported model.

    Derived once (usually from the model file name) and never mutated.
    """

    input_width: int = 640
    input_height: int = 640
    input_channels: int = 3
    quantized: bool = False
    confidence_threshold: float = 0.5
    iou_threshold: float = 0.45
    thread_count: int = 1
    # NCHW instead of the default NHWC input layout.
    channels_first: bool = False

    def __post_init__(self) -> None:
        if self.input_width <= 0 or self.input_height <= 0:
            raise ValueError(f"Input size must be positive, got {self.input_width}x{self.input_height}")
        if self.input_channels != 3:
            raise ValueError("Only 3-channel (RGB) model inputs are supported")
        if not 0.0 <= self.confidence_threshold <= 1.0:
            raise ValueError("confidence_threshold must be within [0, 1]")
        if not 0.0 <= self.iou_threshold <= 1.0:
            raise ValueError("iou_threshold must be within [0, 1]")
        if self.thread_count < 1:
            raise ValueError("thread_count must be >= 1")

    @property
    def input_shape(self):
        if self.channels_first:
            return (1, self.input_channels, self.input_height, self.input_width)
        return (1, self.input_height, self.input_width, self.input_channels)

    @classmethod
    def from_model_name(
        cls,
        model_name: PathLike,
        *,
        default_width: int = 640,
        default_height: int = 640,
        default_quantized: bool = False,
        thread_count: int = 1,
        **overrides,
    ) -> "ModelConfig":
        """
        Read resolution ("img320", "img640", ...) and quantization ("int8")
        markers from a model file name. Unrecognized names keep the defaults;
        an explicit `quantized=` override wins over the name.
        """

        name = Path(model_name).name.lower()

        width, height = default_width, default_height
        for match in _RESOLUTION_RE.finditer(name):
            size = int(match.group(1))
            if size in KNOWN_RESOLUTIONS:
                width = height = size
                break

        quantized = overrides.pop("quantized", None)
        if quantized is None:
            quantized = True if QUANTIZED_MARKER in name else default_quantized
        thread_count = max(1, min(int(thread_count), MAX_THREAD_COUNT))

        return cls(
            input_width=width,
            input_height=height,
            quantized=quantized,
            thread_count=thread_count,
            **overrides,
        )
