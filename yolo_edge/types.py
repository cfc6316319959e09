from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

import numpy as np

from .errors import UnsupportedPixelFormatError


Color = Tuple[int, int, int]


class PixelFormat(str, Enum):
    """
    32-bit, 4-channel source layouts accepted by the preprocessor.
    """

    ARGB = "argb"
    BGRA = "bgra"
    RGBA = "rgba"

    @classmethod
    def parse(cls, value: object) -> "PixelFormat":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise UnsupportedPixelFormatError(f"Unsupported pixel format: {value!r}") from None


@dataclass(frozen=True)
class Frame:
    """
    A source image buffer: (H, W, 4) uint8 pixels in the given layout.
    """

    pixels: np.ndarray
    pixel_format: PixelFormat

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    width: float
    height: float

    @property
    def area(self) -> float:
        return max(0.0, self.width) * max(0.0, self.height)

    def as_xyxy(self) -> Tuple[float, float, float, float]:
        return self.x, self.y, self.x + self.width, self.y + self.height


@dataclass(frozen=True)
class Detection:
    """
    One post-processed detection in source-image pixel coordinates.
    """

    confidence: float
    class_index: int
    rect: Rect
    color: Color = (255, 0, 0)
    label: Optional[str] = None


@dataclass(frozen=True)
class InferenceResult:
    inference_time_ms: float
    detections: List[Detection] = field(default_factory=list)
