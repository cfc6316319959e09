from __future__ import annotations

from contextlib import contextmanager
from typing import Callable, Dict, Iterator, Optional

import numpy as np

from .errors import AllocationError, ResizeError, UnsupportedPixelFormatError
from .model_config import ModelConfig
from .types import Frame, PixelFormat


IMAGE_MEAN = 127.5
IMAGE_STD = 127.5


def _argb_to_rgb(pixels: np.ndarray, out: np.ndarray) -> None:
    np.copyto(out, pixels[:, :, 1:4])


def _bgra_to_rgb(pixels: np.ndarray, out: np.ndarray) -> None:
    np.copyto(out, pixels[:, :, 2::-1])


def _rgba_to_rgb(pixels: np.ndarray, out: np.ndarray) -> None:
    np.copyto(out, pixels[:, :, 0:3])


_CONVERTERS: Dict[PixelFormat, Callable[[np.ndarray, np.ndarray], None]] = {
    PixelFormat.ARGB: _argb_to_rgb,
    PixelFormat.BGRA: _bgra_to_rgb,
    PixelFormat.RGBA: _rgba_to_rgb,
}


def resize(pixels: np.ndarray, width: int, height: int) -> np.ndarray:
    """
    Stretch `pixels` to (height, width). Returns the input untouched when it
    already has that size.
    """

    h, w = pixels.shape[:2]
    if (w, h) == (width, height):
        return pixels

    try:
        import cv2  # type: ignore
    except Exception as e:  # pragma: no cover
        raise ImportError("OpenCV is required for resize(). Install with `pip install opencv-python`.") from e

    try:
        resized = cv2.resize(pixels, (width, height), interpolation=cv2.INTER_LINEAR)
    except cv2.error as e:
        raise ResizeError(f"Could not resize {w}x{h} frame to {width}x{height}: {e}") from e
    if resized is None or resized.shape[:2] != (height, width):
        raise ResizeError(f"Could not resize {w}x{h} frame to {width}x{height}")
    return resized


def _allocate(height: int, width: int, dtype) -> np.ndarray:
    try:
        return np.empty((height, width, 3), dtype=dtype)
    except MemoryError as e:
        raise AllocationError(f"Out of memory allocating {width}x{height}x3 {np.dtype(dtype).name} buffer") from e


@contextmanager
def rgb_buffer(height: int, width: int) -> Iterator[np.ndarray]:
    """
    Scratch (H, W, 3) uint8 buffer, released when the block exits.
    """

    buffer = _allocate(height, width, np.uint8)
    try:
        yield buffer
    finally:
        del buffer


class FramePreprocessor:
    """
    Turns a 4-channel frame into the model's input tensor.

    Output is (1, H, W, 3), or (1, 3, H, W) for channels-first models:
    - quantized models: raw uint8 RGB samples
    - float models: float32 `(pixel - 127.5) / 127.5`, i.e. [-1, 1]
    """

    def __init__(self, cfg: ModelConfig):
        self.cfg = cfg

    def __call__(self, frame: Frame, quantized: Optional[bool] = None) -> np.ndarray:
        return self.preprocess(frame, quantized=quantized)

    def preprocess(self, frame: Frame, quantized: Optional[bool] = None) -> np.ndarray:
        """
        Args:
            frame: source frame in ARGB, BGRA or RGBA
            quantized: override the config, e.g. when the runtime reports a uint8 input
        """

        pixel_format = PixelFormat.parse(frame.pixel_format)
        pixels = frame.pixels
        if not isinstance(pixels, np.ndarray) or pixels.ndim != 3 or pixels.shape[2] != 4:
            raise UnsupportedPixelFormatError(
                f"Expected (H, W, 4) pixels for {pixel_format.name}, got {getattr(pixels, 'shape', None)}"
            )
        if pixels.dtype != np.uint8:
            raise UnsupportedPixelFormatError(f"Expected uint8 pixels, got {pixels.dtype}")

        if quantized is None:
            quantized = self.cfg.quantized

        width, height = self.cfg.input_width, self.cfg.input_height
        scaled = resize(pixels, width, height)

        with rgb_buffer(height, width) as rgb:
            _CONVERTERS[pixel_format](scaled, rgb)
            if quantized:
                blob = _allocate(height, width, np.uint8)
                np.copyto(blob, rgb)
            else:
                blob = _allocate(height, width, np.float32)
                np.subtract(rgb, IMAGE_MEAN, out=blob, dtype=np.float32)
                blob /= IMAGE_STD

        if self.cfg.channels_first:
            blob = np.ascontiguousarray(np.transpose(blob, (2, 0, 1)))
        return blob[None, ...]
