"""
Exceptions raised along the detection pipeline.

`FrameError` subclasses are per-frame failures: the pipeline drops the frame
and the caller moves on to the next one. `ConfigurationMismatchError` means the
model and the post-processor disagree on the output layout and is never caught
by the pipeline.
"""

from __future__ import annotations

from typing import Optional


class DetectionError(Exception):
    stage = "pipeline"

    def __init__(self, message: str, *, stage: Optional[str] = None):
        super().__init__(message)
        if stage is not None:
            self.stage = stage


class FrameError(DetectionError):
    pass


class UnsupportedPixelFormatError(FrameError):
    stage = "preprocess"


class ResizeError(FrameError):
    stage = "resize"


class AllocationError(FrameError):
    stage = "allocate"


class RuntimeInvocationError(FrameError):
    stage = "invoke"


class ConfigurationMismatchError(DetectionError):
    stage = "postprocess"
