from __future__ import annotations

import json
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class DetectorSettings:
    model_path: str
    labels_path: str
    backend: Optional[str] = None
    labels_have_background: bool = False
    default_width: int = 640
    default_height: int = 640
    confidence_threshold: float = 0.5
    iou_threshold: float = 0.45
    max_detections: Optional[int] = 300
    thread_count: int = 1
    channels_first: bool = False

    def __post_init__(self) -> None:
        if not self.model_path:
            raise ValueError("model_path must not be empty")
        if not self.labels_path:
            raise ValueError("labels_path must not be empty")
        if self.default_width <= 0 or self.default_height <= 0:
            raise ValueError("default_width/default_height must be > 0")
        if not 0.0 <= self.confidence_threshold <= 1.0:
            raise ValueError("confidence_threshold must be within [0, 1]")
        if not 0.0 <= self.iou_threshold <= 1.0:
            raise ValueError("iou_threshold must be within [0, 1]")
        if self.max_detections is not None and self.max_detections < 1:
            raise ValueError("max_detections must be >= 1")
        if self.thread_count < 1:
            raise ValueError("thread_count must be >= 1")

    def as_kwargs(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def _require_str(payload: Dict[str, Any], key: str) -> str:
    if key not in payload:
        raise ValueError(f"Missing required key: {key}")
    value = payload[key]
    if not isinstance(value, str):
        raise ValueError(f"{key} must be a string")
    return value


def _optional_number(payload: Dict[str, Any], key: str, default: float) -> float:
    value = payload.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{key} must be a number")
    return float(value)


def _optional_int(
    payload: Dict[str, Any], key: str, default: Optional[int], *, allow_none: bool = False
) -> Optional[int]:
    value = payload.get(key, default)
    if value is None and allow_none:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{key} must be an integer")
    return int(value)


def _optional_bool(payload: Dict[str, Any], key: str, default: bool) -> bool:
    value = payload.get(key, default)
    if not isinstance(value, bool):
        raise ValueError(f"{key} must be a boolean")
    return value


def load_detector_settings(path: Path) -> DetectorSettings:
    if not path.exists():
        raise FileNotFoundError(f"Detector config not found: {path}")
    raw = path.read_text(encoding="utf-8")
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid detector config JSON: {path}") from exc
    if not isinstance(payload, dict):
        raise ValueError("Detector config must be a JSON object")

    allowed = {f.name for f in fields(DetectorSettings)}
    unknown = sorted(set(payload.keys()) - allowed)
    if unknown:
        raise ValueError(f"Unknown detector config keys: {unknown}")

    backend = payload.get("backend")
    if backend is not None and not isinstance(backend, str):
        raise ValueError("backend must be a string")

    return DetectorSettings(
        model_path=_require_str(payload, "model_path"),
        labels_path=_require_str(payload, "labels_path"),
        backend=backend,
        labels_have_background=_optional_bool(payload, "labels_have_background", False),
        default_width=_optional_int(payload, "default_width", 640),
        default_height=_optional_int(payload, "default_height", 640),
        confidence_threshold=_optional_number(payload, "confidence_threshold", 0.5),
        iou_threshold=_optional_number(payload, "iou_threshold", 0.45),
        max_detections=_optional_int(payload, "max_detections", 300, allow_none=True),
        thread_count=_optional_int(payload, "thread_count", 1),
        channels_first=_optional_bool(payload, "channels_first", False),
    )
