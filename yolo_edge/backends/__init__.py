"""
Optional inference backends for yolo_edge.

Backends are kept in a separate module so core functionality (pre/post-processing)
stays lightweight and can be used without installing inference runtimes. Each
backend exposes `infer(blob) -> np.ndarray`.
"""

from __future__ import annotations

__all__ = []
