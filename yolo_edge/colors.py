from __future__ import annotations

from typing import Tuple


Color = Tuple[int, int, int]

# RGB. Fixed and read-only; indexed by `class_index % len(PALETTE)`.
PALETTE: Tuple[Color, ...] = (
    (255, 0, 0),  # red
    (90, 200, 250),  # light blue
    (0, 255, 0),  # green
    (255, 128, 0),  # orange
    (0, 0, 255),  # blue
    (128, 0, 128),  # purple
    (255, 0, 255),  # magenta
    (255, 255, 0),  # yellow
    (0, 255, 255),  # cyan
    (153, 102, 51),  # brown
)

COLOR_STRIDE = 10


def _shift_brightness(color: Color, percentage: float) -> Color:
    delta = percentage / 100.0 * 255.0
    return tuple(int(round(min(max(c + delta, 0.0), 255.0))) for c in color)  # type: ignore[return-value]


def color_for_class(class_index: int) -> Color:
    """
    Deterministic RGB display color for a class index.

    Indices that wrap around the palette get a progressively darker shade of
    the same base color.
    """

    if class_index < 0:
        raise ValueError(f"class_index must be >= 0, got {class_index}")

    base = PALETTE[class_index % len(PALETTE)]
    percentage = (COLOR_STRIDE // 2 - class_index // len(PALETTE)) * COLOR_STRIDE
    return _shift_brightness(base, percentage)
