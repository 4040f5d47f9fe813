from __future__ import annotations

import math
from dataclasses import dataclass

from export_service.presets import ResolvedPreferences

LIGHT_TEXT = "#f8fafc"
DARK_TEXT = "#0b0d11"
LUMINANCE_THRESHOLD = 0.35

# Background ids containing any of these get a gentler darkening for context blocks.
_DARK_MARKERS = ("dark", "midnight", "graphite", "noir")


@dataclass(frozen=True)
class Theme:
    background: str
    text: str
    surface: str
    border: str
    surface_image: str
    surface_size: str
    surface_position: str
    surface_repeat: str
    font_family: str
    font_size: str
    line_height: str
    doc_width: str
    context_surface: str
    context_text: str


def hex_to_rgb(value: str) -> tuple[int, int, int] | None:
    """Parse `#rgb` or `#rrggbb` (leading `#` optional). Returns None if malformed."""
    digits = value.strip().lstrip("#")
    if len(digits) == 3:
        digits = "".join(c * 2 for c in digits)
    if len(digits) != 6:
        return None
    try:
        number = int(digits, 16)
    except ValueError:
        return None
    return (number >> 16) & 255, (number >> 8) & 255, number & 255


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def darken_color(value: str, amount: float = 0.1) -> str:
    rgb = hex_to_rgb(value)
    if rgb is None:
        return value
    factor = 1 - amount
    r, g, b = (_round_half_up(c * factor) for c in rgb)
    return f"rgb({r}, {g}, {b})"


def relative_luminance(rgb: tuple[int, int, int]) -> float:
    def channel(v: int) -> float:
        c = v / 255
        return c / 12.92 if c <= 0.03928 else ((c + 0.055) / 1.055) ** 2.4

    r, g, b = (channel(v) for v in rgb)
    return 0.2126 * r + 0.7152 * g + 0.0722 * b


def text_on_background(background: str, light_text: str = LIGHT_TEXT, dark_text: str = DARK_TEXT) -> str:
    rgb = hex_to_rgb(background)
    if rgb is None:
        return light_text
    return dark_text if relative_luminance(rgb) > LUMINANCE_THRESHOLD else light_text


def derive_theme(prefs: ResolvedPreferences) -> Theme:
    preset = prefs.background
    gentle = any(marker in prefs.background_id for marker in _DARK_MARKERS)
    return Theme(
        background=preset.background_color,
        text=preset.color,
        surface=preset.surface,
        border=preset.border,
        surface_image=preset.surface_image or "none",
        surface_size=preset.surface_size,
        surface_position=preset.surface_position,
        surface_repeat=preset.surface_repeat,
        font_family=prefs.font_family,
        font_size=prefs.font_size,
        line_height=prefs.line_height,
        doc_width=prefs.doc_width,
        context_surface=darken_color(preset.background_color, 0.05 if gentle else 0.1),
        context_text=text_on_background(preset.background_color),
    )
