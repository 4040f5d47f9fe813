"""
Reader preference presets for exported documents.

Unknown preset ids and malformed free-form values never fail an export; each
field falls back to its default independently.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError


@dataclass(frozen=True)
class BackgroundPreset:
    background_color: str
    color: str
    surface: str
    border: str
    surface_image: str | None = None
    surface_size: str = "24px 24px"
    surface_position: str = "0 0"
    surface_repeat: str = "repeat"


BACKGROUND_PRESETS: dict[str, BackgroundPreset] = {
    "clean-light": BackgroundPreset("#ffffff", "#1f2933", "#ffffff", "#e5e7eb"),
    "soft-gray": BackgroundPreset("#f2f4f7", "#111827", "#f2f4f7", "#e5e7eb"),
    "warm-sepia": BackgroundPreset("#f6efe5", "#2f1f0f", "#f6efe5", "#e8dccd"),
    "dark-slate": BackgroundPreset("#1f2430", "#f5f5f5", "#1f2430", "#2f3647"),
    "midnight-ink": BackgroundPreset("#0b0d11", "#e5e7eb", "#0b0d11", "#1c2230"),
    "graphite": BackgroundPreset("#191b22", "#d6d9df", "#191b22", "#2a303f"),
    "noir-sepia": BackgroundPreset("#1a1410", "#f0e2d0", "#1a1410", "#2f251c"),
    "paper-texture": BackgroundPreset(
        "#fbf8f1",
        "#2f2a25",
        "#fbf8f1",
        "#eae1d3",
        surface_image=(
            "linear-gradient(rgba(0,0,0,0.02) 1px, transparent 0), "
            "linear-gradient(90deg, rgba(0,0,0,0.02) 1px, transparent 0)"
        ),
        surface_size="20px 20px",
    ),
    "newsprint": BackgroundPreset(
        "#f1ede4",
        "#2c241b",
        "#f1ede4",
        "#e0d5c3",
        surface_image=(
            "linear-gradient(180deg, rgba(0,0,0,0.015) 25%, transparent 25%, transparent 50%, "
            "rgba(0,0,0,0.015) 50%, rgba(0,0,0,0.015) 75%, transparent 75%, transparent)"
        ),
        surface_size="8px 8px",
    ),
}

FONT_PRESETS: dict[str, str] = {
    "serif": "'Merriweather', serif",
    "sans": "'Inter', system-ui, -apple-system, sans-serif",
    "slab": "'Roboto Slab', 'Merriweather', serif",
    "humanist": "'Source Sans Pro', 'Inter', sans-serif",
    "mono": "'JetBrains Mono', 'SFMono-Regular', monospace",
    "georgia": "Georgia, 'Times New Roman', serif",
    "open-sans": "'Open Sans', 'Inter', sans-serif",
    "lora": "'Lora', 'Merriweather', serif",
    "plex-sans": "'IBM Plex Sans', 'Inter', sans-serif",
    "noto-serif": "'Noto Serif', 'Merriweather', serif",
}

DOC_WIDTH_PRESETS: dict[str, str] = {
    "narrow": "620px",
    "default": "760px",
    "wide": "900px",
    "full": "100%",
}

DEFAULT_BACKGROUND_ID = "clean-light"
DEFAULT_FONT_ID = "serif"
DEFAULT_FONT_SIZE = "18px"
DEFAULT_LINE_HEIGHT = 1.6
DEFAULT_DOC_WIDTH_ID = "default"

_FONT_SIZE = re.compile(r"^\d+(\.\d+)?(px|rem|em|pt|%)$")
_MAX_LINE_HEIGHT = 10.0


class ReaderPreferences(BaseModel):
    """Reader-chosen presentation options. Accepts snake_case or camelCase keys."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    background_id: str | None = Field(default=None, alias="backgroundId")
    font_id: str | None = Field(default=None, alias="fontId")
    font_size: str | None = Field(default=None, alias="fontSize")
    line_height: float | str | None = Field(default=None, alias="lineHeight")
    doc_width_id: str | None = Field(default=None, alias="docWidthId")


@dataclass(frozen=True)
class ResolvedPreferences:
    background_id: str
    background: BackgroundPreset
    font_id: str
    font_family: str
    font_size: str
    line_height: str
    doc_width_id: str
    doc_width: str


def resolve_preferences(prefs: ReaderPreferences | Mapping[str, Any] | None = None) -> ResolvedPreferences:
    prefs = _coerce(prefs)

    background_id = prefs.background_id if prefs.background_id in BACKGROUND_PRESETS else DEFAULT_BACKGROUND_ID
    font_id = prefs.font_id if prefs.font_id in FONT_PRESETS else DEFAULT_FONT_ID
    doc_width_id = prefs.doc_width_id if prefs.doc_width_id in DOC_WIDTH_PRESETS else DEFAULT_DOC_WIDTH_ID

    return ResolvedPreferences(
        background_id=background_id,
        background=BACKGROUND_PRESETS[background_id],
        font_id=font_id,
        font_family=FONT_PRESETS[font_id],
        font_size=_font_size(prefs.font_size),
        line_height=_line_height(prefs.line_height),
        doc_width_id=doc_width_id,
        doc_width=DOC_WIDTH_PRESETS[doc_width_id],
    )


def _coerce(prefs: ReaderPreferences | Mapping[str, Any] | None) -> ReaderPreferences:
    if prefs is None:
        return ReaderPreferences()
    if isinstance(prefs, ReaderPreferences):
        return prefs
    try:
        return ReaderPreferences.model_validate(dict(prefs))
    except ValidationError:
        # A mistyped field only loses that field.
        valid = {}
        for key, value in prefs.items():
            try:
                ReaderPreferences.model_validate({key: value})
            except ValidationError:
                continue
            valid[key] = value
        return ReaderPreferences.model_validate(valid)


def _font_size(raw: str | None) -> str:
    if isinstance(raw, str) and _FONT_SIZE.match(raw.strip()):
        return raw.strip()
    return DEFAULT_FONT_SIZE


def _line_height(raw: float | str | None) -> str:
    try:
        value = float(raw) if raw is not None else DEFAULT_LINE_HEIGHT
    except ValueError:
        value = DEFAULT_LINE_HEIGHT
    if not 0 < value <= _MAX_LINE_HEIGHT:
        value = DEFAULT_LINE_HEIGHT
    return f"{value:g}"
