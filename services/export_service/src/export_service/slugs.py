from __future__ import annotations

from slugify import slugify as _slugify


def slugify(text: str) -> str:
    """
    Lower-case ASCII slug with runs of anything else collapsed to a single `-`.

    Non-Latin text is transliterated ("Straße" -> "strasse"). May return an
    empty string for text made only of symbols; callers pick their own fallback.
    """
    return _slugify(text, separator="-", lowercase=True)
