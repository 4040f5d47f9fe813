import pytest

from export_service.presets import (
    DEFAULT_BACKGROUND_ID,
    DEFAULT_FONT_SIZE,
    FONT_PRESETS,
    ReaderPreferences,
    resolve_preferences,
)
from export_service.slugs import slugify
from export_service.theme import darken_color, derive_theme, hex_to_rgb, text_on_background


@pytest.mark.parametrize(
    "value, expected",
    [("#ffffff", (255, 255, 255)), ("#fff", (255, 255, 255)), ("1f2430", (31, 36, 48)), ("#12", None), ("#zzzzzz", None)],
)
def test_hex_to_rgb(value, expected):
    assert hex_to_rgb(value) == expected


def test_darken_color():
    assert darken_color("#ffffff", 0.1) == "rgb(230, 230, 230)"
    assert darken_color("#0b0d11", 0.05) == "rgb(10, 12, 16)"
    assert darken_color("not-a-colour") == "not-a-colour"


def test_text_on_background():
    assert text_on_background("#ffffff") == "#0b0d11"
    assert text_on_background("#1f2430") == "#f8fafc"
    assert text_on_background("bogus") == "#f8fafc"


def test_defaults_when_nothing_is_given():
    prefs = resolve_preferences()
    assert prefs.background_id == DEFAULT_BACKGROUND_ID
    assert prefs.font_family == FONT_PRESETS["serif"]
    assert prefs.font_size == "18px"
    assert prefs.line_height == "1.6"
    assert prefs.doc_width == "760px"


def test_camel_case_keys_and_per_field_fallback():
    prefs = resolve_preferences(
        {"backgroundId": "dark-slate", "fontId": "no-such-font", "fontSize": "20px", "lineHeight": 1.8, "docWidthId": "wide"}
    )
    assert prefs.background_id == "dark-slate"
    assert prefs.font_family == FONT_PRESETS["serif"]
    assert prefs.font_size == "20px"
    assert prefs.line_height == "1.8"
    assert prefs.doc_width == "900px"


@pytest.mark.parametrize("font_size", ["huge", "12", "1.2.3em", "red; }", ""])
def test_malformed_font_size_falls_back(font_size):
    assert resolve_preferences(ReaderPreferences(font_size=font_size)).font_size == DEFAULT_FONT_SIZE


@pytest.mark.parametrize("line_height", [0, -1, 42, "tall", "nan"])
def test_malformed_line_height_falls_back(line_height):
    assert resolve_preferences({"line_height": line_height}).line_height == "1.6"


def test_mistyped_field_only_loses_that_field():
    prefs = resolve_preferences({"fontSize": 18, "docWidthId": "narrow"})
    assert prefs.font_size == DEFAULT_FONT_SIZE
    assert prefs.doc_width == "620px"


def test_dark_presets_darken_gently():
    light = derive_theme(resolve_preferences({"backgroundId": "clean-light"}))
    dark = derive_theme(resolve_preferences({"backgroundId": "midnight-ink"}))
    assert light.context_surface == "rgb(230, 230, 230)"
    assert light.context_text == "#0b0d11"
    assert dark.context_surface == "rgb(10, 12, 16)"
    assert dark.context_text == "#f8fafc"
    assert light.surface_image == "none"


@pytest.mark.parametrize(
    "text, slug",
    [
        ("Hello, World!", "hello-world"),
        ("  Crème brûlée  ", "creme-brulee"),
        ("Straße", "strasse"),
        ("!!! ???", ""),
        ("a--b__c", "a-b-c"),
    ],
)
def test_slugify(text, slug):
    assert slugify(text) == slug
