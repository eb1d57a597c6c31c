"""Tests for the filter catalog."""

import pytest

from livefilter.core import FilterKind, UnknownFilterKind
from livefilter.processing import (
    ParameterType,
    TRANSFORMS,
    get_all_categories,
    get_catalog,
    get_descriptor,
    get_filters_by_category,
)


def test_catalog_covers_every_kind():
    catalog = get_catalog()
    assert list(catalog) == list(FilterKind)
    assert set(TRANSFORMS) == set(FilterKind)


def test_catalog_is_read_only():
    catalog = get_catalog()
    with pytest.raises(TypeError):
        catalog[FilterKind.BLUR] = None
    with pytest.raises(TypeError):
        catalog[FilterKind.BLUR].parameters["radius"] = None


@pytest.mark.parametrize(
    "kind, defaults",
    [
        (FilterKind.GRAYSCALE, {"strength": 1.0}),
        (FilterKind.SEPIA, {"warmth": 0.8}),
        (FilterKind.BLUR, {"radius": 5}),
        (FilterKind.BRIGHTNESS, {"level": 1.2}),
        (FilterKind.CONTRAST, {"level": 1.3}),
        (FilterKind.SATURATION, {"level": 1.5}),
        (FilterKind.HUE_SHIFT, {"degrees": 30}),
        (FilterKind.EDGE_DETECT, {"threshold": 0.5}),
        (FilterKind.EMBOSS, {"strength": 0.8}),
        (FilterKind.VINTAGE, {"grain": 0.3, "vignette": 0.5}),
        (FilterKind.NEON_GLOW, {"glow": 1.2, "color": "#ff00ff"}),
    ],
)
def test_default_parameters(kind, defaults):
    assert get_descriptor(kind).default_parameters == defaults


def test_default_parameters_are_fresh_copies():
    descriptor = get_descriptor(FilterKind.SEPIA)
    params = descriptor.default_parameters
    params["warmth"] = 2.0
    assert descriptor.default_parameters["warmth"] == 0.8


def test_ignored_parameters_are_flagged():
    assert get_descriptor(FilterKind.VINTAGE).ignored_parameters == ["vignette"]
    assert get_descriptor(FilterKind.NEON_GLOW).ignored_parameters == ["color"]
    assert get_descriptor(FilterKind.BLUR).ignored_parameters == []


def test_categories():
    assert get_all_categories() == ["color", "vintage", "blur", "artistic", "modern"]
    color = [d.kind for d in get_filters_by_category("color")]
    assert color == [
        FilterKind.GRAYSCALE,
        FilterKind.BRIGHTNESS,
        FilterKind.CONTRAST,
        FilterKind.SATURATION,
        FilterKind.HUE_SHIFT,
    ]
    assert get_filters_by_category("nope") == []


def test_slider_ranges():
    radius = get_descriptor(FilterKind.BLUR).get_parameter("radius")
    assert radius.param_type == ParameterType.INT
    assert (radius.min_val, radius.max_val, radius.step) == (0, 20, 1)

    degrees = get_descriptor(FilterKind.HUE_SHIFT).get_parameter("degrees")
    assert (degrees.min_val, degrees.max_val) == (-180, 180)

    level = get_descriptor(FilterKind.BRIGHTNESS).get_parameter("level")
    assert (level.min_val, level.max_val, level.step) == (0.0, 3.0, 0.1)


def test_parameter_validate():
    level = get_descriptor(FilterKind.CONTRAST).get_parameter("level")
    assert level.validate(1.0) == (True, "")
    assert level.validate(4.0)[0] is False
    assert level.validate("high")[0] is False
    assert level.validate(True)[0] is False

    color = get_descriptor(FilterKind.NEON_GLOW).get_parameter("color")
    assert color.validate("#00ffcc")[0] is True
    assert color.validate(12)[0] is False


@pytest.mark.parametrize("text", ["edge-detect", "EDGE_DETECT", " edge_detect "])
def test_kind_parse_variants(text):
    assert FilterKind.parse(text) == FilterKind.EDGE_DETECT


def test_kind_parse_neon_alias():
    assert get_descriptor("neon").kind == FilterKind.NEON_GLOW


def test_unknown_kind():
    with pytest.raises(UnknownFilterKind):
        get_descriptor("sharpen")
    # Callers that only know about ValueError still catch it
    with pytest.raises(ValueError):
        FilterKind.parse("sharpen")
