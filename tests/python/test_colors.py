from __future__ import annotations

import pytest

from packages.graph.colors import DEFAULT_PALETTE, UNRESOLVED_COLOR, rgb_to_css, type_to_color


def test_palette_entries_win() -> None:
    assert type_to_color("int") == (0, 0, 255)
    assert type_to_color("ref<str>") == DEFAULT_PALETTE["ref<str>"]
    assert type_to_color("int", {"int": (9, 8, 7)}) == (9, 8, 7)


def test_custom_palette_replaces_default_lookup() -> None:
    # "int" is not in the custom palette, so it falls back to hashing.
    assert type_to_color("int", {"str": (1, 1, 1)}) != (0, 0, 255)


@pytest.mark.parametrize("type_str", ["list<int>", "pair<int, str>", "T", "map<str, list<*>>"])
def test_hashed_colors_are_stable_and_saturated(type_str: str) -> None:
    color = type_to_color(type_str)

    assert color == type_to_color(type_str)
    assert all(0 <= channel <= 255 for channel in color)
    # Brightness and saturation are both kept at or above 70%.
    assert max(color) >= 178
    assert min(color) <= 77


def test_css_rendering() -> None:
    assert rgb_to_css(UNRESOLVED_COLOR) == "rgb(128, 128, 128)"


@pytest.mark.parametrize(
    "type_str, expected",
    [("T100", (54, 58, 179)), ("list<t20>", (16, 149, 179))],
)
def test_half_channels_round_up(type_str, expected) -> None:
    assert type_to_color(type_str) == expected
