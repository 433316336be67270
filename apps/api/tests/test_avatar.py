"""Tests for avatar helpers."""
import pytest

from mediature.utils.avatar import extract_initials, string_to_color


@pytest.mark.parametrize(
    "full_name, expected",
    [
        ("Jean Derrien", "JD"),
        ("jean dupont", "JD"),
        ("Jean-Pierre Dupont", "JP"),
        ("Jean-Pierre de la Fontaine", "JP"),
        ("Cher", "C"),
        ("", ""),
    ],
)
def test_extract_initials(full_name, expected):
    assert extract_initials(full_name) == expected


def test_string_to_color_known_values():
    assert string_to_color("") == "#000000"
    assert string_to_color("a") == "#610000"
    assert string_to_color("ab") == "#210c00"


def test_string_to_color_is_stable_and_well_formed():
    color = string_to_color("Jean Derrien")
    assert color == string_to_color("Jean Derrien")
    assert len(color) == 7
    assert color.startswith("#")
    int(color[1:], 16)


def test_string_to_color_handles_long_and_non_ascii_names():
    # Exercises 32-bit overflow and UTF-16 surrogate pairs
    assert len(string_to_color("Élodie Château-Lefèvre " * 20)) == 7
    assert len(string_to_color("🙂")) == 7
