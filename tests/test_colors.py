import pytest

from personalize.colors import resolve_color, to_rgba
from personalize.models import BrandingSnapshot


def test_brand_primary_uses_branding_or_default():
    assert resolve_color("brand_primary", BrandingSnapshot(color_primary="#112233")) == "#112233"
    assert resolve_color("brand_primary", BrandingSnapshot()) == "#000000"


def test_brand_secondary_uses_branding_or_default():
    assert resolve_color("brand_secondary", BrandingSnapshot(color_secondary="#abcdef")) == "#abcdef"
    assert resolve_color("brand_secondary", BrandingSnapshot()) == "#666666"


@pytest.mark.parametrize("literal", ["#ff00aa", "white", "rgb(1, 2, 3)"])
def test_literal_colors_pass_through(literal):
    assert resolve_color(literal, BrandingSnapshot(color_primary="#112233")) == literal


@pytest.mark.parametrize(
    "color, expected",
    [
        ("#112233", (0x11, 0x22, 0x33, 255)),
        ("112233", (0x11, 0x22, 0x33, 255)),
        ("#fff", (255, 255, 255, 255)),
        ("#11223380", (0x11, 0x22, 0x33, 0x80)),
        ("white", (255, 255, 255, 255)),
        ("not-a-color", (0, 0, 0, 255)),
    ],
)
def test_to_rgba(color, expected):
    assert to_rgba(color) == expected
