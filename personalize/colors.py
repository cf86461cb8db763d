from typing import Tuple

from PIL import ImageColor

from .models import BrandingSnapshot

DEFAULT_PRIMARY = "#000000"
DEFAULT_SECONDARY = "#666666"


def resolve_color(color_ref: str, branding: BrandingSnapshot) -> str:
    """
    Map a zone's color reference to a concrete color.

    `brand_primary` / `brand_secondary` pick the subscriber's brand colors
    (with fallback defaults); anything else is a literal color and is
    returned unchanged.
    """
    if color_ref == "brand_primary":
        return branding.color_primary or DEFAULT_PRIMARY
    if color_ref == "brand_secondary":
        return branding.color_secondary or DEFAULT_SECONDARY
    return color_ref


def to_rgba(color: str) -> Tuple[int, int, int, int]:
    """
    Parse '#RGB', '#RRGGBB', '#RRGGBBAA' or a CSS color name into RGBA.

    Falls back to opaque black if the value can't be parsed.
    """
    s = (color or "").strip()
    if s and s[0] != "#" and len(s) in (6, 8) and all(ch in "0123456789abcdefABCDEF" for ch in s):
        s = f"#{s}"
    try:
        return ImageColor.getcolor(s, "RGBA")
    except ValueError:
        return (0, 0, 0, 255)
