import json
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, Literal, Mapping, Optional, Union

from .errors import InvalidLayoutError


Shape = Literal["rect", "circle"]
Fit = Literal["cover", "inside"]


class ZoneKind(str, Enum):
    PHOTO = "photo"
    LOGO = "logo"
    NAME = "name"
    TAGLINE = "tagline"
    BRAND_BAR = "brand_bar"


# Fixed z-order, bottom to top.
RENDER_ORDER = (
    ZoneKind.PHOTO,
    ZoneKind.LOGO,
    ZoneKind.NAME,
    ZoneKind.TAGLINE,
    ZoneKind.BRAND_BAR,
)

DEFAULT_FONT_SIZES: Dict[ZoneKind, int] = {
    ZoneKind.NAME: 28,
    ZoneKind.TAGLINE: 18,
}

DEFAULT_FITS: Dict[ZoneKind, str] = {
    ZoneKind.PHOTO: "cover",
    ZoneKind.LOGO: "inside",
}


@dataclass(frozen=True)
class ImageZone:
    kind: ZoneKind
    x: int
    y: int
    width: int
    height: int
    shape: Shape = "rect"
    fit: Fit = "cover"


@dataclass(frozen=True)
class TextZone:
    kind: ZoneKind
    x: int
    y: int
    font_size: int
    color_ref: str = "brand_primary"


@dataclass(frozen=True)
class FillZone:
    kind: ZoneKind
    x: int
    y: int
    width: int
    height: int
    color_ref: str = "brand_primary"


Zone = Union[ImageZone, TextZone, FillZone]


@dataclass(frozen=True)
class LayoutConfig:
    canvas_width: int
    canvas_height: int
    zones: Mapping[ZoneKind, Zone] = field(default_factory=dict)


@dataclass(frozen=True)
class BrandingSnapshot:
    """
    Point-in-time copy of a subscriber's branding.

    Field names on the wire follow the subscriber row
    (`brand_color_primary`, `brand_color_secondary`, ...).
    """

    photo_url: Optional[str] = None
    logo_url: Optional[str] = None
    color_primary: Optional[str] = None
    color_secondary: Optional[str] = None
    name: Optional[str] = None
    tagline: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "BrandingSnapshot":
        return cls(
            photo_url=data.get("photo_url"),
            logo_url=data.get("logo_url"),
            color_primary=data.get("brand_color_primary") or data.get("color_primary"),
            color_secondary=data.get("brand_color_secondary") or data.get("color_secondary"),
            name=data.get("name"),
            tagline=data.get("tagline"),
        )

    def to_dict(self) -> Dict[str, Optional[str]]:
        data = asdict(self)
        data["brand_color_primary"] = data.pop("color_primary")
        data["brand_color_secondary"] = data.pop("color_secondary")
        return data

    def input_for(self, kind: ZoneKind) -> Optional[str]:
        """Branding value a zone needs, or None when the zone needs no input."""
        return {
            ZoneKind.PHOTO: self.photo_url,
            ZoneKind.LOGO: self.logo_url,
            ZoneKind.NAME: self.name,
            ZoneKind.TAGLINE: self.tagline,
        }.get(kind)


def parse_layout(config: Union[str, Mapping[str, Any], LayoutConfig]) -> LayoutConfig:
    """
    Validate a template's layout configuration.

    Accepts the JSON stored on the template row (as a string or an already
    decoded dict). Zone names outside the known vocabulary are ignored.
    """
    if isinstance(config, LayoutConfig):
        return config

    if isinstance(config, str):
        try:
            config = json.loads(config)
        except ValueError as e:
            raise InvalidLayoutError(f"layout_config must be valid JSON: {e}") from e

    if not isinstance(config, Mapping):
        raise InvalidLayoutError("layout_config must be an object")

    width = config.get("width", config.get("canvas_width"))
    height = config.get("height", config.get("canvas_height"))
    if width is None or height is None:
        raise InvalidLayoutError("layout_config is missing canvas width/height")
    canvas_width = _positive_int(width, "canvas width")
    canvas_height = _positive_int(height, "canvas height")

    raw_zones = config.get("zones")
    if raw_zones is None:
        raw_zones = {}
    if not isinstance(raw_zones, Mapping):
        raise InvalidLayoutError("layout_config.zones must be an object")

    zones: Dict[ZoneKind, Zone] = {}
    for kind in RENDER_ORDER:
        raw = raw_zones.get(kind.value)
        if raw is None:
            continue
        if not isinstance(raw, Mapping):
            raise InvalidLayoutError(f"zone '{kind.value}' must be an object")
        zones[kind] = _parse_zone(kind, raw)

    return LayoutConfig(canvas_width=canvas_width, canvas_height=canvas_height, zones=zones)


def _parse_zone(kind: ZoneKind, raw: Mapping[str, Any]) -> Zone:
    label = f"zones.{kind.value}"
    x = _non_negative_int(raw.get("x", 0), f"{label}.x")
    y = _non_negative_int(raw.get("y", 0), f"{label}.y")
    color_ref = raw.get("color") or raw.get("color_ref") or "brand_primary"

    if kind in (ZoneKind.PHOTO, ZoneKind.LOGO):
        shape = raw.get("shape") or "rect"
        if shape not in ("rect", "circle") or (shape == "circle" and kind is not ZoneKind.PHOTO):
            raise InvalidLayoutError(f"{label}.shape '{shape}' is not supported")
        # Fit follows the zone kind; a "fit" key in the layout is ignored.
        fit = DEFAULT_FITS[kind]
        return ImageZone(
            kind=kind,
            x=x,
            y=y,
            width=_positive_int(raw.get("width"), f"{label}.width"),
            height=_positive_int(raw.get("height"), f"{label}.height"),
            shape=shape,
            fit=fit,
        )

    if kind in (ZoneKind.NAME, ZoneKind.TAGLINE):
        # Missing or 0 means the default size.
        font_size = raw.get("font_size")
        return TextZone(
            kind=kind,
            x=x,
            y=y,
            font_size=(
                _positive_int(font_size, f"{label}.font_size")
                if font_size
                else DEFAULT_FONT_SIZES[kind]
            ),
            color_ref=str(color_ref),
        )

    return FillZone(
        kind=kind,
        x=x,
        y=y,
        width=_positive_int(raw.get("width"), f"{label}.width"),
        height=_positive_int(raw.get("height"), f"{label}.height"),
        color_ref=str(color_ref),
    )


def _as_int(value: Any, label: str) -> int:
    if isinstance(value, bool):
        raise InvalidLayoutError(f"{label} must be an integer, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    raise InvalidLayoutError(f"{label} must be an integer, got {value!r}")


def _positive_int(value: Any, label: str) -> int:
    number = _as_int(value, label)
    if number <= 0:
        raise InvalidLayoutError(f"{label} must be positive, got {number}")
    return number


def _non_negative_int(value: Any, label: str) -> int:
    number = _as_int(value, label)
    if number < 0:
        raise InvalidLayoutError(f"{label} must not be negative, got {number}")
    return number
