import io
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Tuple

from PIL import Image, ImageChops, ImageDraw, ImageFont, ImageOps, UnidentifiedImageError

from .colors import resolve_color, to_rgba
from .errors import FetchError, OptionalAssetError
from .fetch import fetch_image
from .models import BrandingSnapshot, FillZone, ImageZone, TextZone, ZoneKind
from .zones import RenderTask


Size = Tuple[int, int]

# Circle edges are drawn at this multiple and downsampled for anti-aliasing.
MASK_SUPERSAMPLE = 4


@dataclass
class Layer:
    """A rendered RGBA piece ready to be composited at (left, top)."""

    kind: ZoneKind
    image: Image.Image
    left: int = 0
    top: int = 0
    text: Optional[str] = None
    color: Optional[str] = None


def decode_image(data: bytes) -> Image.Image:
    img = Image.open(io.BytesIO(data))
    img.load()
    return img.convert("RGBA")


def cover_fit(img: Image.Image, size: Size) -> Image.Image:
    """
    Resize + crop so the image fills `size` exactly, keeping its aspect
    ratio and cropping the overflow evenly from both sides.
    """
    return ImageOps.fit(img, size, method=Image.LANCZOS, centering=(0.5, 0.5))


def inside_fit(img: Image.Image, size: Size) -> Image.Image:
    """
    Resize so the whole image fits within `size` without cropping. The
    result may be smaller than `size` on one axis.
    """
    return ImageOps.contain(img, size, method=Image.LANCZOS)


def circle_mask(size: int) -> Image.Image:
    """Return an 'L' mask of `size`x`size` with a centered, filled circle."""
    big = size * MASK_SUPERSAMPLE
    mask = Image.new("L", (big, big), 0)
    ImageDraw.Draw(mask).ellipse((0, 0, big - 1, big - 1), fill=255)
    return mask.resize((size, size), Image.LANCZOS)


def circular_crop(img: Image.Image, width: int, height: int) -> Image.Image:
    """
    Cover-fit to a square of the smaller zone dimension and cut a circle
    out of it. Existing transparency in the source is preserved.
    """
    size = min(width, height)
    square = cover_fit(img.convert("RGBA"), (size, size))
    alpha = ImageChops.multiply(square.getchannel("A"), circle_mask(size))
    square.putalpha(alpha)
    return square


class LayerRenderer:
    """
    Render one RenderTask into a Layer.

    Photo and logo tasks fetch their source image and raise
    OptionalAssetError on any failure; text and fill tasks never fetch.
    """

    def __init__(
        self,
        fetch: Callable[[str], bytes] = fetch_image,
        font_path: Optional[str] = None,
        bold_font_path: Optional[str] = None,
    ) -> None:
        self.fetch = fetch
        self.font_path = font_path
        self.bold_font_path = bold_font_path

    def render(self, task: RenderTask, branding: BrandingSnapshot, canvas_size: Size) -> Layer:
        zone = task.zone
        if isinstance(zone, ImageZone):
            return self._render_image(zone, task.value or "")
        if isinstance(zone, TextZone):
            return self._render_text(zone, task.value or "", branding, canvas_size)
        if isinstance(zone, FillZone):
            return self._render_fill(zone, branding)
        raise TypeError(f"Unsupported zone type: {type(zone).__name__}")

    def _render_image(self, zone: ImageZone, url: str) -> Layer:
        try:
            img = decode_image(self.fetch(url))
            if zone.shape == "circle":
                processed = circular_crop(img, zone.width, zone.height)
            elif zone.kind is ZoneKind.PHOTO:
                processed = cover_fit(img, (zone.width, zone.height))
            else:
                processed = inside_fit(img, (zone.width, zone.height))
        except (FetchError, UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
            raise OptionalAssetError(zone.kind.value, str(e)) from e

        return Layer(kind=zone.kind, image=processed, left=zone.x, top=zone.y)

    def _render_text(
        self,
        zone: TextZone,
        text: str,
        branding: BrandingSnapshot,
        canvas_size: Size,
    ) -> Layer:
        color = resolve_color(zone.color_ref, branding)
        rgba = to_rgba(color)
        bold = zone.kind is ZoneKind.NAME
        font = load_font(
            zone.font_size,
            bold=bold,
            font_path=self.bold_font_path if bold else self.font_path,
        )
        # Collapse whitespace the way SVG <text> does; keeps the text single-line.
        text = " ".join(text.split())

        # Transparent pixels carry the ink color so anti-aliased edges don't
        # darken when alpha-composited.
        overlay = Image.new("RGBA", canvas_size, rgba[:3] + (0,))
        draw = ImageDraw.Draw(overlay)
        draw.text((zone.x, zone.y), text, font=font, fill=rgba, anchor="ls")

        return Layer(kind=zone.kind, image=overlay, text=text, color=color)

    @staticmethod
    def _render_fill(zone: FillZone, branding: BrandingSnapshot) -> Layer:
        color = resolve_color(zone.color_ref, branding)
        bar = Image.new("RGBA", (zone.width, zone.height), to_rgba(color))
        return Layer(kind=zone.kind, image=bar, left=zone.x, top=zone.y, color=color)


REGULAR_FONTS = (
    "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
    "/usr/share/fonts/truetype/liberation/LiberationSans-Regular.ttf",
    "/System/Library/Fonts/Supplemental/Arial.ttf",
    "/Library/Fonts/Arial.ttf",
    "C:/Windows/Fonts/arial.ttf",
    "arial.ttf",
)

BOLD_FONTS = (
    "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",
    "/usr/share/fonts/truetype/liberation/LiberationSans-Bold.ttf",
    "/System/Library/Fonts/Supplemental/Arial Bold.ttf",
    "/Library/Fonts/Arial Bold.ttf",
    "C:/Windows/Fonts/arialbd.ttf",
    "arialbd.ttf",
)


def load_font(size: int, bold: bool = False, font_path: Optional[str] = None) -> ImageFont.FreeTypeFont:
    """
    Load a TrueType font, trying (in order) an explicit font path, the
    project's fonts/ folder, then common system fonts. Falls back to
    Pillow's bundled scalable default font.
    """
    candidates = []
    if font_path:
        candidates.append(font_path)

    fonts_dir = Path(__file__).parent.parent / "fonts"
    if fonts_dir.exists():
        wanted = "bold" if bold else "regular"
        for font_file in sorted(fonts_dir.glob("*.[ot]tf")):
            if wanted in font_file.stem.lower():
                candidates.append(str(font_file))

    candidates.extend(BOLD_FONTS if bold else REGULAR_FONTS)

    for candidate in candidates:
        try:
            return ImageFont.truetype(candidate, size=size)
        except OSError:
            continue

    return ImageFont.load_default(size=size)
