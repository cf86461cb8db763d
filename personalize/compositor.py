import io
import logging
from typing import Dict, Sequence

from PIL import Image

from .models import RENDER_ORDER
from .render import Layer

logger = logging.getLogger(__name__)

# format name -> (Pillow format, content type)
OUTPUT_FORMATS: Dict[str, tuple] = {
    "png": ("PNG", "image/png"),
    "jpeg": ("JPEG", "image/jpeg"),
    "jpg": ("JPEG", "image/jpeg"),
    "webp": ("WEBP", "image/webp"),
}


def content_type_for(output_format: str) -> str:
    return OUTPUT_FORMATS[_normalize_format(output_format)][1]


def compose(template_bytes: bytes, layers: Sequence[Layer], output_format: str = "png") -> bytes:
    """
    Overlay `layers` on the template and encode the flattened result.

    Layers are applied in the fixed zone order (photo, logo, name, tagline,
    brand bar) regardless of the order they were passed in; each is a plain
    "over" blend at its (left, top). With no layers and a template already
    in the requested format, the template bytes are returned untouched.
    """
    fmt, _ = OUTPUT_FORMATS[_normalize_format(output_format)]

    base = Image.open(io.BytesIO(template_bytes))
    if not layers and base.format == fmt:
        return template_bytes

    canvas = base.convert("RGBA")
    ordered = sorted(layers, key=lambda layer: RENDER_ORDER.index(layer.kind))
    for layer in ordered:
        canvas.alpha_composite(layer.image.convert("RGBA"), dest=(layer.left, layer.top))
        logger.debug("Composited %s layer at (%d, %d)", layer.kind.value, layer.left, layer.top)

    return encode(canvas, fmt)


def encode(img: Image.Image, fmt: str) -> bytes:
    if fmt == "JPEG":
        img = img.convert("RGB")
    buffer = io.BytesIO()
    if fmt == "WEBP":
        img.save(buffer, format=fmt, lossless=True)
    else:
        img.save(buffer, format=fmt)
    return buffer.getvalue()


def _normalize_format(output_format: str) -> str:
    key = (output_format or "png").lower()
    if key not in OUTPUT_FORMATS:
        raise ValueError(f"Unsupported output format: {output_format}")
    return key
