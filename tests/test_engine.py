import io
import logging

import pytest
from PIL import Image, ImageChops

from personalize.engine import PersonalizationEngine
from personalize.errors import FetchError, InvalidLayoutError
from personalize.models import BrandingSnapshot, ZoneKind, parse_layout

TEMPLATE_URL = "https://cdn.test/templates/open-house.png"
PHOTO_URL = "https://cdn.test/photos/jane.jpg"
LOGO_URL = "https://cdn.test/logos/acme.png"
WHITE = (255, 255, 255, 255)

NAME_LAYOUT = {
    "width": 1080,
    "height": 1080,
    "zones": {"name": {"x": 40, "y": 1000, "color": "brand_primary", "font_size": 28}},
}


@pytest.fixture
def template_fetcher(fetcher, png):
    fetcher.assets[TEMPLATE_URL] = png((1080, 1080), WHITE)
    return fetcher


def _open(data: bytes) -> Image.Image:
    return Image.open(io.BytesIO(data)).convert("RGBA")


def _close(pixel, expected, tolerance=2):
    return all(abs(a - b) <= tolerance for a, b in zip(pixel, expected))


def test_name_zone_is_drawn_at_its_baseline(template_fetcher):
    engine = PersonalizationEngine(fetch=template_fetcher)
    branding = BrandingSnapshot(name="Jane Doe", color_primary="#112233")

    layers = engine.render_layers(parse_layout(NAME_LAYOUT), branding)
    out = _open(engine.generate(TEMPLATE_URL, NAME_LAYOUT, branding))

    assert len(layers) == 1
    assert (layers[0].kind, layers[0].text, layers[0].color) == (ZoneKind.NAME, "Jane Doe", "#112233")

    template = _open(template_fetcher.assets[TEMPLATE_URL])
    left, top, right, bottom = ImageChops.difference(out.convert("RGB"), template.convert("RGB")).getbbox()
    assert 30 <= left <= 50
    assert 1000 - 40 <= top < 1000
    assert bottom <= 1000 + 15
    assert right < 40 + 28 * 10
    assert (0x11, 0x22, 0x33, 255) in set(out.crop((left, top, right, bottom)).getdata())


def test_empty_name_returns_template_unchanged(template_fetcher):
    engine = PersonalizationEngine(fetch=template_fetcher)
    branding = BrandingSnapshot(name="", color_primary="#112233")

    out = engine.generate(TEMPLATE_URL, NAME_LAYOUT, branding)

    assert out == template_fetcher.assets[TEMPLATE_URL]


def test_output_is_deterministic(template_fetcher, png):
    template_fetcher.assets[PHOTO_URL] = png((300, 400), (200, 10, 10, 255))
    layout = {
        "width": 1080,
        "height": 1080,
        "zones": {
            "photo": {"x": 40, "y": 40, "width": 200, "height": 300, "shape": "circle"},
            "name": {"x": 40, "y": 1000},
            "tagline": {"x": 40, "y": 1040, "color": "brand_secondary"},
            "brand_bar": {"x": 0, "y": 1060, "width": 1080, "height": 20},
        },
    }
    branding = BrandingSnapshot(
        photo_url=PHOTO_URL, name="Jane Doe", tagline="Homes that fit", color_primary="#112233"
    )
    engine = PersonalizationEngine(fetch=template_fetcher)

    assert engine.generate(TEMPLATE_URL, layout, branding) == engine.generate(TEMPLATE_URL, layout, branding)


def test_photo_and_logo_are_positioned(fetcher, png):
    fetcher.assets[TEMPLATE_URL] = png((300, 300), WHITE)
    fetcher.assets[PHOTO_URL] = png((50, 100), (255, 0, 0, 255))
    fetcher.assets[LOGO_URL] = png((100, 50), (0, 0, 255, 255))
    layout = {
        "width": 300,
        "height": 300,
        "zones": {
            "photo": {"x": 10, "y": 20, "width": 40, "height": 40},
            "logo": {"x": 200, "y": 200, "width": 80, "height": 80},
        },
    }
    branding = BrandingSnapshot(photo_url=PHOTO_URL, logo_url=LOGO_URL)

    out = _open(PersonalizationEngine(fetch=fetcher).generate(TEMPLATE_URL, layout, branding))

    assert _close(out.getpixel((30, 40)), (255, 0, 0, 255))
    assert out.getpixel((5, 5)) == WHITE
    # Inside-fit logo is 80x40: blue at the top of the zone, template below it.
    assert _close(out.getpixel((240, 210)), (0, 0, 255, 255))
    assert out.getpixel((240, 270)) == WHITE


def test_circle_photo_leaves_zone_corners_untouched(fetcher, png):
    fetcher.assets[TEMPLATE_URL] = png((300, 300), WHITE)
    fetcher.assets[PHOTO_URL] = png((400, 400), (255, 0, 0, 255))
    layout = {
        "width": 300,
        "height": 300,
        "zones": {"photo": {"x": 0, "y": 0, "width": 200, "height": 300, "shape": "circle"}},
    }

    out = _open(
        PersonalizationEngine(fetch=fetcher).generate(TEMPLATE_URL, layout, BrandingSnapshot(photo_url=PHOTO_URL))
    )

    assert _close(out.getpixel((100, 100)), (255, 0, 0, 255))
    assert out.getpixel((1, 1)) == WHITE
    assert out.getpixel((100, 250)) == WHITE


def test_broken_photo_is_dropped_and_generation_continues(template_fetcher, caplog):
    layout = {
        "width": 1080,
        "height": 1080,
        "zones": {
            "photo": {"x": 0, "y": 0, "width": 100, "height": 100},
            "brand_bar": {"x": 0, "y": 1060, "width": 1080, "height": 20, "color": "#ff00aa"},
        },
    }
    branding = BrandingSnapshot(photo_url="https://cdn.test/gone.jpg")
    engine = PersonalizationEngine(fetch=template_fetcher)

    with caplog.at_level(logging.WARNING, logger="personalize.engine"):
        layers = engine.render_layers(parse_layout(layout), branding)
        out = _open(engine.generate(TEMPLATE_URL, layout, branding))

    assert [layer.kind for layer in layers] == [ZoneKind.BRAND_BAR]
    assert "photo" in caplog.text
    assert out.getpixel((50, 50)) == WHITE
    assert out.getpixel((500, 1070)) == (0xFF, 0x00, 0xAA, 255)


def test_missing_template_is_fatal(fetcher):
    with pytest.raises(FetchError) as excinfo:
        PersonalizationEngine(fetch=fetcher).generate(TEMPLATE_URL, NAME_LAYOUT, BrandingSnapshot(name="Jane"))

    assert excinfo.value.status_code == 404


def test_invalid_layout_aborts_before_fetching(template_fetcher):
    with pytest.raises(InvalidLayoutError):
        PersonalizationEngine(fetch=template_fetcher).generate(
            TEMPLATE_URL, {"zones": {}}, BrandingSnapshot(name="Jane")
        )

    assert template_fetcher.calls == []


def test_layers_come_back_in_render_order_with_one_worker(template_fetcher, png):
    template_fetcher.assets[PHOTO_URL] = png((10, 10))
    template_fetcher.assets[LOGO_URL] = png((10, 10))
    layout = parse_layout(
        {
            "width": 100,
            "height": 100,
            "zones": {
                "tagline": {"x": 0, "y": 50},
                "logo": {"x": 0, "y": 0, "width": 10, "height": 10},
                "name": {"x": 0, "y": 30},
                "photo": {"x": 0, "y": 0, "width": 10, "height": 10},
            },
        }
    )
    branding = BrandingSnapshot(photo_url=PHOTO_URL, logo_url=LOGO_URL, name="Jane", tagline="Hi")

    for workers in (1, 8):
        layers = PersonalizationEngine(fetch=template_fetcher, max_workers=workers).render_layers(layout, branding)
        assert [layer.kind for layer in layers] == [
            ZoneKind.PHOTO,
            ZoneKind.LOGO,
            ZoneKind.NAME,
            ZoneKind.TAGLINE,
        ]


def test_local_branding_urls_are_dropped(fetcher, png, tmp_path, caplog):
    fetcher.assets[TEMPLATE_URL] = png((50, 50), WHITE)
    secret = tmp_path / "secret.png"
    secret.write_bytes(png((50, 50), (1, 2, 3, 255)))
    layout = {
        "width": 50,
        "height": 50,
        "zones": {
            "photo": {"x": 0, "y": 0, "width": 20, "height": 20},
            "logo": {"x": 25, "y": 25, "width": 20, "height": 20},
        },
    }
    branding = BrandingSnapshot(photo_url=str(secret), logo_url=secret.as_uri())
    engine = PersonalizationEngine(template_fetch=fetcher)

    with caplog.at_level(logging.WARNING, logger="personalize.engine"):
        out = engine.generate(TEMPLATE_URL, layout, branding)

    assert out == fetcher.assets[TEMPLATE_URL]
    assert "photo" in caplog.text and "logo" in caplog.text


def test_template_fetcher_is_not_used_for_branding(fetcher, png):
    fetcher.assets[TEMPLATE_URL] = png((50, 50), WHITE)
    branding_calls = []

    def branding_fetch(url):
        branding_calls.append(url)
        return png((10, 10), (255, 0, 0, 255))

    layout = {"width": 50, "height": 50, "zones": {"photo": {"x": 0, "y": 0, "width": 10, "height": 10}}}
    engine = PersonalizationEngine(fetch=branding_fetch, template_fetch=fetcher)

    engine.generate(TEMPLATE_URL, layout, BrandingSnapshot(photo_url=PHOTO_URL))

    assert fetcher.calls == [TEMPLATE_URL]
    assert branding_calls == [PHOTO_URL]
