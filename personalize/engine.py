import logging
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from typing import Any, Callable, List, Mapping, Optional, Union

from .compositor import compose
from .errors import OptionalAssetError
from .fetch import fetch_image
from .models import BrandingSnapshot, LayoutConfig, parse_layout
from .render import Layer, LayerRenderer
from .zones import RenderTask, resolve_zones

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 4


class PersonalizationEngine:
    """
    Composites a subscriber's branding onto a graphic template.

    Each call is independent: every buffer is built from the inputs of that
    call, so one engine can be shared across concurrent requests.
    """

    def __init__(
        self,
        fetch: Callable[[str], bytes] = fetch_image,
        template_fetch: Optional[Callable[[str], bytes]] = None,
        max_workers: int = DEFAULT_MAX_WORKERS,
        font_path: Optional[str] = None,
        bold_font_path: Optional[str] = None,
    ) -> None:
        self.fetch = fetch
        # Branding images always go through `fetch`; only templates may use
        # a fetcher that reads local files.
        self.template_fetch = template_fetch or fetch
        self.max_workers = max(1, max_workers)
        self.renderer = LayerRenderer(
            fetch=fetch,
            font_path=font_path,
            bold_font_path=bold_font_path,
        )

    def generate(
        self,
        template_url: str,
        layout_config: Union[str, Mapping[str, Any], LayoutConfig],
        branding: BrandingSnapshot,
        output_format: str = "png",
    ) -> bytes:
        # Layout problems abort before any network work.
        layout = parse_layout(layout_config)
        template_bytes = self.template_fetch(template_url)
        layers = self.render_layers(layout, branding)
        logger.info("Compositing %d layer(s) onto %s", len(layers), template_url)
        return compose(template_bytes, layers, output_format)

    def render_layers(self, layout: LayoutConfig, branding: BrandingSnapshot) -> List[Layer]:
        """
        Render every resolvable zone, in render order. Failed photo / logo
        layers are dropped with a warning.
        """
        tasks = resolve_zones(layout, branding)
        if not tasks:
            return []

        render = partial(
            self._render_optional,
            branding=branding,
            canvas_size=(layout.canvas_width, layout.canvas_height),
        )
        workers = min(self.max_workers, len(tasks))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            # map() yields in submission order, which is the render order.
            results = list(executor.map(render, tasks))

        return [layer for layer in results if layer is not None]

    def _render_optional(
        self,
        task: RenderTask,
        branding: BrandingSnapshot,
        canvas_size,
    ) -> Optional[Layer]:
        try:
            return self.renderer.render(task, branding, canvas_size)
        except OptionalAssetError as e:
            logger.warning("%s; dropping layer", e)
            return None


def generate_personalized_image(
    template_url: str,
    layout_config: Union[str, Mapping[str, Any], LayoutConfig],
    branding: Union[BrandingSnapshot, Mapping[str, Any]],
    output_format: str = "png",
) -> bytes:
    """One-shot helper using a default engine."""
    if not isinstance(branding, BrandingSnapshot):
        branding = BrandingSnapshot.from_dict(branding)
    return PersonalizationEngine().generate(template_url, layout_config, branding, output_format)
