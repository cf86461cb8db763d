from dataclasses import dataclass
from typing import List, Optional

from .models import RENDER_ORDER, BrandingSnapshot, LayoutConfig, Zone, ZoneKind


@dataclass(frozen=True)
class RenderTask:
    zone: Zone
    # URL for image zones, text for text zones, None for brand bars.
    value: Optional[str] = None

    @property
    def kind(self) -> ZoneKind:
        return self.zone.kind


def resolve_zones(layout: LayoutConfig, branding: BrandingSnapshot) -> List[RenderTask]:
    """
    Turn a layout into the ordered list of layers to render.

    Zones are visited in the fixed render order, whatever order the layout
    declared them in. A zone missing from the layout, or whose branding
    input is absent / empty, is skipped so a subscriber without (say) a logo
    still gets a personalized photo and name. Brand bars need no input.
    """
    tasks: List[RenderTask] = []
    for kind in RENDER_ORDER:
        zone = layout.zones.get(kind)
        if zone is None:
            continue

        if kind is ZoneKind.BRAND_BAR:
            tasks.append(RenderTask(zone=zone))
            continue

        value = branding.input_for(kind)
        if not value:
            continue
        tasks.append(RenderTask(zone=zone, value=value))

    return tasks
