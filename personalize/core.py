import json
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from .captions import CaptionRewriter, VoiceProfile
from .compositor import content_type_for
from .engine import PersonalizationEngine
from .models import BrandingSnapshot, LayoutConfig
from .storage import AssetLedger, AssetStore, GeneratedAsset

logger = logging.getLogger(__name__)


@dataclass
class Template:
    template_id: str
    template_file_url: str
    layout_config: Union[LayoutConfig, Mapping[str, Any], str]


def load_template(path: Path) -> Template:
    with path.open("r", encoding="utf-8") as f:
        data = json.load(f)

    return Template(
        template_id=str(data.get("template_id") or path.stem),
        template_file_url=data["template_file_url"],
        layout_config=data["layout_config"],
    )


def load_branding(path: Path) -> BrandingSnapshot:
    with path.open("r", encoding="utf-8") as f:
        data: Dict[str, Any] = json.load(f)
    return BrandingSnapshot.from_dict(data)


class PersonalizationPipeline:
    """
    Handles one personalization request end to end:
    - render the template with the subscriber's branding
    - upload the image to the asset store
    - record a GeneratedAsset row carrying the branding snapshot used

    Nothing is persisted until the image has been rendered, so a failed
    generation leaves no partial rows behind.
    """

    def __init__(
        self,
        engine: PersonalizationEngine,
        store: AssetStore,
        ledger: AssetLedger,
        rewriter: Optional[CaptionRewriter] = None,
        output_format: str = "png",
    ) -> None:
        self.engine = engine
        self.store = store
        self.ledger = ledger
        self.rewriter = rewriter
        self.output_format = output_format

    def generate(
        self,
        subscriber_id: str,
        content_id: str,
        template: Template,
        branding: BrandingSnapshot,
    ) -> GeneratedAsset:
        image = self.engine.generate(
            template.template_file_url,
            template.layout_config,
            branding,
            output_format=self.output_format,
        )

        timestamp = int(time.time() * 1000)
        extension = "jpg" if self.output_format.lower() in ("jpg", "jpeg") else self.output_format.lower()
        file_path = f"{_slugify(subscriber_id)}/{_slugify(content_id)}_{timestamp}.{extension}"
        file_url = self.store.upload(file_path, image, content_type_for(self.output_format))
        logger.info("Uploaded personalized asset to %s", file_url)

        asset = GeneratedAsset(
            subscriber_id=subscriber_id,
            content_id=content_id,
            template_id=template.template_id,
            file_url=file_url,
            personalization_snapshot=branding.to_dict(),
        )
        return self.ledger.record(asset)

    def rewrite_caption(self, caption: str, voice_profile: VoiceProfile, platform: str) -> str:
        if self.rewriter is None:
            return caption
        return self.rewriter.rewrite(caption, voice_profile, platform)


def _slugify(text: str) -> str:
    slug = "".join(ch.lower() if ch.isalnum() else "-" for ch in text)
    while "--" in slug:
        slug = slug.replace("--", "-")
    return slug.strip("-") or "item"
