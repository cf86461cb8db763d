import argparse
import logging
from functools import partial
from pathlib import Path

from dotenv import load_dotenv
from langchain_openai import ChatOpenAI

from personalize.captions import (
    CaptionRewriter,
    ChatModelTextGenerator,
    OpenAITextGenerator,
    VoiceProfile,
)
from personalize.config import Settings
from personalize.core import PersonalizationPipeline, load_branding, load_template
from personalize.engine import PersonalizationEngine
from personalize.fetch import fetch_image, fetch_template_image
from personalize.storage import AssetLedger, LocalAssetStore


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Render a personalized asset from a graphic template and subscriber branding."
    )
    parser.add_argument(
        "--template",
        type=Path,
        required=True,
        help="Path to the template JSON (template_file_url + layout_config).",
    )
    parser.add_argument(
        "--branding",
        type=Path,
        required=True,
        help="Path to the subscriber branding JSON.",
    )
    parser.add_argument("--subscriber-id", default="local")
    parser.add_argument("--content-id", default="content")
    parser.add_argument(
        "--output-root",
        type=Path,
        default=None,
        help="Folder where generated assets are stored (defaults to PERSONALIZE_OUTPUT_ROOT).",
    )
    parser.add_argument(
        "--ledger",
        type=Path,
        default=None,
        help="Generated-asset ledger file (defaults to <output-root>/assets.json).",
    )
    parser.add_argument("--format", default="png", choices=["png", "jpeg", "webp"])
    parser.add_argument("--caption", help="Optional caption to rewrite in the subscriber's voice.")
    parser.add_argument("--platform", default="instagram")
    parser.add_argument("--company", help="Company name for the caption voice profile.")
    parser.add_argument(
        "--llm-backend",
        default="langchain",
        choices=["langchain", "openai"],
        help="Caption backend: LangChain ChatOpenAI or the OpenAI client directly.",
    )
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser.parse_args()


def main() -> None:
    # Load environment variables from a local .env file if present
    # (e.g. OPENAI_API_KEY=sk-...).
    load_dotenv()

    args = parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    settings = Settings.from_env()

    # Caption rewriting uses a real LLM only when OPENAI_API_KEY is defined;
    # otherwise captions pass through unchanged.
    if settings.openai_api_key and args.llm_backend == "openai":
        rewriter = CaptionRewriter(
            OpenAITextGenerator(
                api_key=settings.openai_api_key,
                model=settings.llm_model,
                temperature=settings.llm_temperature,
            )
        )
    elif settings.openai_api_key:
        llm = ChatOpenAI(
            model=settings.llm_model,
            temperature=settings.llm_temperature,
            api_key=settings.openai_api_key,
        )
        rewriter = CaptionRewriter(ChatModelTextGenerator(llm))
    else:
        rewriter = CaptionRewriter()

    output_root = args.output_root or Path(settings.output_root)
    engine = PersonalizationEngine(
        fetch=partial(fetch_image, timeout=settings.fetch_timeout),
        template_fetch=partial(fetch_template_image, timeout=settings.fetch_timeout),
        max_workers=settings.max_workers,
        font_path=settings.font_path,
        bold_font_path=settings.bold_font_path,
    )
    pipeline = PersonalizationPipeline(
        engine=engine,
        store=LocalAssetStore(output_root, base_url=settings.public_base_url),
        ledger=AssetLedger(args.ledger or output_root / "assets.json"),
        rewriter=rewriter,
        output_format=args.format,
    )

    template = load_template(args.template)
    branding = load_branding(args.branding)

    print(f"🎨 Personalizing template '{template.template_id}' for '{args.subscriber_id}'")
    asset = pipeline.generate(args.subscriber_id, args.content_id, template, branding)
    print(f"✨ Asset {asset.asset_id}: {asset.file_url}")

    if args.caption:
        profile = VoiceProfile(
            name=branding.name or "",
            company=args.company,
            tagline=branding.tagline,
        )
        caption = pipeline.rewrite_caption(args.caption, profile, args.platform)
        print(f"Caption ({args.platform}): {caption}")


if __name__ == "__main__":
    main()
