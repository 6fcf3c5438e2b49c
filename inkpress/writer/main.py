"""CLI entry point for draft generation.

Usage:
    python -m inkpress.writer.main --topic "재택근무 생산성 높이는 법" --tone friendly
    python -m inkpress.writer.main --topic "..." --dry-run --image --refine --output draft.md
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from inkpress.common.config import DATA_EXPORTS_DIR, ProviderCredentials, settings
from inkpress.common.logging import setup_logging
from inkpress.common.models import GenerationModel, PostLength, Tone
from inkpress.enrichment.audio import AudioStage
from inkpress.enrichment.image import ImageStage
from inkpress.enrichment.image_processor import CoverImageProcessor
from inkpress.providers.image import ImageProvider
from inkpress.providers.research import ResearchProvider
from inkpress.providers.speech import SpeechProvider
from inkpress.providers.text import TextProvider
from inkpress.publisher.repository import InMemoryPostRepository, SupabasePostRepository
from inkpress.publisher.storage import SupabaseStorage

from .pipeline import GenerationPipeline

logger = setup_logging(module_name="inkpress.writer.main")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Generate a research-backed blog post draft")
    parser.add_argument("--topic", required=True, help="Post topic (at least 5 characters)")
    parser.add_argument(
        "--tone",
        choices=[t.value for t in Tone],
        default=Tone.PROFESSIONAL.value,
        help="Writing tone (default: professional)",
    )
    parser.add_argument(
        "--length",
        choices=[l.value for l in PostLength],
        default=PostLength.MEDIUM.value,
        help="Target length (default: medium)",
    )
    parser.add_argument("--keywords", default="", help="Comma-separated target keywords")
    parser.add_argument(
        "--model",
        choices=[m.value for m in GenerationModel],
        default=GenerationModel.GPT_4O_MINI.value,
        help="Generation model (default: gpt-4o-mini)",
    )
    parser.add_argument("--experience", help="Personal anecdote woven in during refinement")
    parser.add_argument("--rival-url", help="Competitor post to outperform")
    parser.add_argument("--user-id", default="cli", help="Owner of the created post")
    parser.add_argument("--image", action="store_true", help="Generate a cover image")
    parser.add_argument("--refine", action="store_true", help="Refine the draft after saving")
    parser.add_argument("--voice", action="store_true", help="Generate a narrated audio version")
    parser.add_argument("--seo-plan", action="store_true", help="Plan an SEO strategy first")
    parser.add_argument("--no-search", action="store_true", help="Skip web research")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Keep posts in memory instead of saving to Supabase",
    )
    parser.add_argument("--output", type=Path, help="Output path for the draft markdown")
    return parser


def build_pipeline(args: argparse.Namespace, credentials: ProviderCredentials) -> GenerationPipeline:
    text_provider = TextProvider(credentials, settings)
    research_provider = None if args.no_search else ResearchProvider(credentials, settings)

    if args.dry_run:
        repository = InMemoryPostRepository()
        storage = None
    else:
        repository = SupabasePostRepository(credentials)
        storage = SupabaseStorage(credentials, settings.storage)

    image_stage = None
    if args.image:
        image_stage = ImageStage(
            text_provider,
            ImageProvider(credentials, settings),
            storage=storage,
            processor=CoverImageProcessor(settings.image),
            settings=settings,
        )

    audio_stage = None
    if args.voice and storage is not None:
        audio_stage = AudioStage(
            text_provider,
            SpeechProvider(credentials, settings),
            storage,
            repository,
            settings,
        )
    elif args.voice:
        logger.warning("--voice needs Supabase Storage; skipped in --dry-run")

    return GenerationPipeline(
        text_provider,
        research_provider,
        repository,
        image_stage=image_stage,
        audio_stage=audio_stage,
        settings=settings,
    )


async def run(args: argparse.Namespace) -> int:
    credentials = ProviderCredentials.from_env()
    pipeline = build_pipeline(args, credentials)

    request = {
        "topic": args.topic,
        "tone": args.tone,
        "length": args.length,
        "keywords": args.keywords,
        "model": args.model,
        "include_image": args.image,
        "experience": args.experience,
        "rival_url": args.rival_url,
    }
    result = await pipeline.generate(
        request,
        args.user_id,
        search=not args.no_search,
        plan_seo=args.seo_plan,
        refine=args.refine,
    )
    for event in result.events:
        print(event.format())

    if not result.success:
        for field_name, messages in result.errors.items():
            for message in messages:
                logger.error("%s: %s", field_name, message)
        logger.error("Generation failed: %s", result.message)
        return 1

    if pipeline.audio_stage is not None:
        pipeline.schedule_voice(result.post_id, args.user_id, result.content)

    await pipeline.wait_for_background()

    content = result.content
    if isinstance(pipeline.repository, InMemoryPostRepository):
        # Background stages may have rewritten the stored post
        post = await pipeline.repository.get(result.post_id, args.user_id)
        if post is not None:
            content = post.content
            if post.cover_image:
                print(f"Cover image: {post.cover_image[:120]}")

    output_path = args.output
    if output_path is None:
        output_path = DATA_EXPORTS_DIR / f"draft_{result.post_id}.md"
        output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, "w", encoding="utf-8") as f:
        f.write(content)

    logger.info("Draft written to: %s", output_path)
    print(f"\nGenerated draft: {output_path} (post {result.post_id})")
    return 0


def main() -> None:
    args = build_parser().parse_args()
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
