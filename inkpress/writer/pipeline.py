"""Generation pipeline: request → research → outline → sections → draft.

Control flow:
    1. Validate the request (nothing is called on failure).
    2. SEARCHING: research context. Missing credentials abort; a failed
       call degrades to an empty context.
    3. Optional SEO strategy and rival insights.
    4. PLANNING: outline (fatal on failure). The cover image task is
       dispatched here and runs alongside drafting without being awaited.
    5. WRITING: sections in bounded-concurrency batches.
    6. Assembly, then SAVING: one create() with status DRAFT.
    7. COMPLETED. Cover image, refinement and audio update the post later.

Background tasks log their failures and never raise into the caller.
"""

from __future__ import annotations

import asyncio
from typing import Any, Coroutine, Optional

from pydantic import BaseModel, ConfigDict, Field

from inkpress.common.config import Settings, settings as default_settings
from inkpress.common.errors import (
    ConfigurationError,
    PipelineError,
    ProviderCallError,
    ValidationError,
)
from inkpress.common.logging import setup_logging
from inkpress.common.models import (
    ActionResult,
    GenerationRequest,
    Outline,
    PostCreate,
    PostStatus,
    ResearchContext,
    SectionResult,
    SectionStatus,
    SeoStrategy,
)
from inkpress.enrichment.audio import AudioResult, AudioStage
from inkpress.enrichment.image import ImageResult, ImageStage
from inkpress.enrichment.rival import rival_insights_for
from inkpress.enrichment.seo_planner import build_schema_markup, plan_seo_strategy
from inkpress.providers.research import ResearchProvider
from inkpress.providers.text import TextProvider
from inkpress.publisher.repository import PostRepository

from .assembly import assemble_document
from .outline import generate_outline
from .progress import GenerationStage, ProgressEvent, ProgressReporter
from .refine import refine_draft
from .sections import draft_sections

logger = setup_logging(module_name="inkpress.pipeline")


class GenerationResult(BaseModel):
    """Outcome of one generate() run. Failures are reported, not raised."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    success: bool
    message: str = ""
    post_id: Optional[str] = None
    content: Optional[str] = None
    outline: Optional[Outline] = None
    sections: list[SectionResult] = Field(default_factory=list)
    failed_sections: list[int] = Field(default_factory=list)
    seo_strategy: Optional[SeoStrategy] = None
    failed_stage: Optional[str] = None
    errors: dict[str, list[str]] = Field(default_factory=dict)
    events: list[ProgressEvent] = Field(default_factory=list)


class GenerationPipeline:
    """Drives the primary draft pipeline and its fire-and-forget side tasks.

    Usage:
        pipeline = GenerationPipeline(text, research, repository, image_stage=images)
        result = await pipeline.generate({"topic": ..., "tone": ..., "length": ...}, user_id)
        await pipeline.wait_for_background()  # CLI / tests only
    """

    def __init__(
        self,
        text_provider: TextProvider,
        research_provider: Optional[ResearchProvider],
        repository: PostRepository,
        image_stage: Optional[ImageStage] = None,
        audio_stage: Optional[AudioStage] = None,
        settings: Settings | None = None,
    ):
        self.text_provider = text_provider
        self.research_provider = research_provider
        self.repository = repository
        self.image_stage = image_stage
        self.audio_stage = audio_stage
        self.settings = settings or default_settings
        self._background: set[asyncio.Task] = set()

    # --- Primary pipeline ---

    async def generate(
        self,
        data: GenerationRequest | dict,
        user_id: str,
        *,
        search: bool = True,
        plan_seo: bool = False,
        refine: bool = False,
        reporter: Optional[ProgressReporter] = None,
    ) -> GenerationResult:
        """Run the draft pipeline for one request."""
        reporter = reporter or ProgressReporter()

        try:
            request = GenerationRequest.parse(data)
        except ValidationError as exc:
            reporter.emit(GenerationStage.FAILED, f"Validation failed: {exc.message}")
            return GenerationResult(
                success=False,
                message=exc.message,
                failed_stage=exc.stage,
                errors=exc.field_errors,
                events=reporter.events,
            )

        try:
            return await self._run(request, user_id, search, plan_seo, refine, reporter)
        except PipelineError as exc:
            logger.error("Generation aborted at %s: %s", exc.stage or "-", exc.message)
            reporter.emit(GenerationStage.FAILED, f"Generation aborted: {exc.message}")
            return GenerationResult(
                success=False,
                message=exc.message,
                failed_stage=exc.stage,
                events=reporter.events,
            )
        except Exception as exc:
            logger.exception("Unexpected generation failure")
            reporter.emit(GenerationStage.FAILED, f"Generation aborted: {exc}")
            return GenerationResult(
                success=False,
                message=str(exc) or "Unknown generation error",
                events=reporter.events,
            )

    async def _run(
        self,
        request: GenerationRequest,
        user_id: str,
        search: bool,
        plan_seo: bool,
        refine: bool,
        reporter: ProgressReporter,
    ) -> GenerationResult:
        reporter.emit(GenerationStage.SEARCHING, f"Researching: {request.topic}")
        research = await self._research(request, search, reporter)

        seo_strategy = None
        if plan_seo:
            seo_strategy = await plan_seo_strategy(
                request.topic, self.text_provider, self.research_provider, self.settings
            )
        rival_insights = await rival_insights_for(
            request.rival_url, request.topic, self.text_provider, self.settings
        )

        reporter.emit(GenerationStage.PLANNING, "Designing outline")
        outline = await generate_outline(
            request,
            research,
            self.text_provider,
            seo_strategy=seo_strategy,
            rival_insights=rival_insights,
            settings=self.settings,
        )
        reporter.emit(
            GenerationStage.PLANNING,
            f"Outline ready: {outline.title} ({len(outline.sections)} sections)",
        )

        image_task: Optional[asyncio.Task] = None
        if request.include_image and self.image_stage is not None:
            image_task = self._spawn(self.image_stage.run(request.topic), "cover-image")

        reporter.emit(GenerationStage.WRITING, "Writing sections")

        def _on_section(result: SectionResult, completed: int, total: int) -> None:
            outcome = "done" if result.status == SectionStatus.DONE else "failed, placeholder inserted"
            reporter.emit(
                GenerationStage.WRITING,
                f"Section {result.index + 1}/{total} {outcome}: {result.heading}",
                reporter.writing_progress(completed, total),
            )

        sections = await draft_sections(
            request,
            outline,
            research,
            self.text_provider,
            on_progress=_on_section,
            settings=self.settings,
        )
        document = assemble_document(outline, sections, research)

        reporter.emit(GenerationStage.SAVING, "Saving draft")
        schema_markup = None
        if seo_strategy is not None:
            schema_markup = build_schema_markup(
                seo_strategy, document.content, author=self.settings.pipeline.author_name
            )
        try:
            post = await self.repository.create(
                user_id,
                PostCreate(
                    topic=request.topic,
                    content=document.content,
                    tone=request.tone.value,
                    status=PostStatus.DRAFT,
                    schema_markup=schema_markup,
                ),
            )
        except Exception:
            if image_task is not None:
                image_task.cancel()
            raise

        if image_task is not None:
            self._spawn(self._attach_cover(image_task, post.id, user_id), "attach-cover")
        if refine:
            self.schedule_refinement(
                post.id, user_id, request.topic, document.content, request.experience
            )

        failed = [s.index for s in sections if s.status == SectionStatus.ERROR]
        message = "Draft generated."
        if failed:
            message = f"Draft generated; {len(failed)} section(s) replaced by placeholders."
        reporter.emit(GenerationStage.COMPLETED, message)

        return GenerationResult(
            success=True,
            message=message,
            post_id=post.id,
            content=document.content,
            outline=outline,
            sections=sections,
            failed_sections=failed,
            seo_strategy=seo_strategy,
            events=reporter.events,
        )

    async def _research(
        self,
        request: GenerationRequest,
        search: bool,
        reporter: ProgressReporter,
    ) -> ResearchContext:
        if not search or self.research_provider is None:
            return ResearchContext.empty(request.topic)
        try:
            research = await self.research_provider.search(request.topic)
        except ConfigurationError:
            raise
        except ProviderCallError as exc:
            logger.warning("Research failed, continuing without context: %s", exc.message)
            reporter.emit(GenerationStage.SEARCHING, "Research unavailable, continuing without sources")
            return ResearchContext.empty(request.topic)
        reporter.emit(GenerationStage.SEARCHING, f"Found {len(research.results)} sources")
        return research

    # --- Side pipelines ---

    async def refine_post(
        self,
        post_id: str,
        user_id: str,
        topic: str,
        content: str,
        experience: Optional[str] = None,
    ) -> ActionResult:
        """Refine ``content`` and store it on the post."""
        refined = await refine_draft(
            content, topic, self.text_provider, experience=experience, settings=self.settings
        )
        if refined == content:
            return ActionResult(success=False, message="Refinement unavailable; draft kept.", data=content)
        try:
            saved = await self.repository.update(post_id, user_id, content=refined)
        except Exception as exc:
            logger.error("Saving refined content failed for %s: %s", post_id, exc)
            return ActionResult(success=False, message="Failed to save refined content.", data=refined)
        if not saved:
            return ActionResult(success=False, message="Post not found.", data=refined)
        return ActionResult(success=True, message="Draft refined.", data=refined)

    def schedule_refinement(
        self,
        post_id: str,
        user_id: str,
        topic: str,
        content: str,
        experience: Optional[str] = None,
    ) -> asyncio.Task:
        return self._spawn(
            self.refine_post(post_id, user_id, topic, content, experience), "refine"
        )

    async def generate_voice(self, post_id: str, user_id: str, content: str) -> AudioResult:
        if self.audio_stage is None:
            return AudioResult(success=False, failed_step="script", message="Audio stage not configured.")
        return await self.audio_stage.run(post_id, user_id, content)

    def schedule_voice(self, post_id: str, user_id: str, content: str) -> asyncio.Task:
        return self._spawn(self.generate_voice(post_id, user_id, content), "voice")

    async def _attach_cover(self, image_task: asyncio.Task, post_id: str, user_id: str) -> None:
        result: ImageResult = await image_task
        if not result.success or not result.image_ref:
            logger.warning("No cover image for post %s: %s", post_id, result.error)
            return
        await self.repository.update(post_id, user_id, cover_image=result.image_ref)
        logger.info("Cover image attached to post %s (%s)", post_id, result.source)

    # --- Background task bookkeeping ---

    def _spawn(self, coro: Coroutine[Any, Any, Any], name: str) -> asyncio.Task:
        task = asyncio.create_task(coro, name=name)
        self._background.add(task)
        task.add_done_callback(self._on_background_done)
        return task

    def _on_background_done(self, task: asyncio.Task) -> None:
        self._background.discard(task)
        if task.cancelled():
            logger.info("Background task %s cancelled", task.get_name())
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Background task %s failed: %s", task.get_name(), exc)

    @property
    def pending_background(self) -> int:
        return sum(1 for t in self._background if not t.done())

    async def wait_for_background(self) -> None:
        """Await every outstanding side task, including ones they spawn."""
        while True:
            pending = [t for t in self._background if not t.done()]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)
