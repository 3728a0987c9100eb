"""
Drafting pipeline: the single ``generate`` operation behind /generate.

list sources -> select candidates -> download + extract (concurrently)
-> budget -> resolve style authority -> phase 1 facts -> phase 2 document
-> diagnostics. Every piece of working state is local to one call.
"""

import asyncio
import logging
from typing import List, Optional, Set

from starlette.concurrency import run_in_threadpool

from core.config import GenerationConfig
from core.errors import NoSourceDataError, NotFoundError
from core.utils.perf import profile_stage, stage_timer
from app.modules.drafting.schema.documents import (
    CandidateFile,
    ExtractedContext,
    FirmHints,
    RequesterContext,
    SourceRole,
    TemplateRecord,
)
from app.modules.drafting.schema.generation import GenerationEvent, GenerationResult
from app.modules.drafting.services.budget import budget
from app.modules.drafting.services.diagnostics import build_generation_result
from app.modules.drafting.services.extraction.text_extractor import (
    extract_with_report,
    placeholder_text,
)
from app.modules.drafting.services.llm import LanguageModel
from app.modules.drafting.services.orchestrator import TwoPhaseOrchestrator
from app.modules.drafting.services.records.stores import (
    FirmDirectory,
    GenerationRecorder,
    TemplateStore,
)
from app.modules.drafting.services.selection import is_listable, select_candidates
from app.modules.drafting.services.storage import FileStore
from app.modules.drafting.services.style_authority import resolve_style_authority

logger = logging.getLogger(__name__)

NO_FILES_MESSAGE = "No uploaded case files found. Please upload a file in Database Connections."
NO_TEXT_MESSAGE = (
    "None of the uploaded case files contained readable text. "
    "Scanned or image-only PDFs cannot be read; upload text-based documents."
)


class DraftingPipeline:
    def __init__(
        self,
        config: GenerationConfig,
        file_store: FileStore,
        template_store: TemplateStore,
        llm: LanguageModel,
        firm_directory: Optional[FirmDirectory] = None,
        recorder: Optional[GenerationRecorder] = None,
    ):
        self._config = config
        self._files = file_store
        self._templates = template_store
        self._firms = firm_directory
        self._recorder = recorder
        self._orchestrator = TwoPhaseOrchestrator(config, llm)
        self._background: Set[asyncio.Task] = set()

    # ------------------------------------------------------------ extraction

    async def extract_candidate(self, candidate: CandidateFile, limiter: asyncio.Semaphore) -> ExtractedContext:
        """Download and extract one source; any failure degrades to a placeholder."""
        async with limiter:
            try:
                data = await self._files.download(self._config.source_bucket, candidate.storage_path)
            except Exception as e:
                logger.warning(f"[extract] download failed for {candidate.storage_path}: {e}")
                return ExtractedContext.from_text(
                    candidate.filename,
                    placeholder_text(candidate.filename, f"download failed: {e}"),
                    storage_path=candidate.storage_path,
                    degraded=True,
                    strategy="placeholder",
                )
            report = await run_in_threadpool(extract_with_report, candidate.filename, data)

        logger.info(
            f"[extract] {candidate.filename}: {report.chars} chars via {report.strategy}"
            f"{' (degraded)' if report.degraded else ''}"
        )
        return ExtractedContext.from_text(
            candidate.filename,
            report.text,
            storage_path=candidate.storage_path,
            degraded=report.degraded,
            strategy=report.strategy,
        )

    @profile_stage("extract_candidates")
    async def extract_candidates(self, candidates: List[CandidateFile]) -> List[ExtractedContext]:
        limiter = asyncio.Semaphore(max(1, min(self._config.max_concurrent_extractions, len(candidates) or 1)))
        return list(await asyncio.gather(*(self.extract_candidate(c, limiter) for c in candidates)))

    async def load_template_context(self, template: TemplateRecord) -> Optional[ExtractedContext]:
        """Template text from its stored file when it has one, else from its inline content."""
        if template.file_path_ref:
            try:
                data = await self._files.download(self._config.template_bucket, template.file_path_ref)
            except NotFoundError as e:
                logger.warning(f"[template] {template.id}: {e}; using inline content")
            else:
                filename = template.file_path_ref.rsplit("/", 1)[-1]
                report = await run_in_threadpool(extract_with_report, filename, data)
                if not report.degraded:
                    return ExtractedContext.from_text(
                        template.name,
                        report.text,
                        storage_path=template.file_path_ref,
                        role=SourceRole.TEMPLATE,
                        strategy=report.strategy,
                    )
                logger.warning(f"[template] {template.id}: file unreadable; using inline content")

        content = (template.raw_content or "").strip()
        if not content:
            return None
        return ExtractedContext.from_text(template.name, content, role=SourceRole.TEMPLATE, strategy="inline")

    # ------------------------------------------------------------ collaborators

    async def firm_hints(self, requester: RequesterContext) -> Optional[FirmHints]:
        if self._firms is None:
            return None
        try:
            return await self._firms.get_firm_hints(requester)
        except Exception as e:
            logger.warning(f"[firm] hints unavailable for {requester.firm_id}: {e}")
            return None

    def _record_in_background(self, event: GenerationEvent) -> None:
        if self._recorder is None:
            return
        task = asyncio.create_task(self._recorder.record(event))
        self._background.add(task)
        task.add_done_callback(self._on_record_done)

    def _on_record_done(self, task: asyncio.Task) -> None:
        self._background.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.warning(f"[analytics] failed to record generation event: {exc}")

    async def drain_background(self) -> None:
        """Wait for pending analytics writes (shutdown and tests)."""
        if self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    # ------------------------------------------------------------ generate

    async def generate(self, query: str, template_id: str, requester: RequesterContext) -> GenerationResult:
        self._config.require_credentials()
        steps: List[str] = []
        timings: dict = {}

        template = await self._templates.get_template(template_id)
        if template is None:
            raise NotFoundError("Template not found or access denied", details={"template_id": template_id})
        steps.append(f"Loaded template '{template.name}'")

        with stage_timer("list_sources", timings):
            listing = await self._files.list_files(self._config.source_bucket, requester.user_id)
        files = [f for f in listing if is_listable(f.filename)]
        if not files:
            raise NoSourceDataError(NO_FILES_MESSAGE)
        steps.append(f"Found {len(files)} uploaded case files")

        candidates = select_candidates(files, self._config.max_candidates)
        steps.append("Selected sources: " + ", ".join(c.filename for c in candidates))

        with stage_timer("extract", timings):
            contexts = await self.extract_candidates(candidates)
        readable = [c for c in contexts if c.readable]
        if not readable:
            raise NoSourceDataError(
                NO_TEXT_MESSAGE,
                details=[{"filename": c.filename, "chars": 0} for c in contexts],
            )
        steps.append(f"Extracted text from {len(readable)} of {len(contexts)} sources")

        template_ctx = await self.load_template_context(template)
        budget_input = ([template_ctx] if template_ctx else []) + contexts
        budgeted = budget(budget_input, self._config.context_budget, self._config.min_source_chars)

        authority = resolve_style_authority(contexts)
        steps.append(
            f"Style authority: {authority.filename}" if authority
            else "No style authority; falling back to template formatting"
        )

        hints = await self.firm_hints(requester)

        with stage_timer("generation", timings):
            outcome = await self._orchestrator.run(query, budgeted, authority, hints)
        steps.append("Extracted structured case facts")
        steps.append("Generated document from verified sources")

        result = build_generation_result(
            outcome,
            bucket=self._config.source_bucket,
            candidates=candidates,
            contexts=contexts,
            style_authority=authority,
            template=template,
            low_text_threshold=self._config.low_text_threshold,
            steps=steps,
            timings_ms=timings,
        )
        if result.low_text_warning:
            logger.warning(
                f"[rag-generate] only {result.total_chars} readable chars across sources for user {requester.user_id}"
            )

        self._record_in_background(
            GenerationEvent(
                user_id=requester.user_id,
                firm_id=requester.firm_id,
                template_id=template.id,
                output_type=template.file_type.value,
                metadata={
                    "query": query,
                    "sources": [c.filename for c in candidates],
                    "style_authority": result.style_authority,
                    "total_chars": result.total_chars,
                },
            )
        )
        return result
