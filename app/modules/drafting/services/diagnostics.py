from typing import Dict, List, Optional, Sequence

from app.modules.drafting.schema.documents import (
    CandidateFile,
    ExtractedContext,
    SourceRole,
    TemplateRecord,
)
from app.modules.drafting.schema.generation import (
    ExtractionDiagnostic,
    GenerationResult,
    SourceRef,
    TemplateRef,
)
from app.modules.drafting.services.orchestrator import OrchestratorOutcome


def readable_chars(contexts: Sequence[ExtractedContext]) -> int:
    return sum(c.char_count for c in contexts if c.role == SourceRole.DATABASE and c.readable)


def build_generation_result(
    outcome: OrchestratorOutcome,
    bucket: str,
    candidates: Sequence[CandidateFile],
    contexts: Sequence[ExtractedContext],
    style_authority: Optional[ExtractedContext],
    template: Optional[TemplateRecord] = None,
    low_text_threshold: int = 200,
    steps: Optional[List[str]] = None,
    timings_ms: Optional[Dict[str, float]] = None,
) -> GenerationResult:
    """Assemble the caller-facing payload: answer plus everything needed to audit it."""
    facts = outcome.extraction.facts
    header = facts.firm_header if facts.firm_header and not facts.firm_header.is_empty() else None
    total = readable_chars(contexts)

    return GenerationResult(
        answer_text=outcome.answer_text,
        analysis_json=outcome.extraction.raw,
        firm_header=header,
        fact_citations=list(facts.fact_citations) or None,
        sources=[SourceRef(bucket=bucket, path=c.storage_path, filename=c.filename) for c in candidates],
        extraction_diagnostics=[
            ExtractionDiagnostic(
                filename=c.filename,
                chars=c.char_count if c.readable else 0,
                strategy=c.strategy,
                degraded=c.degraded,
            )
            for c in contexts
            if c.role == SourceRole.DATABASE
        ],
        style_authority=style_authority.filename if style_authority else None,
        template=TemplateRef(id=template.id, name=template.name) if template else None,
        total_chars=total,
        low_text_warning=total < low_text_threshold,
        steps=list(steps or []),
        timings_ms=dict(timings_ms or {}),
    )
