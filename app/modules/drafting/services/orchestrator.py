"""
Two-phase generation.

Phase 1 asks the model for structured case facts (strict JSON) from the
database sources. Phase 2 generates the document under a fixed authority
order: style authority > database sources > template, with the Phase-1
facts injected as grounding. Phase 2 depends on Phase 1, so the two calls
run strictly in sequence. Backend errors propagate; nothing is retried and a
Phase-1 result is never returned as a final answer.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from core.config import GenerationConfig
from app.modules.drafting.schema.documents import (
    ExtractedContext,
    FirmHints,
    SourceRole,
    TruncatedContext,
)
from app.modules.drafting.schema.facts import StructuredFacts, parse_structured_facts
from app.modules.drafting.services.budget import render_blocks
from app.modules.drafting.services.llm import JSON_OBJECT, LanguageModel
from app.modules.drafting.services.prompts import drafting as prompts
from app.modules.drafting.services.prompts.segments import PromptSegment, SegmentKind, assemble

logger = logging.getLogger(__name__)


@dataclass
class FactExtraction:
    raw: str
    facts: StructuredFacts
    grounding: Dict[str, Any] = field(default_factory=dict)

    @property
    def grounding_json(self) -> str:
        return json.dumps(self.grounding, ensure_ascii=False)


@dataclass
class OrchestratorOutcome:
    answer_text: str
    extraction: FactExtraction
    phase2_messages: List[str]


class TwoPhaseOrchestrator:
    def __init__(self, config: GenerationConfig, llm: LanguageModel):
        self._config = config
        self._llm = llm

    async def extract_facts(self, query: str, budgeted: Sequence[TruncatedContext]) -> FactExtraction:
        source_blocks = render_blocks(budgeted, SourceRole.DATABASE)
        raw = await self._llm.complete(
            [prompts.PHASE1_SYSTEM_PROMPT],
            prompts.build_phase1_user_message(query, source_blocks),
            response_format=JSON_OBJECT,
            max_tokens=self._config.phase1_max_tokens,
        )
        facts, grounding = parse_structured_facts(raw)
        logger.info(
            f"[rag-generate] phase 1 returned {len(raw)} chars, "
            f"{len(grounding)} fact keys, firm header={'yes' if facts.firm_header else 'no'}"
        )
        return FactExtraction(raw=raw, facts=facts, grounding=grounding)

    def build_generation_segments(
        self,
        budgeted: Sequence[TruncatedContext],
        style_authority: Optional[ExtractedContext],
        extraction: FactExtraction,
        firm_hints: Optional[FirmHints] = None,
    ) -> List[PromptSegment]:
        if style_authority is not None:
            authority_text = next(
                (c.text for c in budgeted
                 if c.role == SourceRole.DATABASE and c.filename == style_authority.filename),
                style_authority.raw_text[: self._config.context_budget],
            )
            authority = prompts.style_authority_block(style_authority.filename, authority_text)
        else:
            authority = prompts.STYLE_AUTHORITY_NONE

        return [
            PromptSegment(SegmentKind.OUTPUT_CONSTRAINT, prompts.OUTPUT_CONSTRAINT),
            PromptSegment(SegmentKind.ROLE_DEFINITIONS, prompts.ROLE_DEFINITIONS),
            PromptSegment(SegmentKind.STYLE_AUTHORITY, authority),
            PromptSegment(SegmentKind.TEMPLATE, prompts.template_block(render_blocks(budgeted, SourceRole.TEMPLATE))),
            PromptSegment(SegmentKind.DATABASE_SOURCES, prompts.database_block(render_blocks(budgeted, SourceRole.DATABASE))),
            PromptSegment(SegmentKind.FIRM_HEADER, prompts.firm_header_block(extraction.facts.firm_header)),
            PromptSegment(SegmentKind.FIRM_HINTS, prompts.firm_hints_block(firm_hints)),
            PromptSegment(SegmentKind.FACTS, prompts.facts_block(extraction.grounding)),
            PromptSegment(SegmentKind.FORMATTING_RULES, prompts.FORMATTING_RULES),
        ]

    async def generate_document(self, query: str, segments: Sequence[PromptSegment]) -> tuple:
        messages = assemble(segments)
        answer = await self._llm.complete(
            messages,
            query,
            response_format=None,
            max_tokens=self._config.phase2_max_tokens,
        )
        return answer, messages

    async def run(
        self,
        query: str,
        budgeted: Sequence[TruncatedContext],
        style_authority: Optional[ExtractedContext],
        firm_hints: Optional[FirmHints] = None,
    ) -> OrchestratorOutcome:
        extraction = await self.extract_facts(query, budgeted)
        segments = self.build_generation_segments(budgeted, style_authority, extraction, firm_hints)
        answer, messages = await self.generate_document(query, segments)
        return OrchestratorOutcome(answer_text=answer, extraction=extraction, phase2_messages=messages)
