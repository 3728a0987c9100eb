import json
from textwrap import dedent
from typing import Any, Dict, Optional

from app.modules.drafting.schema.documents import FirmHints
from app.modules.drafting.schema.facts import FirmHeader

NO_SOURCE_HINTS = "[No database source text available]"
NO_TEMPLATE_TEXT = "[Template has no extractable text; rely on the database sources]"

# ---------------------------------------------------------------- Phase 1

PHASE1_SYSTEM_PROMPT = dedent("""
You are a legal document analysis expert. The DATABASE SOURCE blocks below are
the firm's own case files and are authoritative: extract facts only from them,
never from general knowledge.

Return exactly one JSON object, no prose, no code fences, with these keys:
{
  "case_caption": string|null,
  "parties": {"plaintiffs": [string], "defendants": [string]},
  "claims": [string],
  "key_dates": [string],
  "venue": string|null,
  "docket_number": string|null,
  "monetary_amounts": [string],
  "firm_header": {"name": string|null, "address": string|null, "phone": string|null,
                  "email": string|null, "website": string|null},
  "fact_citations": [{"fact": string, "source": string}],
  "other_facts": [string],
  "source_filenames": [string]
}

Use null or [] when a value is not present in the sources. The firm header is
usually in a letterhead, header or signature block; copy it exactly.
""").strip()


def build_phase1_user_message(query: str, source_blocks: str) -> str:
    return (
        f"Drafting request: {query.strip()}\n\n"
        f"DATABASE SOURCES:\n{source_blocks or NO_SOURCE_HINTS}"
    )


# ---------------------------------------------------------------- Phase 2

OUTPUT_CONSTRAINT = dedent("""
You are a professional legal drafting assistant for a law firm. Output plain
text only: no markdown, no HTML, no code fences, no commentary before or after
the document.
""").strip()

ROLE_DEFINITIONS = dedent("""
You will receive three kinds of documents, in descending order of authority:
1. DATABASE-STYLE-AUTHORITY: one of the firm's own documents. When present it
   is the exact formatting exemplar: its layout, spacing, numbering, section
   order, intro and closing wording win over everything else.
2. DATABASE: the firm's case files. They are the authoritative source of facts
   and the primary formatting guide when no style authority exists.
3. TEMPLATE: generic fallback guidance. Use it only for structure the database
   documents do not supply, and never let it override them.
""").strip()

STYLE_AUTHORITY_NONE = dedent("""
DATABASE-STYLE-AUTHORITY: none available. No database document had readable
text to serve as a formatting exemplar. Fall back to the TEMPLATE's formatting
for layout, spacing and section order; take facts from the DATABASE sources and
the grounding facts only.
""").strip()

FORMATTING_RULES = dedent("""
FORMATTING RULES:
- If a DATABASE-STYLE-AUTHORITY is present, copy its introduction, closing,
  spacing, numbering style and section order verbatim.
- Substitute only the variable factual content (names, dates, amounts, case
  numbers, addresses) using the grounding facts and DATABASE sources.
- Where a value is unknown, write [TBD] in its place and keep the surrounding
  spacing and line structure unchanged.
- Never add citations, headings or sections that are not present in the
  formatting authority you are following.
- Never contradict the grounding facts.
- Use the firm header exactly as extracted from the sources.
""").strip()


def style_authority_block(filename: str, text: str) -> str:
    return (
        f"DATABASE-STYLE-AUTHORITY (exact formatting exemplar): {filename}\n"
        f"---\n{text}\n---"
    )


def template_block(rendered: str) -> str:
    return f"TEMPLATE (fallback guidance only):\n{rendered or NO_TEMPLATE_TEXT}"


def database_block(rendered: str) -> str:
    return f"DATABASE SOURCES (authoritative facts):\n{rendered or NO_SOURCE_HINTS}"


def firm_header_block(header: Optional[FirmHeader]) -> str:
    if header is None or header.is_empty():
        return "FIRM HEADER (from sources): not found in the database sources; use [TBD] for header lines."
    lines = [f"- {key}: {value}" for key, value in header.model_dump().items() if value]
    return "FIRM HEADER (from sources, authoritative):\n" + "\n".join(lines)


def firm_hints_block(hints: Optional[FirmHints]) -> str:
    if hints is None or not (hints.name or hints.domain):
        return ""
    lines = [f"- {key}: {value}" for key, value in hints.model_dump().items() if value]
    return (
        "FIRM METADATA (fallback only; never override header data found in the sources):\n"
        + "\n".join(lines)
    )


def facts_block(facts: Dict[str, Any]) -> str:
    payload = json.dumps(facts or {}, ensure_ascii=False, indent=2)
    hint = "" if facts else "\n(no hints available: the fact extraction step returned nothing usable)"
    return f"GROUNDING FACTS (treat as true; do not contradict):\n{payload}{hint}"
