"""
Phase-1 fact schema.

The model is asked to return this shape, but its output is untrusted: every
field coerces wrong shapes to an empty value instead of raising, and
``parse_structured_facts`` turns unparseable text into an empty object.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"^```[a-zA-Z]*\s*|\s*```$")


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value.strip() else []
    if isinstance(value, (list, tuple)):
        out = []
        for item in value:
            if isinstance(item, str):
                if item.strip():
                    out.append(item)
            elif isinstance(item, (dict, list)):
                out.append(json.dumps(item, ensure_ascii=False))
            elif item is not None:
                out.append(str(item))
        return out
    return []


def _as_optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, str):
        return value.strip() or None
    if isinstance(value, (int, float)):
        return str(value)
    return None


class FirmHeader(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    website: Optional[str] = None

    @field_validator("*", mode="before")
    @classmethod
    def _coerce(cls, v: Any) -> Optional[str]:
        if isinstance(v, list):
            v = ", ".join(_as_str_list(v))
        return _as_optional_str(v)

    def is_empty(self) -> bool:
        return not any(self.model_dump().values())


class Parties(BaseModel):
    model_config = ConfigDict(extra="ignore")

    plaintiffs: List[str] = Field(default_factory=list)
    defendants: List[str] = Field(default_factory=list)

    @field_validator("*", mode="before")
    @classmethod
    def _coerce(cls, v: Any) -> List[str]:
        return _as_str_list(v)


class FactCitation(BaseModel):
    model_config = ConfigDict(extra="ignore")

    fact: str = ""
    source: str = ""

    @field_validator("*", mode="before")
    @classmethod
    def _coerce(cls, v: Any) -> str:
        return _as_optional_str(v) or ""


class StructuredFacts(BaseModel):
    model_config = ConfigDict(extra="allow")

    case_caption: Optional[str] = None
    parties: Parties = Field(default_factory=Parties)
    claims: List[str] = Field(default_factory=list)
    key_dates: List[str] = Field(default_factory=list)
    venue: Optional[str] = None
    docket_number: Optional[str] = None
    monetary_amounts: List[str] = Field(default_factory=list)
    firm_header: Optional[FirmHeader] = None
    fact_citations: List[FactCitation] = Field(default_factory=list)
    other_facts: List[str] = Field(default_factory=list)
    source_filenames: List[str] = Field(default_factory=list)

    @field_validator("case_caption", "venue", "docket_number", mode="before")
    @classmethod
    def _coerce_str(cls, v: Any) -> Optional[str]:
        return _as_optional_str(v)

    @field_validator("claims", "key_dates", "monetary_amounts", "other_facts", "source_filenames", mode="before")
    @classmethod
    def _coerce_list(cls, v: Any) -> List[str]:
        return _as_str_list(v)

    @field_validator("parties", mode="before")
    @classmethod
    def _coerce_parties(cls, v: Any) -> Any:
        return v if isinstance(v, dict) else {}

    @field_validator("firm_header", mode="before")
    @classmethod
    def _coerce_header(cls, v: Any) -> Any:
        return v if isinstance(v, dict) else None

    @field_validator("fact_citations", mode="before")
    @classmethod
    def _coerce_citations(cls, v: Any) -> List[Any]:
        if not isinstance(v, list):
            return []
        return [item for item in v if isinstance(item, dict)]


def _strip_fences(raw: str) -> str:
    text = (raw or "").strip()
    if text.startswith("```"):
        text = _FENCE_RE.sub("", text).strip()
    return text


def parse_structured_facts(raw: Optional[str]) -> Tuple[StructuredFacts, Dict[str, Any]]:
    """Parse Phase-1 output. Returns the typed facts and the plain dict used for grounding.

    Anything that is not a JSON object yields ``(StructuredFacts(), {})``.
    """
    text = _strip_fences(raw or "")
    if not text:
        return StructuredFacts(), {}
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        logger.warning(f"[facts] Phase-1 output is not valid JSON ({exc}); using empty facts")
        return StructuredFacts(), {}
    if not isinstance(data, dict):
        logger.warning(f"[facts] Phase-1 output is a {type(data).__name__}, expected an object")
        return StructuredFacts(), {}
    try:
        return StructuredFacts.model_validate(data), data
    except ValidationError as exc:
        logger.warning(f"[facts] Phase-1 object did not match the fact schema: {exc.error_count()} errors")
        return StructuredFacts(), data
