from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class TemplateFileType(str, Enum):
    DOCX = "docx"
    TEXT = "text"
    MD = "md"


class SourceRole(str, Enum):
    TEMPLATE = "template"
    DATABASE = "database"


class CandidateFile(BaseModel):
    """One entry of a storage listing. Enumerated per request, never persisted."""

    filename: str
    storage_path: str
    size_hint: Optional[int] = None


class ExtractedContext(BaseModel):
    """Text pulled out of one candidate (or the template) for a single request."""

    model_config = {"frozen": True}

    filename: str
    raw_text: str
    char_count: int
    storage_path: str = ""
    role: SourceRole = SourceRole.DATABASE
    degraded: bool = False
    strategy: str = ""

    @classmethod
    def from_text(
        cls,
        filename: str,
        text: str,
        storage_path: str = "",
        role: SourceRole = SourceRole.DATABASE,
        degraded: bool = False,
        strategy: str = "",
    ) -> "ExtractedContext":
        return cls(
            filename=filename,
            raw_text=text,
            char_count=len(text),
            storage_path=storage_path,
            role=role,
            degraded=degraded,
            strategy=strategy,
        )

    @property
    def readable(self) -> bool:
        return not self.degraded and bool(self.raw_text.strip())


class TruncatedContext(BaseModel):
    """An ExtractedContext cut to its share of the prompt budget."""

    filename: str
    role: SourceRole
    text: str
    original_chars: int
    allowance: int

    @property
    def truncated(self) -> bool:
        return self.original_chars > len(self.text)


class TemplateRecord(BaseModel):
    id: str
    name: str
    file_type: TemplateFileType = TemplateFileType.TEXT
    raw_content: Optional[str] = None
    file_path_ref: Optional[str] = None


class TemplateCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=256)
    file_type: TemplateFileType = TemplateFileType.TEXT
    content: Optional[str] = None
    file_path: Optional[str] = None


class FirmHints(BaseModel):
    name: Optional[str] = None
    domain: Optional[str] = None


class RequesterContext(BaseModel):
    user_id: str
    firm_id: Optional[str] = None


class ExtractResponse(BaseModel):
    filename: str
    text: str
    chars: int
    strategy: str
    degraded: bool
    errors: List[str] = Field(default_factory=list)


class SourceUploadResponse(BaseModel):
    message: str
    bucket: str
    storage_path: str
    filename: str
    size_bytes: int
