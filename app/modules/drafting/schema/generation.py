from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional

from app.modules.drafting.schema.documents import TemplateFileType
from app.modules.drafting.schema.facts import FactCitation, FirmHeader


class GenerateRequest(BaseModel):
    query: str = Field(..., min_length=1)
    template_id: str = Field(..., min_length=1)


class SourceRef(BaseModel):
    bucket: str
    path: str
    filename: str


class ExtractionDiagnostic(BaseModel):
    filename: str
    chars: int
    strategy: str = ""
    degraded: bool = False


class TemplateRef(BaseModel):
    id: str
    name: str


class GenerationResult(BaseModel):
    answer_text: str
    analysis_json: str
    firm_header: Optional[FirmHeader] = None
    fact_citations: Optional[List[FactCitation]] = None
    sources: List[SourceRef] = Field(default_factory=list)
    extraction_diagnostics: List[ExtractionDiagnostic] = Field(default_factory=list)
    style_authority: Optional[str] = None
    template: Optional[TemplateRef] = None
    total_chars: int = 0
    low_text_warning: bool = False
    steps: List[str] = Field(default_factory=list)
    timings_ms: Dict[str, float] = Field(default_factory=dict)


class GenerationResponse(GenerationResult):
    success: bool = True


class GenerationEvent(BaseModel):
    """Row handed to the analytics recorder after a successful generation."""

    user_id: str
    firm_id: Optional[str] = None
    template_id: str
    output_type: str
    metadata: Dict[str, Any] = Field(default_factory=dict)


class PackageRequest(BaseModel):
    template_id: str
    text: str
    output_format: Optional[TemplateFileType] = None


class PackagedDocument(BaseModel):
    content: bytes
    filename: str
    media_type: str
