"""Turn generated plain text into a downloadable file for the template's format."""

import io
import re
from datetime import datetime, timezone
from typing import List, Optional

from docx import Document as DocxDocument

from app.modules.drafting.schema.documents import TemplateFileType, TemplateRecord
from app.modules.drafting.schema.generation import PackagedDocument

DOCX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

_FORMATS = {
    TemplateFileType.DOCX: (".docx", DOCX_MEDIA_TYPE),
    TemplateFileType.TEXT: (".txt", "text/plain; charset=utf-8"),
    TemplateFileType.MD: (".md", "text/markdown; charset=utf-8"),
}

_BLOCK_SPLIT_RE = re.compile(r"\n\s*\n")
_SLUG_RE = re.compile(r"[^a-z0-9]+")


def slugify(name: str) -> str:
    slug = _SLUG_RE.sub("-", (name or "").lower()).strip("-")
    return slug or "document"


def split_blocks(text: str) -> List[str]:
    return [b.strip() for b in _BLOCK_SPLIT_RE.split((text or "").replace("\r\n", "\n")) if b.strip()]


def build_docx(title: str, text: str) -> bytes:
    doc = DocxDocument()
    doc.add_heading(title, level=1)
    for block in split_blocks(text):
        doc.add_paragraph(block)
    buffer = io.BytesIO()
    doc.save(buffer)
    return buffer.getvalue()


def package(
    template: TemplateRecord,
    generated_text: str,
    output_format: Optional[TemplateFileType] = None,
    now: Optional[datetime] = None,
) -> PackagedDocument:
    fmt = output_format or template.file_type
    extension, media_type = _FORMATS[fmt]
    stamp = (now or datetime.now(timezone.utc)).strftime("%Y%m%d-%H%M%S")
    filename = f"{slugify(template.name)}-{stamp}{extension}"

    if fmt == TemplateFileType.DOCX:
        content = build_docx(template.name, generated_text)
    else:
        content = (generated_text or "").encode("utf-8")

    return PackagedDocument(content=content, filename=filename, media_type=media_type)
