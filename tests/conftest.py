"""
Shared fixtures and test utilities for the drafting service tests.

Provides fake collaborators (file store, template store, language model,
analytics recorder) and in-memory DOCX/PDF builders so every test runs
without API keys, databases or network access.
"""

import io
import os
import sys
import zipfile
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

import pytest

# ---------------------------------------------------------------------------
# Environment must be set before core.config builds its Settings instance
# ---------------------------------------------------------------------------
PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("OPENAI_API_KEY", "test-key")

from core.config import GenerationConfig  # noqa: E402
from core.errors import NotFoundError  # noqa: E402
from app.modules.drafting.schema.documents import (  # noqa: E402
    CandidateFile,
    FirmHints,
    RequesterContext,
    TemplateFileType,
    TemplateRecord,
)


# ---------------------------------------------------------------------------
# Document builders
# ---------------------------------------------------------------------------

W_NS = 'xmlns:w="http://schemas.openxmlformats.org/wordprocessingml/2006/main"'


def docx_paragraph(text: str) -> str:
    return f'<w:p><w:r><w:t xml:space="preserve">{text}</w:t></w:r></w:p>'


def docx_part(paragraphs: Sequence[str], root: str = "w:document") -> str:
    body = "".join(p if p.startswith("<w:p") else docx_paragraph(p) for p in paragraphs)
    if root == "w:document":
        return f'<?xml version="1.0" encoding="UTF-8"?><w:document {W_NS}><w:body>{body}</w:body></w:document>'
    return f'<?xml version="1.0" encoding="UTF-8"?><{root} {W_NS}>{body}</{root}>'


def make_docx(
    paragraphs: Sequence[str] = (),
    headers: Optional[Dict[str, Sequence[str]]] = None,
    footers: Optional[Dict[str, Sequence[str]]] = None,
    include_document: bool = True,
) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as zf:
        zf.writestr("[Content_Types].xml", '<?xml version="1.0"?><Types/>')
        if include_document:
            zf.writestr("word/document.xml", docx_part(paragraphs))
        for name, paras in (headers or {}).items():
            zf.writestr(f"word/{name}", docx_part(paras, root="w:hdr"))
        for name, paras in (footers or {}).items():
            zf.writestr(f"word/{name}", docx_part(paras, root="w:ftr"))
    return buffer.getvalue()


def make_word_docx(
    paragraphs: Sequence[str] = (),
    header: Sequence[str] = (),
    footer: Sequence[str] = (),
    table: Optional[Sequence[Sequence[str]]] = None,
) -> bytes:
    """A real Word package written by python-docx, with an optional table after the paragraphs."""
    from docx import Document

    doc = Document()
    section = doc.sections[0]
    for part, lines in ((section.header, header), (section.footer, footer)):
        if lines:
            part.paragraphs[0].text = lines[0]
            for line in lines[1:]:
                part.add_paragraph(line)
    for text in paragraphs:
        doc.add_paragraph(text)
    if table:
        grid = doc.add_table(rows=len(table), cols=len(table[0]))
        for r, row in enumerate(table):
            for c, value in enumerate(row):
                grid.cell(r, c).text = value
    buffer = io.BytesIO()
    doc.save(buffer)
    return buffer.getvalue()


def make_blank_pdf(metadata: Optional[Dict[str, str]] = None, pages: int = 1) -> bytes:
    """Image-only stand-in: pages with no text content, plus document metadata."""
    from pypdf import PdfWriter

    writer = PdfWriter()
    for _ in range(pages):
        writer.add_blank_page(width=612, height=792)
    if metadata:
        writer.add_metadata(metadata)
    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


def make_pdf(placements: Sequence[Tuple[float, float, str]]) -> bytes:
    """Single-page PDF with one BT/ET block per (x, y, text) placement."""
    content = "".join(
        f"BT /F1 12 Tf 1 0 0 1 {x} {y} Tm ({text}) Tj ET\n" for x, y, text in placements
    ).encode("latin-1")
    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        b"<< /Type /Pages /Kids [3 0 R] /Count 1 >>",
        b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] /Contents 4 0 R "
        b"/Resources << /Font << /F1 5 0 R >> >> >>",
        b"<< /Length %d >>\nstream\n" % len(content) + content + b"\nendstream",
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica /Encoding /WinAnsiEncoding >>",
    ]
    out = bytearray(b"%PDF-1.4\n")
    offsets = []
    for number, body in enumerate(objects, 1):
        offsets.append(len(out))
        out += b"%d 0 obj\n" % number + body + b"\nendobj\n"
    xref_at = len(out)
    out += b"xref\n0 %d\n" % (len(objects) + 1)
    out += b"0000000000 65535 f \n"
    for offset in offsets:
        out += b"%010d 00000 n \n" % offset
    out += b"trailer\n<< /Size %d /Root 1 0 R >>\nstartxref\n%d\n%%%%EOF\n" % (len(objects) + 1, xref_at)
    return bytes(out)


# ---------------------------------------------------------------------------
# Fake collaborators
# ---------------------------------------------------------------------------

class FakeFileStore:
    def __init__(self, objects: Optional[Dict[str, Dict[str, bytes]]] = None):
        # bucket -> storage_path -> bytes
        self.objects: Dict[str, Dict[str, bytes]] = objects or {}
        self.downloads: List[str] = []
        self.fail_downloads: set = set()

    def put(self, bucket: str, storage_path: str, data: bytes) -> None:
        self.objects.setdefault(bucket, {})[storage_path] = data

    async def list_files(self, bucket: str, owner_scope: str) -> List[CandidateFile]:
        prefix = f"{owner_scope}/"
        return [
            CandidateFile(filename=path[len(prefix):], storage_path=path, size_hint=len(data))
            for path, data in sorted(self.objects.get(bucket, {}).items(), reverse=True)
            if path.startswith(prefix)
        ]

    async def download(self, bucket: str, storage_path: str) -> bytes:
        self.downloads.append(storage_path)
        if storage_path in self.fail_downloads:
            raise RuntimeError("storage unavailable")
        try:
            return self.objects[bucket][storage_path]
        except KeyError:
            raise NotFoundError(f"Object not found: {bucket}/{storage_path}")

    async def store(self, bucket: str, storage_path: str, data: bytes) -> str:
        self.put(bucket, storage_path, data)
        return storage_path


class FakeTemplateStore:
    def __init__(self, templates: Sequence[TemplateRecord] = ()):
        self.templates = {t.id: t for t in templates}

    async def get_template(self, template_id: str) -> Optional[TemplateRecord]:
        return self.templates.get(template_id)

    async def create_template(self, req, created_by=None) -> TemplateRecord:
        record = TemplateRecord(
            id=f"tpl-{len(self.templates) + 1}",
            name=req.name,
            file_type=req.file_type,
            raw_content=req.content,
            file_path_ref=req.file_path,
        )
        self.templates[record.id] = record
        return record


class FakeLanguageModel:
    """Scripted model: returns (or raises) queued responses in order and records every call."""

    def __init__(self, responses: Sequence = ()):
        self.responses = list(responses)
        self.calls: List[dict] = []

    async def complete(self, system_messages, user_message, response_format=None, max_tokens=None):
        self.calls.append(
            {
                "system_messages": list(system_messages),
                "user_message": user_message,
                "response_format": response_format,
                "max_tokens": max_tokens,
            }
        )
        item = self.responses.pop(0) if self.responses else ""
        if isinstance(item, Exception):
            raise item
        return item


class FakeFirmDirectory:
    def __init__(self, hints: Optional[FirmHints] = None, error: Optional[Exception] = None):
        self.hints = hints
        self.error = error

    async def get_firm_hints(self, requester):
        if self.error:
            raise self.error
        return self.hints


class FakeRecorder:
    def __init__(self, error: Optional[Exception] = None):
        self.events = []
        self.error = error

    async def record(self, event):
        if self.error:
            raise self.error
        self.events.append(event)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

FACTS_JSON = """{
  "case_caption": "Coldwater v. Cowell",
  "parties": {"plaintiffs": ["Jane Coldwater"], "defendants": ["Cowell Logistics LLC"]},
  "claims": ["Negligence"],
  "key_dates": ["2023-03-14"],
  "venue": "Superior Court of California, County of Alameda",
  "docket_number": "RG23-118822",
  "monetary_amounts": ["$250,000"],
  "firm_header": {"name": "Hale & Ortiz LLP", "address": "1 Market St, San Francisco, CA",
                  "phone": "(415) 555-0100", "email": "intake@haleortiz.com", "website": "haleortiz.com"},
  "fact_citations": [{"fact": "Collision on 2023-03-14", "source": "complaint_final.docx"}],
  "other_facts": [],
  "source_filenames": ["letterhead.docx", "complaint_final.docx"]
}"""


@pytest.fixture
def config() -> GenerationConfig:
    return GenerationConfig(api_key="test-key", model="gpt-4o-mini")


@pytest.fixture
def requester() -> RequesterContext:
    return RequesterContext(user_id="user-1", firm_id="firm-1")


@pytest.fixture
def template() -> TemplateRecord:
    return TemplateRecord(
        id="tpl-1",
        name="Demand Letter",
        file_type=TemplateFileType.DOCX,
        raw_content="RE: [Case]\n\nDear [Name],\n\nSincerely,",
    )


@pytest.fixture
def file_store() -> FakeFileStore:
    store = FakeFileStore()
    store.put(
        "database-uploads",
        "user-1/letterhead.docx",
        make_word_docx(
            ["Dear Counsel,", "We write regarding the collision of March 14, 2023.", "Very truly yours,"],
            header=["Hale & Ortiz LLP", "1 Market St, San Francisco, CA"],
        ),
    )
    store.put(
        "database-uploads",
        "user-1/complaint_final.docx",
        make_docx(["COMPLAINT FOR DAMAGES", "Plaintiff Jane Coldwater alleges negligence."]),
    )
    store.put("database-uploads", "user-1/notes.txt", b"Client called on Monday.")
    return store
