"""
Tests for app/modules/drafting/services/packager.py
"""

import io
from datetime import datetime

import pytest
from docx import Document

from app.modules.drafting.schema.documents import TemplateFileType, TemplateRecord
from app.modules.drafting.services.packager import DOCX_MEDIA_TYPE, package, slugify, split_blocks

NOW = datetime(2026, 3, 14, 9, 30, 5)
TEXT = "Dear Counsel,\n\nWe write regarding the collision.\n\n\n"


def _template(file_type):
    return TemplateRecord(id="tpl-1", name="Demand Letter", file_type=file_type)


class TestPackage:

    def test_docx_has_heading_and_one_paragraph_per_block(self):
        packaged = package(_template(TemplateFileType.DOCX), TEXT, now=NOW)

        doc = Document(io.BytesIO(packaged.content))
        paragraphs = [p for p in doc.paragraphs if p.text]
        assert [p.text for p in paragraphs] == ["Demand Letter", "Dear Counsel,", "We write regarding the collision."]
        assert paragraphs[0].style.name == "Heading 1"
        assert packaged.media_type == DOCX_MEDIA_TYPE
        assert packaged.filename == "demand-letter-20260314-093005.docx"

    @pytest.mark.parametrize(
        "file_type, extension, media_type",
        [
            (TemplateFileType.TEXT, ".txt", "text/plain; charset=utf-8"),
            (TemplateFileType.MD, ".md", "text/markdown; charset=utf-8"),
        ],
    )
    def test_text_formats_are_utf8(self, file_type, extension, media_type):
        packaged = package(_template(file_type), "Café letter", now=NOW)

        assert packaged.content == "Café letter".encode("utf-8")
        assert packaged.filename.endswith(extension)
        assert packaged.media_type == media_type

    def test_output_format_override(self):
        packaged = package(_template(TemplateFileType.DOCX), TEXT, output_format=TemplateFileType.TEXT, now=NOW)
        assert packaged.filename == "demand-letter-20260314-093005.txt"


def test_split_blocks_ignores_blank_runs():
    assert split_blocks("a\r\n\r\nb\n  \nc\n") == ["a", "b", "c"]


def test_slugify():
    assert slugify("Demand Letter (v2)") == "demand-letter-v2"
    assert slugify("***") == "document"
