"""DOCX text reconstruction.

Two readers: ``extract_docx_document`` goes through python-docx and is tried
first; ``extract_docx_text`` reads the package XML directly and salvages
files python-docx refuses (missing relationships, odd content types).
Both read headers and footers as well as the body because firm letterhead
usually lives there, and both emit headers, body, footers in that order.
"""

import html
import io
import re
import zipfile
from typing import Iterable, List

from docx import Document as DocxDocument
from docx.oxml.ns import qn
from docx.text.paragraph import Paragraph

DOCUMENT_PART = "word/document.xml"

_HEADER_RE = re.compile(r"^word/header(\d*)\.xml$")
_FOOTER_RE = re.compile(r"^word/footer(\d*)\.xml$")

# paragraph properties can hold <w:tab .../> tab-stop definitions, which are not text
_PPR_RE = re.compile(r"<w:pPr\b.*?</w:pPr>", re.S)
# the opening <w:t> must not be self-closing, or the lazy body runs into the next run
_TOKEN_RE = re.compile(
    r"<w:t(?:\s[^>]*?)?(?<!/)>(?P<text>.*?)</w:t>"
    r"|(?P<br><w:(?:br|cr)\b[^>]*/>)"
    r"|(?P<tab><w:tab\b[^>]*/>)",
    re.S,
)
# keep \t and \n, drop every other C0 control and DEL
_CONTROL_RE = re.compile(r"[\x00-\x08\x0b-\x1f\x7f]")


class DocxFormatError(ValueError):
    """The buffer is not a usable Word package."""


def clean_paragraph(text: str) -> str:
    return _CONTROL_RE.sub("", text or "").strip()


# ---------------------------------------------------------------- python-docx


def _paragraph_texts(container, element) -> List[str]:
    """Every <w:p> under ``element``, table cells included, in document order."""
    texts = []
    for p in element.iter(qn("w:p")):
        text = clean_paragraph(Paragraph(p, container).text)
        if text:
            texts.append(text)
    return texts


def _header_footer_parts(doc, kind: str) -> Iterable:
    for section in doc.sections:
        for attr in (f"first_page_{kind}", kind, f"even_page_{kind}"):
            part = getattr(section, attr)
            # a linked header/footer has no definition of its own
            if not part.is_linked_to_previous:
                yield part


def extract_docx_document(data: bytes) -> str:
    doc = DocxDocument(io.BytesIO(data))

    blocks: List[str] = []
    for header in _header_footer_parts(doc, "header"):
        blocks.extend(_paragraph_texts(header, header._element))
    blocks.extend(_paragraph_texts(doc, doc.element.body))
    for footer in _header_footer_parts(doc, "footer"):
        blocks.extend(_paragraph_texts(footer, footer._element))
    return "\n\n".join(blocks)


# ---------------------------------------------------------------- raw XML


def _part_index(name: str, pattern: re.Pattern) -> int:
    m = pattern.match(name)
    return int(m.group(1) or 0) if m else 0


def paragraph_text(paragraph_xml: str) -> str:
    """Concatenate the runs of one <w:p>, turning breaks into newlines."""
    body = _PPR_RE.sub("", paragraph_xml)
    pieces: List[str] = []
    for m in _TOKEN_RE.finditer(body):
        if m.group("text") is not None:
            pieces.append(html.unescape(m.group("text")))
        elif m.group("br"):
            pieces.append("\n")
        else:
            pieces.append("\t")
    return clean_paragraph("".join(pieces))


def docx_xml_to_paragraphs(xml: str) -> List[str]:
    paragraphs = []
    for chunk in xml.split("</w:p>"):
        text = paragraph_text(chunk)
        if text:
            paragraphs.append(text)
    return paragraphs


def docx_xml_to_text(xml: str) -> str:
    """Non-empty paragraphs joined by a blank line, in document order."""
    return "\n\n".join(docx_xml_to_paragraphs(xml))


def ordered_parts(names: List[str]) -> List[str]:
    """Headers first, then the body, then footers."""
    headers = sorted((n for n in names if _HEADER_RE.match(n)), key=lambda n: _part_index(n, _HEADER_RE))
    footers = sorted((n for n in names if _FOOTER_RE.match(n)), key=lambda n: _part_index(n, _FOOTER_RE))
    return headers + [DOCUMENT_PART] + footers


def extract_docx_text(data: bytes) -> str:
    try:
        archive = zipfile.ZipFile(io.BytesIO(data))
    except zipfile.BadZipFile as exc:
        raise DocxFormatError(f"not a zip container ({exc})") from exc

    with archive:
        names = archive.namelist()
        if DOCUMENT_PART not in names:
            raise DocxFormatError(f"missing {DOCUMENT_PART}")

        blocks = []
        for part in ordered_parts(names):
            xml = archive.read(part).decode("utf-8", errors="replace")
            text = docx_xml_to_text(xml)
            if text:
                blocks.append(text)
    return "\n\n".join(blocks)
