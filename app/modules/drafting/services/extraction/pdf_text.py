"""PDF text recovery.

Three strategies, strongest first:

* ``extract_pdf_positioned`` collects every text token pypdf emits together with
  its device-space position and rebuilds lines geometrically (top to bottom,
  left to right), so reading order does not depend on content-stream order.
* ``extract_pdf_plain`` is pypdf's own layout-free extraction.
* ``scan_pdf_literals`` ignores structure entirely and pulls parenthesised
  string literals out of the uncompressed ``BT``/``ET`` text objects in the raw
  bytes. Lossy, but it survives broken xref tables. It never looks at the
  document information dictionary, so titles and producer strings stay out.
"""

import io
import logging
import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from pypdf import PdfReader
from pypdf.errors import PdfReadError

logger = logging.getLogger(__name__)

_IDENTITY = (1.0, 0.0, 0.0, 1.0, 0.0, 0.0)
_SPACES_RE = re.compile(r"[ \t]{2,}")
_LITERAL_RE = re.compile(rb"\((?:\\.|[^\\()])*\)", re.S)
_TEXT_OBJECT_RE = re.compile(rb"\bBT\b(.*?)\bET\b", re.S)
_ESCAPES = {
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "b": "\b",
    "f": "\f",
    "(": "(",
    ")": ")",
    "\\": "\\",
}
_ESCAPE_RE = re.compile(r"\\([0-7]{1,3}|.)", re.S)


@dataclass(frozen=True)
class PositionedToken:
    text: str
    x: float
    y: float


def reconstruct_lines(tokens: Sequence[PositionedToken]) -> str:
    """Group tokens into lines by rounded y, order lines top-down and tokens left-right."""
    lines: Dict[int, List[PositionedToken]] = {}
    for token in tokens:
        if not token.text or not token.text.strip():
            continue
        lines.setdefault(round(token.y), []).append(token)

    out = []
    # PDF user space grows upwards, so the top line has the largest y
    for key in sorted(lines, reverse=True):
        row = sorted(lines[key], key=lambda t: t.x)
        joined = " ".join(t.text.strip() for t in row)
        out.append(_SPACES_RE.sub(" ", joined))
    return "\n".join(out)


def _device_position(cm: Optional[Sequence[float]], tm: Optional[Sequence[float]]) -> tuple:
    cm = tuple(cm or _IDENTITY)
    tm = tuple(tm or _IDENTITY)
    x, y = float(tm[4]), float(tm[5])
    return (
        x * cm[0] + y * cm[2] + cm[4],
        x * cm[1] + y * cm[3] + cm[5],
    )


class _TokenCollector:
    """pypdf ``visitor_text`` callback that records positioned tokens."""

    def __init__(self):
        self.tokens: List[PositionedToken] = []

    def __call__(self, text, cm, tm, font_dict, font_size):
        if not text or not text.strip():
            return
        x, y = _device_position(cm, tm)
        self.tokens.append(PositionedToken(text=text, x=x, y=y))


def _open(data: bytes) -> PdfReader:
    reader = PdfReader(io.BytesIO(data), strict=False)
    if reader.is_encrypted:
        # owner-password-only files open with an empty user password
        reader.decrypt("")
    if len(reader.pages) == 0:
        raise PdfReadError("no pages found")
    return reader


def extract_pdf_positioned(data: bytes) -> str:
    reader = _open(data)
    pages = []
    for page in reader.pages:
        collector = _TokenCollector()
        page.extract_text(visitor_text=collector)
        text = reconstruct_lines(collector.tokens)
        if text.strip():
            pages.append(text)
    return "\n\n".join(pages)


def extract_pdf_plain(data: bytes) -> str:
    reader = _open(data)
    return "\n\n".join(
        text for text in ((page.extract_text() or "").strip() for page in reader.pages) if text
    )


def _decode_escape(m: re.Match) -> str:
    seq = m.group(1)
    if seq[0] in "01234567":
        return chr(int(seq, 8) & 0xFF)
    if seq in ("\n", "\r"):
        # backslash-newline is a line continuation
        return ""
    return _ESCAPES.get(seq, seq)


def decode_pdf_literal(body: str) -> str:
    return _ESCAPE_RE.sub(_decode_escape, body)


def _mostly_printable(text: str) -> bool:
    if not text.strip():
        return False
    printable = sum(1 for ch in text if ch.isprintable() or ch in "\n\t")
    return printable / len(text) >= 0.85


def scan_pdf_literals(data: bytes) -> str:
    """Pull ``(string)`` literals out of the text objects in raw PDF bytes and decode common escapes."""
    found = []
    for block in _TEXT_OBJECT_RE.finditer(data):
        for m in _LITERAL_RE.finditer(block.group(1)):
            body = m.group(0)[1:-1].decode("latin-1")
            text = decode_pdf_literal(body)
            if _mostly_printable(text):
                found.append(text.strip())
    return _SPACES_RE.sub(" ", " ".join(t for t in found if t))
