"""Binary text extraction with per-format fallback chains.

``extract_text`` never raises: each format has an ordered list of strategies,
the first non-empty result wins, and when every strategy fails the caller
gets a placeholder naming the file and the failure. One bad upload must not
sink the other sources of a generation request.

Salvage strategies (the raw PDF literal scan) run only when every structural
strategy raised. A file that parses cleanly but holds no text, such as a
scanned PDF, is reported as unreadable rather than mined for metadata strings.
"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Callable, List, Sequence, Tuple

from app.modules.drafting.services.extraction.docx_text import extract_docx_document, extract_docx_text
from app.modules.drafting.services.extraction.pdf_text import (
    extract_pdf_plain,
    extract_pdf_positioned,
    scan_pdf_literals,
)

logger = logging.getLogger(__name__)

Strategy = Callable[[bytes], str]

_EXCESS_NEWLINES_RE = re.compile(r"\n{3,}")


def decode_utf8(data: bytes) -> str:
    return data.decode("utf-8", errors="replace")


DOCX_STRATEGIES: Tuple[Tuple[str, Strategy], ...] = (
    ("docx_python", extract_docx_document),
    ("docx_xml", extract_docx_text),
)
PDF_STRATEGIES: Tuple[Tuple[str, Strategy], ...] = (
    ("pdf_positioned", extract_pdf_positioned),
    ("pdf_plain", extract_pdf_plain),
)
PDF_SALVAGE: Tuple[Tuple[str, Strategy], ...] = (
    ("pdf_literal_scan", scan_pdf_literals),
)
TEXT_STRATEGIES: Tuple[Tuple[str, Strategy], ...] = (
    ("utf8", decode_utf8),
)


@dataclass
class ExtractionReport:
    filename: str
    text: str
    strategy: str
    degraded: bool = False
    errors: List[str] = field(default_factory=list)

    @property
    def chars(self) -> int:
        return len(self.text)


def normalize_whitespace(text: str) -> str:
    text = (text or "").replace("\r\n", "\n").replace("\r", "\n")
    return _EXCESS_NEWLINES_RE.sub("\n\n", text).strip()


def _suffix(filename: str) -> str:
    return PurePosixPath(filename.lower()).suffix


def strategies_for(filename: str) -> Sequence[Tuple[str, Strategy]]:
    suffix = _suffix(filename)
    if suffix == ".docx":
        return DOCX_STRATEGIES
    if suffix == ".pdf":
        return PDF_STRATEGIES
    return TEXT_STRATEGIES


def salvage_for(filename: str) -> Sequence[Tuple[str, Strategy]]:
    return PDF_SALVAGE if _suffix(filename) == ".pdf" else ()


def placeholder_text(filename: str, reason: str) -> str:
    return f"[Text extraction failed for {filename}: {reason}]"


def run_strategies(
    filename: str,
    data: bytes,
    strategies: Sequence[Tuple[str, Strategy]],
    salvage: Sequence[Tuple[str, Strategy]] = (),
) -> ExtractionReport:
    errors: List[str] = []
    parsed = False
    chain = [(name, s, False) for name, s in strategies] + [(name, s, True) for name, s in salvage]
    for name, strategy, is_salvage in chain:
        if is_salvage and parsed:
            break
        try:
            text = normalize_whitespace(strategy(data))
        except Exception as exc:
            errors.append(f"{name}: {exc}")
            logger.warning(f"[extract] {filename}: strategy {name} failed: {exc}")
            continue
        parsed = True
        if text:
            if errors:
                logger.info(f"[extract] {filename}: recovered {len(text)} chars with {name}")
            return ExtractionReport(filename=filename, text=text, strategy=name, errors=errors)
        errors.append(f"{name}: no readable text")

    reason = "; ".join(errors) if errors else "no extraction strategy"
    logger.warning(f"[extract] {filename}: all strategies failed, substituting placeholder ({reason})")
    return ExtractionReport(
        filename=filename,
        text=placeholder_text(filename, reason),
        strategy="placeholder",
        degraded=True,
        errors=errors,
    )


def extract_with_report(filename: str, data: bytes) -> ExtractionReport:
    return run_strategies(filename, data or b"", strategies_for(filename), salvage_for(filename))


def extract_text(filename: str, data: bytes) -> str:
    return extract_with_report(filename, data).text
