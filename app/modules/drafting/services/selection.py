"""Candidate source ranking.

Letterhead-like files are worth the most because they are where the firm
header comes from; complaints carry the case facts; PDFs get a small bump.
"""

import logging
import re
from typing import List, Sequence

from app.modules.drafting.schema.documents import CandidateFile

logger = logging.getLogger(__name__)

HEADER_PATTERN = re.compile(r"letter[\s_-]?head|header|firm|contact", re.IGNORECASE)
COMPLAINT_PATTERN = re.compile(r"complaint|petition", re.IGNORECASE)

HEADER_SCORE = 100
COMPLAINT_SCORE = 50
PDF_SCORE = 20


def score_filename(name: str) -> int:
    score = 0
    if HEADER_PATTERN.search(name or ""):
        score += HEADER_SCORE
    if COMPLAINT_PATTERN.search(name or ""):
        score += COMPLAINT_SCORE
    if (name or "").lower().endswith(".pdf"):
        score += PDF_SCORE
    return score


def is_listable(name: str) -> bool:
    # storage backends drop dot-files (".emptyFolderPlaceholder" and friends) into folders
    return bool(name) and not name.startswith(".")


def select_candidates(files: Sequence[CandidateFile], max_count: int = 5) -> List[CandidateFile]:
    """Highest score first, ties broken by filename descending, capped at ``max_count``."""
    usable = [f for f in files if is_listable(f.filename)]
    ranked = sorted(usable, key=lambda f: (score_filename(f.filename), f.filename), reverse=True)
    selected = ranked[: max(0, max_count)]
    logger.info(
        "[select] %d of %d files selected: %s",
        len(selected),
        len(files),
        ", ".join(f"{f.filename}({score_filename(f.filename)})" for f in selected),
    )
    return selected
