"""Typed system-message segments.

Each upstream component contributes segments; the orchestrator assembles them
once. Ordering lives in ``SegmentKind`` so the precedence (style authority,
then template, then database sources) can be checked without calling a model.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Iterable, List


class SegmentKind(IntEnum):
    OUTPUT_CONSTRAINT = 10
    ROLE_DEFINITIONS = 20
    STYLE_AUTHORITY = 30
    TEMPLATE = 40
    DATABASE_SOURCES = 50
    FIRM_HEADER = 60
    FIRM_HINTS = 70
    FACTS = 80
    FORMATTING_RULES = 90


@dataclass(frozen=True)
class PromptSegment:
    kind: SegmentKind
    content: str
    role: str = "system"

    @property
    def priority(self) -> int:
        return int(self.kind)


def assemble(segments: Iterable[PromptSegment]) -> List[str]:
    """Order by priority (stable for equal kinds) and drop empty segments."""
    ordered = sorted(segments, key=lambda s: s.priority)
    return [s.content for s in ordered if s.content and s.content.strip()]
