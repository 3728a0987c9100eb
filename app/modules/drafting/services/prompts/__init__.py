# Prompt building blocks for the two-phase drafting pipeline.

from .segments import PromptSegment, SegmentKind, assemble
from .drafting import PHASE1_SYSTEM_PROMPT, build_phase1_user_message

__all__ = ["PromptSegment", "SegmentKind", "assemble", "PHASE1_SYSTEM_PROMPT", "build_phase1_user_message"]
