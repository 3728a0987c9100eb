"""Pick the database source whose formatting the generated document should copy."""

from typing import Optional, Sequence

from app.modules.drafting.schema.documents import ExtractedContext, SourceRole


def resolve_style_authority(contexts: Sequence[ExtractedContext]) -> Optional[ExtractedContext]:
    """The readable database source with the most text, or None.

    ``max`` keeps the first of equal candidates, so repeated calls agree.
    """
    eligible = [c for c in contexts if c.role == SourceRole.DATABASE and c.readable]
    if not eligible:
        return None
    return max(eligible, key=lambda c: c.char_count)
