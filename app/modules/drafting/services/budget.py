"""Split a fixed character budget across the template and the database sources."""

from typing import List, Sequence

from app.modules.drafting.schema.documents import ExtractedContext, SourceRole, TruncatedContext

DEFAULT_TOTAL_BUDGET = 16000
DEFAULT_MIN_ALLOWANCE = 1000


def per_source_allowance(count: int, total_budget: int = DEFAULT_TOTAL_BUDGET,
                         floor: int = DEFAULT_MIN_ALLOWANCE) -> int:
    if count <= 0:
        return 0
    return max(floor, total_budget // count)


def budget(contexts: Sequence[ExtractedContext], total_budget: int = DEFAULT_TOTAL_BUDGET,
           floor: int = DEFAULT_MIN_ALLOWANCE) -> List[TruncatedContext]:
    """Truncate every context to an equal share, keeping the order they were given in."""
    allowance = per_source_allowance(len(contexts), total_budget, floor)
    return [
        TruncatedContext(
            filename=ctx.filename,
            role=ctx.role,
            text=ctx.raw_text[:allowance],
            original_chars=ctx.char_count,
            allowance=allowance,
        )
        for ctx in contexts
    ]


def block_header(ctx: TruncatedContext) -> str:
    if ctx.role == SourceRole.TEMPLATE:
        return f"=== TEMPLATE: {ctx.filename} ==="
    suffix = f", truncated to {len(ctx.text)}" if ctx.truncated else ""
    return f"=== DATABASE SOURCE: {ctx.filename} ({ctx.original_chars} chars{suffix}) ==="


def render_block(ctx: TruncatedContext) -> str:
    return f"{block_header(ctx)}\n{ctx.text}"


def render_blocks(contexts: Sequence[TruncatedContext], role: SourceRole) -> str:
    return "\n\n".join(render_block(c) for c in contexts if c.role == role)
