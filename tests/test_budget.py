"""
Tests for app/modules/drafting/services/budget.py and style_authority.py

Covers: equal-share allowance with its floor, order preservation, block
labels, and style-authority resolution.
"""

from app.modules.drafting.schema.documents import ExtractedContext, SourceRole
from app.modules.drafting.services.budget import (
    block_header,
    budget,
    per_source_allowance,
    render_blocks,
)
from app.modules.drafting.services.style_authority import resolve_style_authority


def _ctx(name, chars, role=SourceRole.DATABASE, degraded=False):
    return ExtractedContext.from_text(name, "x" * chars, role=role, degraded=degraded)


class TestAllowance:

    def test_equal_share(self):
        assert per_source_allowance(3, 16000) == 5333

    def test_floor_applies_for_many_sources(self):
        assert per_source_allowance(20, 16000) == 1000

    def test_zero_sources(self):
        assert per_source_allowance(0, 16000) == 0


class TestBudget:

    def test_three_sources_truncated_to_share(self):
        contexts = [_ctx("a.docx", 10000), _ctx("b.docx", 2000), _ctx("c.docx", 9000)]
        budgeted = budget(contexts, total_budget=16000)

        assert [len(b.text) for b in budgeted] == [5333, 2000, 5333]
        assert [b.filename for b in budgeted] == ["a.docx", "b.docx", "c.docx"]
        assert all(b.allowance == 5333 for b in budgeted)

    def test_floor_exceeds_share(self):
        contexts = [_ctx(f"f{i}.txt", 1500) for i in range(20)]
        budgeted = budget(contexts, total_budget=16000, floor=1000)
        assert all(len(b.text) == 1000 for b in budgeted)

    def test_template_counts_towards_share(self):
        contexts = [_ctx("Demand Letter", 6000, role=SourceRole.TEMPLATE), _ctx("a.docx", 9000)]
        budgeted = budget(contexts, total_budget=16000)

        assert budgeted[0].role == SourceRole.TEMPLATE
        assert [len(b.text) for b in budgeted] == [6000, 8000]

    def test_empty_input(self):
        assert budget([]) == []


class TestBlockLabels:

    def test_database_label_shows_truncation(self):
        [truncated] = budget([_ctx("complaint.pdf", 20000)], total_budget=16000)
        assert block_header(truncated) == "=== DATABASE SOURCE: complaint.pdf (20000 chars, truncated to 16000) ==="

    def test_database_label_without_truncation(self):
        [whole] = budget([_ctx("memo.txt", 42)])
        assert block_header(whole) == "=== DATABASE SOURCE: memo.txt (42 chars) ==="

    def test_template_label(self):
        [tpl] = budget([_ctx("Demand Letter", 10, role=SourceRole.TEMPLATE)])
        assert block_header(tpl) == "=== TEMPLATE: Demand Letter ==="

    def test_render_blocks_filters_by_role(self):
        budgeted = budget([_ctx("Tpl", 3, role=SourceRole.TEMPLATE), _ctx("a.txt", 3), _ctx("b.txt", 3)])
        rendered = render_blocks(budgeted, SourceRole.DATABASE)

        assert "TEMPLATE" not in rendered
        assert rendered.index("a.txt") < rendered.index("b.txt")
        assert rendered.count("=== DATABASE SOURCE") == 2


class TestStyleAuthority:

    def test_largest_readable_source_wins(self):
        contexts = [_ctx("a.docx", 500), _ctx("b.docx", 3000), _ctx("c.docx", 1200)]
        assert resolve_style_authority(contexts).filename == "b.docx"

    def test_no_sources(self):
        assert resolve_style_authority([]) is None

    def test_degraded_placeholders_are_ignored(self):
        contexts = [_ctx("scan.pdf", 5000, degraded=True), _ctx("memo.txt", 100)]
        assert resolve_style_authority(contexts).filename == "memo.txt"

    def test_all_degraded(self):
        assert resolve_style_authority([_ctx("scan.pdf", 5000, degraded=True)]) is None

    def test_template_is_never_authority(self):
        contexts = [_ctx("Tpl", 9000, role=SourceRole.TEMPLATE), _ctx("memo.txt", 10)]
        assert resolve_style_authority(contexts).filename == "memo.txt"

    def test_ties_keep_first(self):
        contexts = [_ctx("first.txt", 100), _ctx("second.txt", 100)]
        assert resolve_style_authority(contexts).filename == "first.txt"
