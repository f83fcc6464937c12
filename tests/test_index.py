"""Tests for slicer.plan.index module."""

from conftest import StubAnalyzer, proposal
from slicer.plan.graph import build_graph
from slicer.plan.identifier import identify_slices
from slicer.plan.index import (
    build_implementation_order,
    build_master_plan,
    build_slice_breakdown,
    write_indexes,
)
from slicer.plan.scheduler import schedule


def planned(proposals):
    feature = identify_slices("checkout", "Let customers buy things", StubAnalyzer(proposals),
                              created="2026-01-01T00:00:00").feature
    graph = build_graph(feature.slices)
    return feature, schedule(feature.slices, graph), graph


class TestIndexArtifacts:
    """Master plan, slice breakdown and implementation order documents."""

    def test_master_plan_table_in_schedule_order(self, checkout_proposals):
        feature, order, _ = planned(checkout_proposals)
        text = build_master_plan(feature, order)
        assert text.startswith("# Master Plan: checkout")
        assert "Created: 2026-01-01T00:00:00" in text
        assert "| 1 | cart | 2 | none | no |" in text
        assert "| 2 | payment | 1 | cart | no |" in text

    def test_breakdown_in_declaration_order(self):
        feature, _, _ = planned([proposal("b", priority=1), proposal("a", priority=5, requires_research=True)])
        text = build_slice_breakdown(feature)
        assert text.index("## b") < text.index("## a")
        assert "- Requires research: yes" in text

    def test_implementation_order_lists_unlocks(self, checkout_proposals):
        feature, order, graph = planned(checkout_proposals)
        text = build_implementation_order(feature, order, graph)
        assert "1. **cart** (priority 2; after: none) - unlocks payment" in text
        assert "2. **payment** (priority 1; after: cart)" in text

    def test_write_indexes(self, tmp_path, checkout_proposals):
        feature, order, graph = planned(checkout_proposals)
        paths = write_indexes(tmp_path, feature, order, graph)
        assert [p.name for p in paths] == ["master-plan.md", "slice-breakdown.md", "implementation-order.md"]
        assert all(p.exists() for p in paths)
