"""
Index artifacts for a feature directory.

Three documents summarize the whole feature and are rewritten on every run:
master-plan.md, slice-breakdown.md and implementation-order.md. They are
built from the slice model directly; no renderer call is involved.
"""

from pathlib import Path

from slicer.lib.constants import (
    IMPLEMENTATION_ORDER_FILE,
    MASTER_PLAN_FILE,
    SLICE_BREAKDOWN_FILE,
)
from slicer.lib.prompts import build_section
from slicer.plan import store
from slicer.plan.graph import DependencyGraph
from slicer.plan.models import Feature, Slice


def _deps_text(slice_: Slice) -> str:
    return ", ".join(slice_.depends_on) if slice_.depends_on else "none"


def build_master_plan(feature: Feature, order: list[Slice]) -> str:
    rows = ["| # | Slice | Priority | Depends on | Research |", "|---|---|---|---|---|"]
    for i, s in enumerate(order, 1):
        rows.append(
            f"| {i} | {s.name} | {s.priority} | {_deps_text(s)} | {'yes' if s.requires_research else 'no'} |"
        )

    parts = [
        f"# Master Plan: {feature.name}\n",
        f"Created: {feature.created}\n",
        build_section(feature.description.strip(), "## Request", "(no description)"),
        build_section("\n".join(rows), "## Slices"),
        build_section(
            "Each slice has its own directory under `slices/` with a requirement brief, "
            "a technical plan and a task breakdown (plus a research note where flagged).",
            "## Artifacts",
        ),
    ]
    return "\n".join(parts)


def build_slice_breakdown(feature: Feature) -> str:
    parts = [f"# Slice Breakdown: {feature.name}\n"]
    for s in feature.slices:
        body = "\n".join([
            s.rationale or "(no rationale given)",
            "",
            f"- Priority: {s.priority}",
            f"- Depends on: {_deps_text(s)}",
            f"- Requires research: {'yes' if s.requires_research else 'no'}",
        ])
        parts.append(build_section(body, f"## {s.name}"))
    return "\n".join(parts)


def build_implementation_order(feature: Feature, order: list[Slice], graph: DependencyGraph) -> str:
    lines = []
    for i, s in enumerate(order, 1):
        unlocks = graph.dependents_of(s.name)
        line = f"{i}. **{s.name}** (priority {s.priority}; after: {_deps_text(s)})"
        if unlocks:
            line += f" - unlocks {', '.join(unlocks)}"
        lines.append(line)

    parts = [
        f"# Implementation Order: {feature.name}\n",
        "Dependencies first; among ready slices higher priority first; "
        "ties by declaration order.\n",
        build_section("\n".join(lines), "## Order"),
    ]
    return "\n".join(parts)


def write_indexes(feature_dir: Path, feature: Feature, order: list[Slice], graph: DependencyGraph) -> list[Path]:
    """Regenerate all three index artifacts."""
    return [
        store.write_index(feature_dir, MASTER_PLAN_FILE, build_master_plan(feature, order)),
        store.write_index(feature_dir, SLICE_BREAKDOWN_FILE, build_slice_breakdown(feature)),
        store.write_index(
            feature_dir, IMPLEMENTATION_ORDER_FILE, build_implementation_order(feature, order, graph)
        ),
    ]
