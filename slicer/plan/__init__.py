"""
Planning module for slicer.

Turns a feature request into a validated, ordered slice set and the
planning documents for each slice.
"""

from slicer.plan.models import (
    Artifact,
    ArtifactKind,
    Feature,
    Slice,
    SliceProposal,
    SliceStatus,
)
from slicer.plan.errors import (
    AnalyzerError,
    BuildError,
    BuildFailure,
    CyclicDependency,
    DuplicateSliceName,
    InvalidFeatureName,
    RenderError,
    RenderFailure,
    SlicerError,
    UnknownDependency,
)
from slicer.plan.identifier import identify_slices
from slicer.plan.graph import DependencyEdge, DependencyGraph, build_graph
from slicer.plan.scheduler import schedule
from slicer.plan.report import RunReport, format_report

__all__ = [
    "Artifact",
    "ArtifactKind",
    "Feature",
    "Slice",
    "SliceProposal",
    "SliceStatus",
    "AnalyzerError",
    "BuildError",
    "BuildFailure",
    "CyclicDependency",
    "DuplicateSliceName",
    "InvalidFeatureName",
    "RenderError",
    "RenderFailure",
    "SlicerError",
    "UnknownDependency",
    "identify_slices",
    "DependencyEdge",
    "DependencyGraph",
    "build_graph",
    "schedule",
    "RunReport",
    "format_report",
]
