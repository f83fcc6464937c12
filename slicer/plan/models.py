"""
Data models for the planning engine.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class SliceStatus(str, Enum):
    PROPOSED = "proposed"
    PLANNED = "planned"
    GENERATION_FAILED = "generation-failed"
    IMPLEMENTING = "implementing"
    IMPLEMENTED = "implemented"
    IMPLEMENTATION_FAILED = "implementation-failed"
    SKIPPED_BLOCKED = "skipped-blocked"
    NOT_ATTEMPTED = "not-attempted"


class ArtifactKind(str, Enum):
    RESEARCH_NOTE = "research-note"
    REQUIREMENT_BRIEF = "requirement-brief"
    TECHNICAL_PLAN = "technical-plan"
    TASK_BREAKDOWN = "task-breakdown"

    @property
    def filename(self) -> str:
        return f"{self.value}.md"

    @property
    def prompt_name(self) -> str:
        return self.value.replace("-", "_")


# Generation order; research-note is prepended only for slices that need it
ARTIFACT_SEQUENCE = (
    ArtifactKind.REQUIREMENT_BRIEF,
    ArtifactKind.TECHNICAL_PLAN,
    ArtifactKind.TASK_BREAKDOWN,
)


@dataclass(frozen=True)
class SliceProposal:
    """One normalized slice proposal from the requirement analyzer."""
    name: str
    rationale: str
    priority: int
    requires_research: bool = False
    depends_on: tuple[str, ...] = ()


@dataclass
class Artifact:
    """A planning document for one slice. Keyed by (slice, kind)."""
    kind: ArtifactKind
    content: str
    generated_at: str  # ISO timestamp


@dataclass
class Slice:
    """An independently plannable and buildable unit of a feature.

    Status is only changed through the slice state machine
    (see slicer.workflow.fsm).
    """
    feature: str
    name: str
    rationale: str
    priority: int
    declared_index: int                        # Position in the analyzer's output
    depends_on: list[str] = field(default_factory=list)
    requires_research: bool = False
    status: SliceStatus = SliceStatus.PROPOSED
    failure_reason: Optional[str] = None
    artifacts: dict[ArtifactKind, Artifact] = field(default_factory=dict)

    def required_artifacts(self) -> list[ArtifactKind]:
        """Artifact kinds to generate, in generation order."""
        kinds = list(ARTIFACT_SEQUENCE)
        if self.requires_research:
            kinds.insert(0, ArtifactKind.RESEARCH_NOTE)
        return kinds


@dataclass
class Feature:
    """The top-level request being decomposed.

    The slice list is filled once by the Slice Identifier and never
    reshaped afterwards; only slice statuses change.
    """
    name: str
    description: str
    created: str  # ISO timestamp
    slices: list[Slice] = field(default_factory=list)

    def get_slice(self, name: str) -> Optional[Slice]:
        for s in self.slices:
            if s.name == name:
                return s
        return None

    @property
    def slice_names(self) -> list[str]:
        return [s.name for s in self.slices]
