"""
Artifact Generator.

Walks the schedule and renders each slice's planning documents:

    [research-note] -> requirement-brief -> technical-plan -> task-breakdown

Each artifact is written as soon as it is rendered, so a failure half way
through a slice leaves the earlier documents on disk. A renderer failure is
contained to its slice; dependents of a slice that didn't reach 'planned'
are skipped as blocked.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from slicer.plan import store
from slicer.plan.errors import RenderError, RenderFailure
from slicer.plan.graph import DependencyGraph
from slicer.plan.models import Artifact, Feature, Slice, SliceStatus
from slicer.workflow.dispatch import CancelToken, dispatch_in_order
from slicer.workflow.fsm import SliceFSM

logger = logging.getLogger(__name__)


def now_iso() -> str:
    return datetime.now().isoformat()


def persist_transition(feature_dir: Path) -> Callable[[Slice, str, str, str], None]:
    """FSM callback that saves slice.json and records the change in run.log."""
    def on_transition(slice_: Slice, from_state: str, to_state: str, trigger: str) -> None:
        store.save_slice(feature_dir, slice_)
        line = f"{slice_.name}: {from_state} -> {to_state} ({trigger})"
        if slice_.failure_reason:
            line += f": {slice_.failure_reason}"
        store.append_run_log(feature_dir, line)
    return on_transition


def blocking_dependency(feature: Feature, slice_: Slice, required: SliceStatus) -> Optional[Slice]:
    """First dependency (declared order) that hasn't reached the required status."""
    for dep_name in slice_.depends_on:
        dep = feature.get_slice(dep_name)
        if dep is not None and dep.status != required:
            return dep
    return None


class ArtifactGenerator:
    """Renders and persists artifacts for every slice of a feature."""

    def __init__(
        self,
        renderer,
        feature_dir: Path,
        cancel: Optional[CancelToken] = None,
        max_workers: int = 1,
        clock: Callable[[], str] = now_iso,
    ):
        self.renderer = renderer
        self.feature_dir = feature_dir
        self.cancel = cancel
        self.max_workers = max_workers
        self.clock = clock
        self._on_transition = persist_transition(feature_dir)

    def generate(self, feature: Feature, order: list[Slice], graph: DependencyGraph) -> list[str]:
        """Generate artifacts in schedule order.

        Returns:
            Names of slices never reached because the run was cancelled
            (they end up 'not-attempted').
        """
        names = [s.name for s in order]
        skipped = dispatch_in_order(
            names,
            graph,
            lambda name: self.generate_slice(feature, feature.get_slice(name)),
            max_workers=self.max_workers,
            cancel=self.cancel,
        )

        for name in skipped:
            SliceFSM(feature.get_slice(name), on_transition=self._on_transition).abandon(
                reason="run cancelled before artifact generation"
            )
        return skipped

    def generate_slice(self, feature: Feature, slice_: Slice) -> None:
        fsm = SliceFSM(slice_, on_transition=self._on_transition)

        blocker = blocking_dependency(feature, slice_, SliceStatus.PLANNED)
        if blocker is not None:
            fsm.block(reason=f"dependency '{blocker.name}' is {blocker.status.value}")
            return

        for kind in slice_.required_artifacts():
            logger.info(f"Rendering {kind.value} for {feature.name}/{slice_.name}")
            try:
                content = self.renderer.render(slice_, kind)
                if not isinstance(content, str) or not content.strip():
                    raise RenderError(f"renderer returned no text ({type(content).__name__})")
            except Exception as e:
                failure = RenderFailure(slice_.name, kind.value, str(e) or e.__class__.__name__)
                logger.error(str(failure))
                fsm.fail_generation(reason=str(failure))
                return

            artifact = Artifact(kind=kind, content=content, generated_at=self.clock())
            slice_.artifacts[kind] = artifact
            store.write_artifact(self.feature_dir, slice_, artifact)

        fsm.plan()
