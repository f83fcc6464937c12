"""
Implementation Driver.

Second pass over the schedule, only with --implement. Each planned slice goes
planned -> implementing -> implemented | implementation-failed. A planned
slice whose dependencies aren't all implemented is skipped as blocked, and
because the schedule puts dependents later the block carries down the chain.
Slices that never reached 'planned' are left as they are.
"""

import logging
from pathlib import Path
from typing import Optional

from slicer.plan.artifacts import blocking_dependency, persist_transition
from slicer.plan.errors import BuildFailure
from slicer.plan.graph import DependencyGraph
from slicer.plan.models import Feature, Slice, SliceStatus
from slicer.workflow.dispatch import CancelToken, dispatch_in_order
from slicer.workflow.fsm import SliceFSM

logger = logging.getLogger(__name__)


class ImplementationDriver:
    def __init__(
        self,
        build_action,
        feature_dir: Path,
        cancel: Optional[CancelToken] = None,
        max_workers: int = 1,
    ):
        self.build_action = build_action
        self.feature_dir = feature_dir
        self.cancel = cancel
        self.max_workers = max_workers
        self._on_transition = persist_transition(feature_dir)

    def run(self, feature: Feature, order: list[Slice], graph: DependencyGraph) -> list[str]:
        """Implement slices in schedule order.

        Returns:
            Names never reached because the run was cancelled. Planned slices
            among them stay 'planned'.
        """
        return dispatch_in_order(
            [s.name for s in order],
            graph,
            lambda name: self.implement_slice(feature, feature.get_slice(name)),
            max_workers=self.max_workers,
            cancel=self.cancel,
        )

    def implement_slice(self, feature: Feature, slice_: Slice) -> None:
        fsm = SliceFSM(slice_, on_transition=self._on_transition)
        if not fsm.can("start_impl"):
            logger.debug(f"Skipping {slice_.name}: {slice_.status.value}")
            return

        blocker = blocking_dependency(feature, slice_, SliceStatus.IMPLEMENTED)
        if blocker is not None:
            fsm.block(reason=f"dependency '{blocker.name}' is {blocker.status.value}")
            return

        fsm.start_impl()
        logger.info(f"Implementing {feature.name}/{slice_.name}")
        try:
            ok = self.build_action.implement(slice_)
            message = None if ok else "build action reported failure"
        except Exception as e:
            message = str(e) or e.__class__.__name__

        if message is None:
            fsm.impl_succeeded()
            return

        failure = BuildFailure(slice_.name, message)
        logger.error(str(failure))
        fsm.impl_failed(reason=str(failure))
