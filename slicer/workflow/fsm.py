"""Slice state machine using the transitions library.

Every status change of a slice goes through SliceFSM so illegal moves
(e.g. implementing a slice that was never planned) raise instead of
silently corrupting the run.

    proposed ──plan──────────> planned ──start_impl──> implementing
       │  └─fail_generation──> generation-failed         │    │
       │                                   impl_succeeded│    │impl_failed
       ├─block─> skipped-blocked <─block── planned       v    v
       └─abandon─> not-attempted                implemented  implementation-failed

Usage:
    from slicer.workflow.fsm import SliceFSM

    fsm = SliceFSM(slice_)
    fsm.plan()
    fsm.start_impl()
    fsm.impl_failed(reason="tests failed")
"""

import logging
from typing import Callable

from transitions import Machine

from slicer.plan.models import Slice, SliceStatus

logger = logging.getLogger(__name__)


STATES = [s.value for s in SliceStatus]

TRANSITIONS = [
    # Artifact generation
    {"trigger": "plan", "source": SliceStatus.PROPOSED.value, "dest": SliceStatus.PLANNED.value},
    {"trigger": "fail_generation", "source": SliceStatus.PROPOSED.value, "dest": SliceStatus.GENERATION_FAILED.value},

    # A dependency didn't make it through the current stage
    {"trigger": "block", "source": SliceStatus.PROPOSED.value, "dest": SliceStatus.SKIPPED_BLOCKED.value},
    {"trigger": "block", "source": SliceStatus.PLANNED.value, "dest": SliceStatus.SKIPPED_BLOCKED.value},

    # Run aborted (fatal error or cancellation) before the slice was reached
    {"trigger": "abandon", "source": SliceStatus.PROPOSED.value, "dest": SliceStatus.NOT_ATTEMPTED.value},

    # Implementation
    {"trigger": "start_impl", "source": SliceStatus.PLANNED.value, "dest": SliceStatus.IMPLEMENTING.value},
    {"trigger": "impl_succeeded", "source": SliceStatus.IMPLEMENTING.value, "dest": SliceStatus.IMPLEMENTED.value},
    {"trigger": "impl_failed", "source": SliceStatus.IMPLEMENTING.value, "dest": SliceStatus.IMPLEMENTATION_FAILED.value},
]

# States whose failure_reason is kept; every other state clears it
REASON_STATES = {
    SliceStatus.GENERATION_FAILED,
    SliceStatus.IMPLEMENTATION_FAILED,
    SliceStatus.SKIPPED_BLOCKED,
    SliceStatus.NOT_ATTEMPTED,
}


class SliceFSM:
    """State machine for one slice.

    Wraps the transitions library with slice-specific logic:
    - Starts from the slice's current status
    - Writes every change back to the Slice (status + failure_reason)
    - Logs all transitions and notifies an optional callback
    """

    def __init__(self, slice_: Slice, on_transition: Callable[[Slice, str, str, str], None] | None = None):
        """
        Args:
            slice_: The slice to drive. Its status is the initial state.
            on_transition: Optional callback(slice, from_state, to_state, trigger)
                called after each transition (used to persist slice.json)
        """
        self.slice = slice_
        self.on_transition = on_transition

        self.machine = Machine(
            model=self,
            states=STATES,
            transitions=TRANSITIONS,
            initial=slice_.status.value,
            auto_transitions=False,
            send_event=True,
            after_state_change="on_state_change",
        )

    @property
    def label(self) -> str:
        return f"{self.slice.feature}/{self.slice.name}"

    def on_state_change(self, event) -> None:
        """Sync the slice, log, then notify.

        Triggers accept an optional reason= keyword, recorded as the
        slice's failure_reason for failed/blocked states.
        """
        from_state = self.slice.status
        to_state = SliceStatus(self.state)
        trigger = event.event.name

        self.slice.status = to_state
        self.slice.failure_reason = event.kwargs.get("reason") if to_state in REASON_STATES else None

        suffix = f": {self.slice.failure_reason}" if self.slice.failure_reason else ""
        logger.info(f"[FSM] {self.label}: {from_state.value} -> {to_state.value} ({trigger}){suffix}")

        if self.on_transition:
            self.on_transition(self.slice, from_state.value, to_state.value, trigger)

    def can(self, trigger: str) -> bool:
        """Check if a trigger can be executed in current state."""
        return trigger in self.machine.get_triggers(self.state)
