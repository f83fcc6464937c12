"""Tests for slicer.workflow.fsm module."""

import pytest
from transitions import MachineError

from slicer.plan.models import Slice, SliceStatus
from slicer.workflow.fsm import STATES, TRANSITIONS, SliceFSM


def make_slice(status=SliceStatus.PROPOSED):
    return Slice(feature="checkout", name="cart", rationale="", priority=1, declared_index=0, status=status)


class TestFSMStates:
    """Tests for FSM state definitions."""

    def test_all_statuses_are_states(self):
        assert set(STATES) == {s.value for s in SliceStatus}

    def test_every_transition_uses_known_states(self):
        for t in TRANSITIONS:
            assert t["source"] in STATES
            assert t["dest"] in STATES


class TestSliceFSM:
    """Tests for SliceFSM transitions."""

    def test_initial_state_from_slice(self):
        fsm = SliceFSM(make_slice(SliceStatus.PLANNED))
        assert fsm.state == "planned"

    def test_generation_then_implementation(self):
        slice_ = make_slice()
        fsm = SliceFSM(slice_)
        fsm.plan()
        assert slice_.status == SliceStatus.PLANNED
        fsm.start_impl()
        assert slice_.status == SliceStatus.IMPLEMENTING
        fsm.impl_succeeded()
        assert slice_.status == SliceStatus.IMPLEMENTED

    def test_failure_records_reason(self):
        slice_ = make_slice()
        SliceFSM(slice_).fail_generation(reason="renderer timed out")
        assert slice_.status == SliceStatus.GENERATION_FAILED
        assert slice_.failure_reason == "renderer timed out"

    def test_block_from_planned(self):
        slice_ = make_slice(SliceStatus.PLANNED)
        SliceFSM(slice_).block(reason="dependency 'x' is implementation-failed")
        assert slice_.status == SliceStatus.SKIPPED_BLOCKED
        assert "x" in slice_.failure_reason

    def test_reason_cleared_on_success(self):
        slice_ = make_slice(SliceStatus.PLANNED)
        slice_.failure_reason = "stale"
        SliceFSM(slice_).start_impl()
        assert slice_.failure_reason is None

    def test_cannot_implement_unplanned_slice(self):
        fsm = SliceFSM(make_slice())
        assert not fsm.can("start_impl")
        with pytest.raises(MachineError):
            fsm.start_impl()

    @pytest.mark.parametrize("status", [
        SliceStatus.GENERATION_FAILED,
        SliceStatus.IMPLEMENTED,
        SliceStatus.IMPLEMENTATION_FAILED,
        SliceStatus.SKIPPED_BLOCKED,
        SliceStatus.NOT_ATTEMPTED,
    ])
    def test_no_transitions_out_of_terminal_states(self, status):
        fsm = SliceFSM(make_slice(status))
        assert not any(fsm.can(t["trigger"]) for t in TRANSITIONS)

    def test_abandon_only_from_proposed(self):
        assert SliceFSM(make_slice()).can("abandon")
        assert not SliceFSM(make_slice(SliceStatus.PLANNED)).can("abandon")

    def test_callback_receives_transition(self):
        seen = []
        slice_ = make_slice()
        fsm = SliceFSM(slice_, on_transition=lambda s, a, b, t: seen.append((s.name, a, b, t)))
        fsm.plan()
        assert seen == [("cart", "proposed", "planned", "plan")]

    def test_logs_transition(self, caplog):
        import logging
        caplog.set_level(logging.INFO, logger="slicer.workflow.fsm")
        SliceFSM(make_slice()).fail_generation(reason="boom")
        assert "[FSM] checkout/cart: proposed -> generation-failed (fail_generation): boom" in caplog.text
