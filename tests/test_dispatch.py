"""Tests for slicer.workflow.dispatch module."""

import threading

import pytest

from slicer.plan.graph import build_graph
from slicer.plan.models import Slice
from slicer.workflow.dispatch import CancelToken, dispatch_in_order


def graph_of(rows):
    return build_graph([
        Slice(feature="f", name=name, rationale="", priority=0, declared_index=i, depends_on=list(deps))
        for i, (name, deps) in enumerate(rows)
    ])


class TestCancelToken:
    """Tests for CancelToken."""

    def test_starts_uncancelled(self):
        token = CancelToken()
        assert not token.cancelled
        token.cancel()
        assert token.cancelled


class TestSequentialDispatch:
    """max_workers=1"""

    def test_follows_order(self):
        graph = graph_of([("a", []), ("b", []), ("c", [])])
        seen = []
        assert dispatch_in_order(["c", "a", "b"], graph, seen.append) == []
        assert seen == ["c", "a", "b"]

    def test_stops_between_slices(self):
        graph = graph_of([("a", []), ("b", []), ("c", [])])
        cancel = CancelToken()
        seen = []

        def handle(name):
            seen.append(name)
            cancel.cancel()

        assert dispatch_in_order(["a", "b", "c"], graph, handle, cancel=cancel) == ["b", "c"]
        assert seen == ["a"]


class TestParallelDispatch:
    """max_workers > 1"""

    def test_dependencies_handled_first(self):
        graph = graph_of([("a", []), ("b", ["a"]), ("c", ["a"]), ("d", ["b", "c"]), ("e", [])])
        finished = []
        lock = threading.Lock()

        def handle(name):
            with lock:
                for dep in graph.dependencies_of(name):
                    assert dep in finished
                finished.append(name)

        assert dispatch_in_order(["a", "e", "b", "c", "d"], graph, handle, max_workers=4) == []
        assert sorted(finished) == ["a", "b", "c", "d", "e"]
        assert finished.index("d") > finished.index("b")
        assert finished.index("d") > finished.index("c")

    def test_runs_independent_slices_concurrently(self):
        graph = graph_of([("a", []), ("b", [])])
        barrier = threading.Barrier(2, timeout=5)

        # Deadlocks (BrokenBarrierError) unless both run at once
        dispatch_in_order(["a", "b"], graph, lambda name: barrier.wait(), max_workers=2)

    def test_cancel_stops_submitting(self):
        graph = graph_of([("a", []), ("b", ["a"]), ("c", ["b"])])
        cancel = CancelToken()
        seen = []

        def handle(name):
            seen.append(name)
            cancel.cancel()

        skipped = dispatch_in_order(["a", "b", "c"], graph, handle, max_workers=3, cancel=cancel)
        assert seen == ["a"]
        assert skipped == ["b", "c"]

    def test_handler_exception_propagates(self):
        graph = graph_of([("a", [])])

        def handle(name):
            raise RuntimeError("bug")

        with pytest.raises(RuntimeError, match="bug"):
            dispatch_in_order(["a"], graph, handle, max_workers=2)
