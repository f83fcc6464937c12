"""Tests for slicer.plan.scheduler module."""

import random

import pytest

from slicer.plan.errors import CyclicDependency
from slicer.plan.graph import DependencyEdge, DependencyGraph, build_graph
from slicer.plan.models import Slice
from slicer.plan.scheduler import schedule


def make_slices(rows):
    """rows: list of (name, priority, [deps])"""
    return [
        Slice(feature="f", name=name, rationale="", priority=priority, declared_index=i, depends_on=list(deps))
        for i, (name, priority, deps) in enumerate(rows)
    ]


def order_of(rows):
    slices = make_slices(rows)
    return [s.name for s in schedule(slices, build_graph(slices))]


class TestSchedule:
    """Tests for schedule()."""

    def test_checkout_order(self):
        assert order_of([("cart", 2, []), ("payment", 1, ["cart"])]) == ["cart", "payment"]

    def test_dependency_beats_priority(self):
        # payment has the higher priority but still waits for cart
        assert order_of([("cart", 1, []), ("payment", 9, ["cart"])]) == ["cart", "payment"]

    def test_higher_priority_first_among_ready(self):
        assert order_of([("low", 1, []), ("high", 5, []), ("mid", 3, [])]) == ["high", "mid", "low"]

    def test_ties_by_declaration_order(self):
        assert order_of([("b", 1, []), ("a", 1, []), ("c", 1, [])]) == ["b", "a", "c"]

    def test_newly_ready_slice_competes_on_priority(self):
        # After 'base', 'urgent' (unlocked) outranks the already-ready 'later'
        rows = [("base", 5, []), ("later", 1, []), ("urgent", 9, ["base"])]
        assert order_of(rows) == ["base", "urgent", "later"]

    def test_dependencies_always_come_first(self):
        rng = random.Random(7)
        names = [f"s{i}" for i in range(25)]
        rows = []
        for i, name in enumerate(names):
            deps = rng.sample(names[:i], k=min(i, rng.randint(0, 3)))
            rows.append((name, rng.randint(0, 4), deps))

        order = order_of(rows)
        index = {name: i for i, name in enumerate(order)}
        assert sorted(order) == sorted(names)
        for name, _, deps in rows:
            for dep in deps:
                assert index[dep] < index[name]

    def test_deterministic(self):
        rows = [("a", 1, []), ("b", 1, ["a"]), ("c", 2, []), ("d", 2, ["c", "a"])]
        assert len({tuple(order_of(rows)) for _ in range(5)}) == 1

    def test_returns_slice_objects(self):
        slices = make_slices([("cart", 2, []), ("payment", 1, ["cart"])])
        order = schedule(slices, build_graph(slices))
        assert order[0] is slices[0]

    def test_cycle_in_hand_built_graph(self):
        slices = make_slices([("a", 0, []), ("b", 0, [])])
        graph = DependencyGraph(
            nodes=["a", "b"],
            edges=[DependencyEdge("a", "b"), DependencyEdge("b", "a")],
        )
        with pytest.raises(CyclicDependency):
            schedule(slices, graph)
