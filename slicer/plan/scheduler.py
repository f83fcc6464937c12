"""
Topological Scheduler.

Produces the single processing order used for both artifact generation and
implementation:

1. A slice always comes after every slice it depends on.
2. Among slices that are ready, higher priority goes first.
3. Equal priority falls back to declaration order.

The same input always yields the same order.
"""

import heapq

from slicer.plan.errors import CyclicDependency
from slicer.plan.graph import DependencyGraph, find_cycle
from slicer.plan.models import Slice


def schedule(slices: list[Slice], graph: DependencyGraph) -> list[Slice]:
    """Order slices for processing (Kahn's algorithm with a priority heap).

    Raises:
        CyclicDependency: if the graph is not acyclic. build_graph() rejects
            cycles first, so this only fires on a hand-built graph.
    """
    by_name = {s.name: s for s in slices}
    remaining = {s.name: len(graph.dependencies_of(s.name)) for s in slices}

    ready = [(-s.priority, s.declared_index, s.name) for s in slices if remaining[s.name] == 0]
    heapq.heapify(ready)

    order: list[Slice] = []
    while ready:
        _, _, name = heapq.heappop(ready)
        order.append(by_name[name])
        for dependent in graph.dependents_of(name):
            remaining[dependent] -= 1
            if remaining[dependent] == 0:
                d = by_name[dependent]
                heapq.heappush(ready, (-d.priority, d.declared_index, d.name))

    if len(order) != len(slices):
        raise CyclicDependency(find_cycle(graph) or sorted(n for n, c in remaining.items() if c > 0))

    return order
