"""
Dependency Graph Builder.

Builds the directed "depends on" graph over a feature's slices and rejects
cycles with the full cycle path, so the caller can say exactly which slices
loop.
"""

from dataclasses import dataclass, field

from slicer.plan.errors import CyclicDependency, UnknownDependency
from slicer.plan.models import Slice

# DFS colours
_UNVISITED = 0
_IN_PROGRESS = 1
_DONE = 2


@dataclass(frozen=True)
class DependencyEdge:
    """from_slice depends on to_slice."""
    from_slice: str
    to_slice: str


@dataclass
class DependencyGraph:
    """Slice dependency graph. Node order is declaration order."""
    nodes: list[str]
    edges: list[DependencyEdge] = field(default_factory=list)

    def __post_init__(self):
        self._deps: dict[str, list[str]] = {n: [] for n in self.nodes}
        self._dependents: dict[str, list[str]] = {n: [] for n in self.nodes}
        for edge in self.edges:
            self._deps[edge.from_slice].append(edge.to_slice)
            self._dependents[edge.to_slice].append(edge.from_slice)

    def dependencies_of(self, name: str) -> list[str]:
        return list(self._deps[name])

    def dependents_of(self, name: str) -> list[str]:
        return list(self._dependents[name])

    def transitive_dependents(self, name: str) -> list[str]:
        """Every slice that depends on name directly or indirectly, breadth-first."""
        seen: list[str] = []
        queue = list(self._dependents[name])
        while queue:
            current = queue.pop(0)
            if current in seen:
                continue
            seen.append(current)
            queue.extend(self._dependents[current])
        return seen


def find_cycle(graph: DependencyGraph) -> list[str] | None:
    """Three-colour DFS. Returns the first cycle found, or None.

    Roots are tried in declaration order and dependencies in declared order,
    so the reported cycle is stable for identical input. The cycle starts at
    the slice the back edge points to.
    """
    colour = {n: _UNVISITED for n in graph.nodes}

    for root in graph.nodes:
        if colour[root] != _UNVISITED:
            continue

        # Iterative DFS; each frame is (node, iterator over its dependencies)
        path: list[str] = [root]
        stack = [(root, iter(graph.dependencies_of(root)))]
        colour[root] = _IN_PROGRESS

        while stack:
            node, deps = stack[-1]
            advanced = False
            for dep in deps:
                if colour[dep] == _IN_PROGRESS:
                    return path[path.index(dep):]
                if colour[dep] == _UNVISITED:
                    colour[dep] = _IN_PROGRESS
                    path.append(dep)
                    stack.append((dep, iter(graph.dependencies_of(dep))))
                    advanced = True
                    break
            if not advanced:
                colour[node] = _DONE
                path.pop()
                stack.pop()

    return None


def build_graph(slices: list[Slice]) -> DependencyGraph:
    """Build and validate the dependency graph.

    Raises:
        UnknownDependency: if an edge points outside the slice set
        CyclicDependency: if the graph has a cycle (self-dependency included)
    """
    names = [s.name for s in slices]
    known = set(names)

    edges: list[DependencyEdge] = []
    for s in slices:
        for dep in s.depends_on:
            if dep not in known:
                raise UnknownDependency(s.name, dep)
            edges.append(DependencyEdge(s.name, dep))

    graph = DependencyGraph(nodes=names, edges=edges)

    cycle = find_cycle(graph)
    if cycle is not None:
        raise CyclicDependency(cycle)

    return graph
