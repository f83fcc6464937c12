"""Deterministic collaborator stubs shared by the engine tests."""

import threading

import pytest

from slicer.plan.errors import BuildError, RenderError


def proposal(name, priority=0, depends_on=(), rationale=None, requires_research=False):
    """Raw analyzer proposal, shaped like the JSON the propose stage returns."""
    return {
        "name": name,
        "rationale": rationale if rationale is not None else f"Deliver {name}",
        "priority": priority,
        "requires_research": requires_research,
        "depends_on": list(depends_on),
    }


class StubAnalyzer:
    def __init__(self, proposals=None, error=None):
        self.proposals = proposals or []
        self.error = error
        self.calls = []

    def propose(self, feature_name, description):
        self.calls.append((feature_name, description))
        if self.error is not None:
            raise self.error
        return list(self.proposals)


class StubRenderer:
    """Renders '# <kind> for <slice>'. Slices in fail raise RenderError
    (only for fail_kind when given)."""

    def __init__(self, fail=(), fail_kind=None, on_render=None):
        self.fail = set(fail)
        self.fail_kind = fail_kind
        self.on_render = on_render
        self.calls = []
        self._lock = threading.Lock()

    def render(self, slice_, kind):
        with self._lock:
            self.calls.append((slice_.name, kind))
        if self.on_render is not None:
            self.on_render(slice_, kind)
        if slice_.name in self.fail and (self.fail_kind is None or kind == self.fail_kind):
            raise RenderError(f"renderer refused {kind.value}")
        return f"# {kind.value} for {slice_.name}\n\n{slice_.rationale}\n"


class StubBuildAction:
    """Succeeds unless the slice is in fail (raises) or falsy (returns False)."""

    def __init__(self, fail=(), falsy=()):
        self.fail = set(fail)
        self.falsy = set(falsy)
        self.calls = []
        self._lock = threading.Lock()

    def implement(self, slice_):
        with self._lock:
            self.calls.append(slice_.name)
        if slice_.name in self.fail:
            raise BuildError("tests failed")
        return slice_.name not in self.falsy


@pytest.fixture
def features_dir(tmp_path):
    return tmp_path / "features"


@pytest.fixture
def fixed_clock():
    return lambda: "2026-01-01T00:00:00"


@pytest.fixture
def checkout_proposals():
    return [
        proposal("cart", priority=2, rationale="Customers collect items before paying"),
        proposal("payment", priority=1, depends_on=["cart"], rationale="Customers pay for the cart"),
    ]
