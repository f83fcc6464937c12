"""
Error taxonomy for the planning engine.

Structural errors (InvalidFeatureName, AnalyzerError, UnknownDependency,
CyclicDependency) abort a run before anything is written. RenderFailure and
BuildFailure are contained to one slice and recorded as its failure reason.
DuplicateSliceName is never raised; the identifier collects it as a warning.
"""

from dataclasses import dataclass


class SlicerError(Exception):
    """Base class for engine errors."""


@dataclass
class InvalidFeatureName(SlicerError):
    name: str

    def __str__(self):
        return (
            f"Invalid feature name '{self.name}': use a lowercase slug "
            f"(letters, digits, hyphens; starting with a letter)"
        )


@dataclass
class AnalyzerError(SlicerError):
    """The requirement analyzer failed or returned nothing usable."""
    message: str

    def __str__(self):
        return f"Requirement analyzer failed: {self.message}"


@dataclass
class UnknownDependency(SlicerError):
    """A slice depends on a name that isn't in the proposal set."""
    slice_name: str
    dependency: str

    def __str__(self):
        return f"Slice '{self.slice_name}' depends on unknown slice '{self.dependency}'"


@dataclass
class CyclicDependency(SlicerError):
    """The dependency graph has a cycle. `cycle` lists it in traversal order."""
    cycle: list[str]

    def __str__(self):
        if len(self.cycle) == 1:
            return f"Slice '{self.cycle[0]}' depends on itself"
        path = " -> ".join(self.cycle + [self.cycle[0]])
        return f"Cyclic dependency: {path}"


@dataclass
class DuplicateSliceName(SlicerError):
    """A later proposal reused a name; it was dropped in favour of the first."""
    name: str
    first_index: int
    duplicate_index: int

    def __str__(self):
        return (
            f"Duplicate slice name '{self.name}' at position {self.duplicate_index} "
            f"merged into the first proposal at position {self.first_index}"
        )


class RenderError(SlicerError):
    """Raised by an artifact renderer."""


class BuildError(SlicerError):
    """Raised by a build action."""


@dataclass
class RenderFailure(SlicerError):
    """Artifact generation failed for one slice."""
    slice_name: str
    kind: str
    message: str

    def __str__(self):
        return f"Rendering {self.kind} for '{self.slice_name}' failed: {self.message}"


@dataclass
class BuildFailure(SlicerError):
    """Implementation failed for one slice."""
    slice_name: str
    message: str

    def __str__(self):
        return f"Building '{self.slice_name}' failed: {self.message}"


# Errors that abort a run before any per-slice work starts
STRUCTURAL_ERRORS = (InvalidFeatureName, AnalyzerError, UnknownDependency, CyclicDependency)
