"""
Slice Identifier.

The one place where free text becomes structured data: asks the requirement
analyzer for slice proposals, normalizes them, merges duplicate names and
checks that every dependency resolves.
"""

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from slicer.lib.constants import MAX_SLUG_LEN, SLUG_PATTERN
from slicer.plan.errors import (
    AnalyzerError,
    DuplicateSliceName,
    InvalidFeatureName,
    UnknownDependency,
)
from slicer.plan.models import Feature, Slice, SliceProposal

logger = logging.getLogger(__name__)


@dataclass
class Identification:
    """Identifier output: the populated feature and any merge warnings."""
    feature: Feature
    warnings: list[DuplicateSliceName] = field(default_factory=list)


def is_valid_slug(name: str) -> bool:
    return bool(SLUG_PATTERN.match(name)) and len(name) <= MAX_SLUG_LEN


def slugify(text: str, max_len: int = MAX_SLUG_LEN) -> str:
    """Convert text to a slice slug.

    - Lowercase
    - Non-alphanumeric runs become a single hyphen
    - Leading/trailing hyphens removed
    - Prefixed with 's-' if it would start with a digit
    - Truncated at a hyphen boundary when possible

    Returns an empty string if nothing usable is left.
    """
    slug = re.sub(r'[^a-z0-9]+', '-', str(text).lower()).strip('-')
    if slug and not slug[0].isalpha():
        slug = 's-' + slug
    if len(slug) > max_len:
        truncated = slug[:max_len].rsplit('-', 1)[0]
        slug = truncated if truncated else slug[:max_len]
        slug = slug.rstrip('-')
    return slug


def _field(raw: Any, name: str, default: Any = None) -> Any:
    if isinstance(raw, Mapping):
        return raw.get(name, default)
    return getattr(raw, name, default)


def _coerce_priority(value: Any, slice_name: str) -> int:
    if value is None:
        return 0
    if isinstance(value, bool):
        return int(value)
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.warning(f"Slice '{slice_name}': priority {value!r} is not an integer, using 0")
        return 0


def _coerce_flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "y")
    return bool(value)


def normalize_proposal(raw: Any, position: int) -> SliceProposal:
    """Turn one raw analyzer proposal (mapping or object) into a SliceProposal.

    Raises:
        AnalyzerError: if the proposal has no usable name
        UnknownDependency: if a dependency has no usable name (it can
            never resolve to a proposed slice)
    """
    name = slugify(_field(raw, "name", "") or "")
    if not name:
        raise AnalyzerError(f"proposal at position {position} has no usable name")

    raw_deps = _field(raw, "depends_on", None) or []
    if isinstance(raw_deps, str):
        raw_deps = [raw_deps]

    depends_on: list[str] = []
    for dep in raw_deps:
        dep_name = slugify(dep) if isinstance(dep, str) else ""
        if not dep_name:
            raise UnknownDependency(name, str(dep))
        if dep_name not in depends_on:
            depends_on.append(dep_name)

    return SliceProposal(
        name=name,
        rationale=str(_field(raw, "rationale", "") or "").strip(),
        priority=_coerce_priority(_field(raw, "priority", 0), name),
        requires_research=_coerce_flag(_field(raw, "requires_research", False)),
        depends_on=tuple(depends_on),
    )


def merge_duplicates(proposals: list[SliceProposal]) -> tuple[list[SliceProposal], list[DuplicateSliceName]]:
    """Keep the first proposal for each name. Returns (kept, warnings)."""
    first_seen: dict[str, int] = {}
    kept: list[SliceProposal] = []
    warnings: list[DuplicateSliceName] = []

    for index, proposal in enumerate(proposals):
        if proposal.name in first_seen:
            warning = DuplicateSliceName(proposal.name, first_seen[proposal.name], index)
            logger.warning(str(warning))
            warnings.append(warning)
            continue
        first_seen[proposal.name] = index
        kept.append(proposal)

    return kept, warnings


def check_dependencies(proposals: list[SliceProposal]) -> None:
    """Every dependency must name a proposed slice (forward references are fine).

    Raises:
        UnknownDependency: for the first unresolved reference, in declaration order
    """
    names = {p.name for p in proposals}
    for proposal in proposals:
        for dep in proposal.depends_on:
            if dep not in names:
                raise UnknownDependency(proposal.name, dep)


def identify_slices(
    feature_name: str,
    description: str,
    analyzer,
    created: Optional[str] = None,
) -> Identification:
    """Call the analyzer once and build the feature's slice set.

    Args:
        feature_name: Feature slug
        description: Free-text feature request
        analyzer: Object with propose(feature_name, description)
        created: ISO timestamp for the feature (defaults to now)

    Returns:
        Identification with every slice in 'proposed' status

    Raises:
        InvalidFeatureName: if feature_name isn't a slug
        AnalyzerError: if the analyzer fails or proposes nothing usable
        UnknownDependency: if a dependency doesn't resolve
    """
    if not is_valid_slug(feature_name):
        raise InvalidFeatureName(feature_name)

    try:
        raw_proposals = analyzer.propose(feature_name, description)
    except AnalyzerError:
        raise
    except Exception as e:
        raise AnalyzerError(str(e) or e.__class__.__name__) from e

    raw_proposals = list(raw_proposals or [])
    if not raw_proposals:
        raise AnalyzerError("no slices proposed")

    proposals = [normalize_proposal(raw, i) for i, raw in enumerate(raw_proposals)]
    proposals, warnings = merge_duplicates(proposals)
    check_dependencies(proposals)

    feature = Feature(
        name=feature_name,
        description=description,
        created=created or datetime.now().isoformat(),
        slices=[
            Slice(
                feature=feature_name,
                name=p.name,
                rationale=p.rationale,
                priority=p.priority,
                declared_index=index,
                depends_on=list(p.depends_on),
                requires_research=p.requires_research,
            )
            for index, p in enumerate(proposals)
        ],
    )

    logger.info(f"Identified {len(feature.slices)} slices for '{feature_name}': {', '.join(feature.slice_names)}")
    return Identification(feature=feature, warnings=warnings)
