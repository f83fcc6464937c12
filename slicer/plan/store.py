"""
Feature directory persistence.

Layout:
  <features_dir>/<feature>/feature.json
  <features_dir>/<feature>/{master-plan,slice-breakdown,implementation-order}.md
  <features_dir>/<feature>/report.json
  <features_dir>/<feature>/run.log
  <features_dir>/<feature>/slices/<slice>/slice.json
  <features_dir>/<feature>/slices/<slice>/<kind>.md

JSON documents are schema-validated before every write. Artifact files carry
a YAML front-matter block with their structural fields.
"""

import json
import logging
import os
import threading
from datetime import datetime
from pathlib import Path
from typing import Optional

import yaml

from slicer.lib.constants import (
    FEATURE_FILE,
    REPORT_FILE,
    RUN_LOG_FILE,
    SLICE_FILE,
    SLICES_DIR,
)
from slicer.lib.validate import ValidationError, validate_before_write, validate_file
from slicer.plan.models import Artifact, ArtifactKind, Feature, Slice, SliceStatus
from slicer.plan.report import RunReport

logger = logging.getLogger(__name__)

_FRONT_MATTER_DELIM = "---"
_log_lock = threading.Lock()


def get_feature_dir(features_dir: Path, feature_name: str) -> Path:
    return Path(features_dir) / feature_name


def get_slice_dir(feature_dir: Path, slice_name: str) -> Path:
    return feature_dir / SLICES_DIR / slice_name


def _write_text_atomic(path: Path, content: str) -> None:
    """Write via a temp file + rename so readers never see half a file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_name(f".{path.name}.tmp")
    tmp.write_text(content)
    os.replace(tmp, path)


def _write_json(path: Path, data: dict, schema_name: str) -> None:
    validate_before_write(data, schema_name, path)
    _write_text_atomic(path, json.dumps(data, indent=2) + "\n")


# --- feature -----------------------------------------------------------------

def feature_to_dict(feature: Feature, order: Optional[list[str]] = None) -> dict:
    data = {
        "version": 1,
        "name": feature.name,
        "description": feature.description,
        "created": feature.created,
        "slices": feature.slice_names,
    }
    if order is not None:
        data["order"] = list(order)
    return data


def save_feature(feature_dir: Path, feature: Feature, order: Optional[list[str]] = None) -> Path:
    """Write feature.json (metadata and slice names, not slice state)."""
    path = feature_dir / FEATURE_FILE
    _write_json(path, feature_to_dict(feature, order), "feature")
    return path


def load_feature(feature_dir: Path) -> Optional[Feature]:
    """Load a feature and its current slices (with artifacts) from disk.

    Slices listed in feature.json but missing a readable slice.json are
    skipped with a warning.
    """
    path = feature_dir / FEATURE_FILE
    if not path.exists():
        return None

    try:
        data = json.loads(path.read_text())
    except json.JSONDecodeError as e:
        logger.warning(f"Failed to load {path}: {e}")
        return None

    feature = Feature(
        name=data["name"],
        description=data.get("description", ""),
        created=data.get("created", ""),
    )
    for name in data.get("slices", []):
        slice_ = load_slice(feature_dir, name)
        if slice_ is None:
            logger.warning(f"Slice '{name}' listed in {path} has no readable {SLICE_FILE}")
            continue
        feature.slices.append(slice_)
    return feature


def load_order(feature_dir: Path) -> list[str]:
    """Processing order recorded by the last run (empty if unknown)."""
    path = feature_dir / FEATURE_FILE
    if not path.exists():
        return []
    try:
        return list(json.loads(path.read_text()).get("order", []))
    except json.JSONDecodeError:
        return []


# --- slices ------------------------------------------------------------------

def slice_to_dict(slice_: Slice) -> dict:
    return {
        "version": 1,
        "feature": slice_.feature,
        "name": slice_.name,
        "rationale": slice_.rationale,
        "priority": slice_.priority,
        "depends_on": list(slice_.depends_on),
        "requires_research": slice_.requires_research,
        "declared_index": slice_.declared_index,
        "status": slice_.status.value,
        "failure_reason": slice_.failure_reason,
        "artifacts": {kind.value: a.generated_at for kind, a in slice_.artifacts.items()},
        "updated": datetime.now().isoformat(),
    }


def save_slice(feature_dir: Path, slice_: Slice) -> Path:
    """Write slices/<name>/slice.json."""
    path = get_slice_dir(feature_dir, slice_.name) / SLICE_FILE
    _write_json(path, slice_to_dict(slice_), "slice")
    return path


def load_slice(feature_dir: Path, slice_name: str) -> Optional[Slice]:
    path = get_slice_dir(feature_dir, slice_name) / SLICE_FILE
    if not path.exists():
        return None

    try:
        data = json.loads(path.read_text())
        slice_ = Slice(
            feature=data["feature"],
            name=data["name"],
            rationale=data.get("rationale", ""),
            priority=int(data.get("priority", 0)),
            declared_index=int(data.get("declared_index", 0)),
            depends_on=list(data.get("depends_on", [])),
            requires_research=bool(data.get("requires_research", False)),
            status=SliceStatus(data.get("status", SliceStatus.PROPOSED.value)),
            failure_reason=data.get("failure_reason"),
        )
    except (json.JSONDecodeError, KeyError, ValueError) as e:
        logger.warning(f"Failed to load slice {slice_name}: {e}")
        return None

    kinds = []
    for value in data.get("artifacts") or {}:
        try:
            kinds.append(ArtifactKind(value))
        except ValueError:
            logger.warning(f"Slice {slice_name}: unknown artifact kind '{value}' in {SLICE_FILE}")

    # Only what the last run recorded; older files are left on disk
    slice_.artifacts = load_artifacts(feature_dir, slice_name, kinds)
    return slice_


def list_slice_dirs(feature_dir: Path) -> list[str]:
    slices_dir = feature_dir / SLICES_DIR
    if not slices_dir.exists():
        return []
    return sorted(d.name for d in slices_dir.iterdir() if d.is_dir())


def find_stale_slices(feature_dir: Path, feature: Feature) -> list[str]:
    """Slice directories left over from earlier runs that this run didn't propose."""
    current = set(feature.slice_names)
    return [name for name in list_slice_dirs(feature_dir) if name not in current]


# --- artifacts ---------------------------------------------------------------

def format_artifact(feature_name: str, slice_name: str, artifact: Artifact) -> str:
    header = yaml.safe_dump(
        {
            "feature": feature_name,
            "slice": slice_name,
            "kind": artifact.kind.value,
            "generated_at": artifact.generated_at,
        },
        sort_keys=False,
    )
    body = artifact.content if artifact.content.endswith("\n") else artifact.content + "\n"
    return f"{_FRONT_MATTER_DELIM}\n{header}{_FRONT_MATTER_DELIM}\n{body}"


def parse_artifact(text: str) -> tuple[dict, str]:
    """Split an artifact file into (front matter, content).

    Files without front matter return ({}, text).
    """
    lines = text.split("\n")
    if not lines or lines[0].strip() != _FRONT_MATTER_DELIM:
        return {}, text

    for i in range(1, len(lines)):
        if lines[i].strip() == _FRONT_MATTER_DELIM:
            try:
                meta = yaml.safe_load("\n".join(lines[1:i])) or {}
            except yaml.YAMLError as e:
                logger.warning(f"Unreadable artifact front matter: {e}")
                return {}, text
            return (meta if isinstance(meta, dict) else {}), "\n".join(lines[i + 1:])

    return {}, text


def write_artifact(feature_dir: Path, slice_: Slice, artifact: Artifact) -> Path:
    """Write (or overwrite) slices/<slice>/<kind>.md."""
    path = get_slice_dir(feature_dir, slice_.name) / artifact.kind.filename
    _write_text_atomic(path, format_artifact(slice_.feature, slice_.name, artifact))
    return path


def read_artifact(path: Path) -> Optional[Artifact]:
    if not path.exists():
        return None
    meta, content = parse_artifact(path.read_text())
    try:
        kind = ArtifactKind(meta.get("kind", path.stem))
    except ValueError:
        logger.warning(f"Unknown artifact kind in {path}")
        return None
    return Artifact(kind=kind, content=content, generated_at=str(meta.get("generated_at", "")))


def load_artifacts(
    feature_dir: Path,
    slice_name: str,
    kinds: Optional[list[ArtifactKind]] = None,
) -> dict[ArtifactKind, Artifact]:
    """Artifacts on disk for a slice, keyed by kind.

    Reads every known kind unless kinds is given.
    """
    slice_dir = get_slice_dir(feature_dir, slice_name)
    artifacts: dict[ArtifactKind, Artifact] = {}
    for kind in (ArtifactKind if kinds is None else kinds):
        artifact = read_artifact(slice_dir / kind.filename)
        if artifact is not None:
            artifacts[kind] = artifact
    return artifacts


# --- index, report, log ------------------------------------------------------

def write_index(feature_dir: Path, filename: str, content: str) -> Path:
    path = feature_dir / filename
    _write_text_atomic(path, content)
    return path


def save_report(feature_dir: Path, report: RunReport) -> Path:
    path = feature_dir / REPORT_FILE
    _write_json(path, report.to_dict(), "report")
    return path


def load_report(feature_dir: Path) -> Optional[RunReport]:
    path = feature_dir / REPORT_FILE
    if not path.exists():
        return None
    try:
        return RunReport.from_dict(validate_file(path, "report"))
    except (ValidationError, KeyError, ValueError) as e:
        logger.warning(f"Failed to load report {path}: {e}")
        return None


def append_run_log(feature_dir: Path, message: str) -> None:
    """Append a timestamped line to the feature's run.log."""
    timestamp = datetime.now().isoformat()
    feature_dir.mkdir(parents=True, exist_ok=True)
    with _log_lock:
        with open(feature_dir / RUN_LOG_FILE, "a") as f:
            f.write(f"[{timestamp}] {message}\n")
