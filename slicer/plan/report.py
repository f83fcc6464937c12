"""
Run Report.

An immutable snapshot of every slice's final status, built once at the end of
a run (including runs aborted by a structural error).
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from slicer.lib.constants import EXIT_FATAL, EXIT_OK, EXIT_PARTIAL
from slicer.plan.models import Feature, SliceStatus


@dataclass(frozen=True)
class ReportEntry:
    slice_name: str
    status: SliceStatus
    reason: Optional[str] = None
    error_type: Optional[str] = None  # RenderFailure, BuildFailure, ...


@dataclass(frozen=True)
class FatalError:
    type: str
    message: str


@dataclass(frozen=True)
class RunReport:
    feature_name: str
    implement: bool
    entries: tuple[ReportEntry, ...]
    finished: str
    fatal_error: Optional[FatalError] = None
    cancelled: bool = False
    warnings: tuple[str, ...] = ()
    stale_slices: tuple[str, ...] = ()

    @property
    def target_status(self) -> SliceStatus:
        return SliceStatus.IMPLEMENTED if self.implement else SliceStatus.PLANNED

    @property
    def succeeded(self) -> bool:
        """Every slice reached the target status of this run."""
        if self.fatal_error is not None or self.cancelled or not self.entries:
            return False
        return all(e.status == self.target_status for e in self.entries)

    @property
    def exit_code(self) -> int:
        if self.fatal_error is not None:
            return EXIT_FATAL
        return EXIT_OK if self.succeeded else EXIT_PARTIAL

    def entry(self, slice_name: str) -> Optional[ReportEntry]:
        for e in self.entries:
            if e.slice_name == slice_name:
                return e
        return None

    def statuses(self) -> dict[str, SliceStatus]:
        return {e.slice_name: e.status for e in self.entries}

    def to_dict(self) -> dict:
        return {
            "version": 1,
            "feature": self.feature_name,
            "implement": self.implement,
            "succeeded": self.succeeded,
            "exit_code": self.exit_code,
            "finished": self.finished,
            "cancelled": self.cancelled,
            "fatal_error": (
                {"type": self.fatal_error.type, "message": self.fatal_error.message}
                if self.fatal_error else None
            ),
            "warnings": list(self.warnings),
            "stale_slices": list(self.stale_slices),
            "entries": [
                {
                    "slice": e.slice_name,
                    "status": e.status.value,
                    "reason": e.reason,
                    "error_type": e.error_type,
                }
                for e in self.entries
            ],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "RunReport":
        fatal = data.get("fatal_error")
        return cls(
            feature_name=data["feature"],
            implement=bool(data.get("implement", False)),
            entries=tuple(
                ReportEntry(
                    slice_name=e["slice"],
                    status=SliceStatus(e["status"]),
                    reason=e.get("reason"),
                    error_type=e.get("error_type"),
                )
                for e in data.get("entries", [])
            ),
            finished=data.get("finished", ""),
            fatal_error=FatalError(fatal["type"], fatal["message"]) if fatal else None,
            cancelled=bool(data.get("cancelled", False)),
            warnings=tuple(data.get("warnings", [])),
            stale_slices=tuple(data.get("stale_slices", [])),
        )


def _error_type(status: SliceStatus) -> Optional[str]:
    return {
        SliceStatus.GENERATION_FAILED: "RenderFailure",
        SliceStatus.IMPLEMENTATION_FAILED: "BuildFailure",
        SliceStatus.SKIPPED_BLOCKED: "SkippedBlocked",
    }.get(status)


def build_report(
    feature: Feature,
    implement: bool,
    order: Optional[list[str]] = None,
    warnings: tuple[str, ...] = (),
    stale_slices: tuple[str, ...] = (),
    cancelled: bool = False,
) -> RunReport:
    """Snapshot the feature's slices, in processing order when given."""
    names = order if order is not None else feature.slice_names
    entries = []
    for name in names:
        s = feature.get_slice(name)
        entries.append(ReportEntry(
            slice_name=s.name,
            status=s.status,
            reason=s.failure_reason,
            error_type=_error_type(s.status),
        ))
    return RunReport(
        feature_name=feature.name,
        implement=implement,
        entries=tuple(entries),
        finished=datetime.now().isoformat(),
        cancelled=cancelled,
        warnings=tuple(warnings),
        stale_slices=tuple(stale_slices),
    )


def build_fatal_report(
    feature_name: str,
    error: Exception,
    implement: bool,
    slice_names: tuple[str, ...] = (),
    warnings: tuple[str, ...] = (),
) -> RunReport:
    """Report for a run aborted before any per-slice work: every known slice
    is 'not-attempted'."""
    return RunReport(
        feature_name=feature_name,
        implement=implement,
        entries=tuple(
            ReportEntry(slice_name=name, status=SliceStatus.NOT_ATTEMPTED, reason="run aborted")
            for name in slice_names
        ),
        finished=datetime.now().isoformat(),
        fatal_error=FatalError(type=error.__class__.__name__, message=str(error)),
        warnings=tuple(warnings),
    )


def format_report(report: RunReport) -> str:
    """Human-readable summary for the CLI."""
    lines = [f"Run report: {report.feature_name}", "=" * 60, ""]

    if report.fatal_error is not None:
        lines.append(f"FATAL {report.fatal_error.type}: {report.fatal_error.message}")
        lines.append("")
        lines.append("No artifacts were written.")
        return "\n".join(lines)

    mode = "plan + implement" if report.implement else "plan"
    lines.append(f"Mode:    {mode}")
    lines.append(f"Result:  {'success' if report.succeeded else 'partial'}"
                 + (" (cancelled)" if report.cancelled else ""))
    lines.append("")

    width = max((len(e.slice_name) for e in report.entries), default=5)
    for i, e in enumerate(report.entries, 1):
        lines.append(f"  {i:>2}. {e.slice_name:<{width}}  {e.status.value}")
        if e.reason:
            lines.append(f"      {' ' * width}  {e.reason}")

    if report.warnings:
        lines.append("")
        lines.append("Warnings:")
        for w in report.warnings:
            lines.append(f"  - {w}")

    if report.stale_slices:
        lines.append("")
        lines.append("Stale slice directories (kept, not proposed this run):")
        for name in report.stale_slices:
            lines.append(f"  - {name}")

    return "\n".join(lines)
