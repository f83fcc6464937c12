"""Tests for slicer.plan.report module."""

from slicer.lib.validate import validate
from slicer.plan.errors import CyclicDependency
from slicer.plan.models import Feature, Slice, SliceStatus
from slicer.plan.report import (
    RunReport,
    build_fatal_report,
    build_report,
    format_report,
)


def make_feature(statuses):
    feature = Feature(name="checkout", description="", created="2026-01-01T00:00:00")
    for i, (name, status) in enumerate(statuses):
        s = Slice(feature="checkout", name=name, rationale="", priority=0, declared_index=i, status=status)
        if status in (SliceStatus.GENERATION_FAILED, SliceStatus.SKIPPED_BLOCKED):
            s.failure_reason = f"{name} went wrong"
        feature.slices.append(s)
    return feature


class TestRunReport:
    """Success and exit code rules."""

    def test_all_planned_is_success(self):
        report = build_report(make_feature([("a", SliceStatus.PLANNED), ("b", SliceStatus.PLANNED)]), implement=False)
        assert report.succeeded
        assert report.exit_code == 0

    def test_planned_is_not_enough_with_implement(self):
        report = build_report(make_feature([("a", SliceStatus.PLANNED)]), implement=True)
        assert not report.succeeded
        assert report.exit_code == 1

    def test_partial(self):
        feature = make_feature([("a", SliceStatus.PLANNED), ("b", SliceStatus.GENERATION_FAILED)])
        report = build_report(feature, implement=False)
        assert not report.succeeded
        assert report.exit_code == 1
        entry = report.entry("b")
        assert entry.reason == "b went wrong"
        assert entry.error_type == "RenderFailure"
        assert report.entry("a").error_type is None

    def test_cancelled_is_never_success(self):
        report = build_report(make_feature([("a", SliceStatus.PLANNED)]), implement=False, cancelled=True)
        assert not report.succeeded
        assert report.exit_code == 1

    def test_entries_follow_order(self):
        feature = make_feature([("a", SliceStatus.PLANNED), ("b", SliceStatus.PLANNED)])
        report = build_report(feature, implement=False, order=["b", "a"])
        assert [e.slice_name for e in report.entries] == ["b", "a"]

    def test_fatal_report(self):
        report = build_fatal_report("checkout", CyclicDependency(["a", "b"]), False, ("a", "b"))
        assert report.fatal_error.type == "CyclicDependency"
        assert "a -> b -> a" in report.fatal_error.message
        assert report.statuses() == {"a": SliceStatus.NOT_ATTEMPTED, "b": SliceStatus.NOT_ATTEMPTED}
        assert report.exit_code == 2
        assert not report.succeeded

    def test_fatal_report_without_slices(self):
        report = build_fatal_report("checkout", ValueError("x"), False)
        assert report.entries == ()
        assert report.exit_code == 2


class TestSerialization:
    """report.json shape."""

    def test_to_dict_matches_schema(self):
        feature = make_feature([("a", SliceStatus.PLANNED), ("b", SliceStatus.SKIPPED_BLOCKED)])
        report = build_report(feature, implement=False, warnings=("dup",), stale_slices=("old",))
        data = report.to_dict()
        validate(data, "report")
        assert data["exit_code"] == 1
        assert data["entries"][1] == {
            "slice": "b",
            "status": "skipped-blocked",
            "reason": "b went wrong",
            "error_type": "SkippedBlocked",
        }

    def test_from_dict_restores(self):
        feature = make_feature([("a", SliceStatus.PLANNED)])
        report = build_report(feature, implement=False, warnings=("dup",))
        restored = RunReport.from_dict(report.to_dict())
        assert restored == report

    def test_fatal_report_matches_schema(self):
        report = build_fatal_report("checkout", CyclicDependency(["a"]), True, ("a",))
        validate(report.to_dict(), "report")


class TestFormatReport:
    """Tests for format_report()."""

    def test_lists_slices_and_reasons(self):
        feature = make_feature([("cart", SliceStatus.PLANNED), ("payment", SliceStatus.GENERATION_FAILED)])
        text = format_report(build_report(feature, implement=False, stale_slices=("old",)))
        assert "cart" in text
        assert "generation-failed" in text
        assert "payment went wrong" in text
        assert "Result:  partial" in text
        assert "old" in text

    def test_fatal(self):
        text = format_report(build_fatal_report("checkout", CyclicDependency(["a"]), False, ("a",)))
        assert "FATAL CyclicDependency" in text
        assert "No artifacts were written." in text
