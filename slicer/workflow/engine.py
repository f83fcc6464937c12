"""
Run orchestration.

run_feature() is the single entry point for a run:

    identify -> graph -> schedule        (pure; structural errors abort here)
    lock -> persist feature + indexes -> generate -> [implement] -> report

Nothing touches the feature directory until the slice set has been
identified, its graph validated and its order computed, so a fatal
structural error leaves the disk exactly as it was.
"""

import logging
from pathlib import Path
from typing import Callable, Optional

from slicer.plan import store
from slicer.plan.artifacts import ArtifactGenerator, now_iso
from slicer.plan.errors import STRUCTURAL_ERRORS
from slicer.plan.graph import build_graph
from slicer.plan.identifier import identify_slices
from slicer.plan.index import write_indexes
from slicer.plan.report import RunReport, build_fatal_report, build_report
from slicer.plan.scheduler import schedule
from slicer.runner.locking import feature_lock
from slicer.workflow.dispatch import CancelToken
from slicer.workflow.driver import ImplementationDriver

logger = logging.getLogger(__name__)


def run_feature(
    feature_name: str,
    description: str,
    *,
    analyzer,
    renderer,
    features_dir: Path,
    build_action=None,
    implement: bool = False,
    max_workers: int = 1,
    cancel: Optional[CancelToken] = None,
    lock_timeout: float = 60,
    clock: Callable[[], str] = now_iso,
) -> RunReport:
    """Decompose a feature, generate its artifacts and optionally implement it.

    Args:
        feature_name: Feature slug (also the directory name)
        description: Free-text feature request
        analyzer: RequirementAnalyzer
        renderer: ArtifactRenderer
        features_dir: Parent directory of feature directories
        build_action: BuildAction, required when implement is True
        implement: Run the implementation pass after generation
        max_workers: Slices processed concurrently (1 = strictly sequential)
        cancel: Token checked between slices
        lock_timeout: Seconds to wait for the feature lock
        clock: Timestamp source for artifacts

    Returns:
        The run report. Structural errors are returned as a fatal report,
        not raised.

    Raises:
        ValueError: implement requested without a build action
        LockTimeout: another run holds the feature lock
    """
    if implement and build_action is None:
        raise ValueError("implement=True requires a build_action")

    features_dir = Path(features_dir)
    feature = None
    warnings: list[str] = []

    try:
        identification = identify_slices(feature_name, description, analyzer)
        feature = identification.feature
        warnings = [str(w) for w in identification.warnings]
        graph = build_graph(feature.slices)
        order = schedule(feature.slices, graph)
    except STRUCTURAL_ERRORS as e:
        logger.error(f"{e.__class__.__name__}: {e}")
        names = tuple(feature.slice_names) if feature is not None else ()
        return build_fatal_report(feature_name, e, implement, names, tuple(warnings))

    order_names = [s.name for s in order]
    logger.info(f"Processing order for '{feature_name}': {' -> '.join(order_names)}")

    feature_dir = store.get_feature_dir(features_dir, feature_name)
    with feature_lock(features_dir, feature_name, timeout=lock_timeout):
        store.append_run_log(
            feature_dir,
            f"run started: {len(order_names)} slices, implement={implement}, workers={max_workers}",
        )
        for warning in warnings:
            store.append_run_log(feature_dir, f"warning: {warning}")

        store.save_feature(feature_dir, feature, order_names)
        for slice_ in feature.slices:
            store.save_slice(feature_dir, slice_)
        write_indexes(feature_dir, feature, order, graph)

        stale = store.find_stale_slices(feature_dir, feature)
        for name in stale:
            logger.warning(f"Stale slice directory kept: {feature_name}/{name}")
            store.append_run_log(feature_dir, f"stale slice directory kept: {name}")

        generator = ArtifactGenerator(
            renderer, feature_dir, cancel=cancel, max_workers=max_workers, clock=clock
        )
        generator.generate(feature, order, graph)

        cancelled = cancel is not None and cancel.cancelled
        if implement and not cancelled:
            driver = ImplementationDriver(
                build_action, feature_dir, cancel=cancel, max_workers=max_workers
            )
            driver.run(feature, order, graph)
            cancelled = cancel is not None and cancel.cancelled

        report = build_report(
            feature,
            implement,
            order=order_names,
            warnings=tuple(warnings),
            stale_slices=tuple(stale),
            cancelled=cancelled,
        )
        store.save_report(feature_dir, report)
        store.append_run_log(
            feature_dir,
            f"run finished: {'success' if report.succeeded else 'partial'}"
            f"{' (cancelled)' if cancelled else ''}, exit {report.exit_code}",
        )

    return report
