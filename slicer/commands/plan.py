"""
slicer plan - Decompose a feature and generate (optionally implement) its slices.
"""

import signal

from slicer.lib.agents_config import load_agents_config, missing_stage_binaries
from slicer.lib.config import ProjectConfig
from slicer.lib.constants import EXIT_FATAL
from slicer.plan.agents import CommandAnalyzer, CommandBuildAction, CommandRenderer
from slicer.plan.report import format_report
from slicer.plan.store import get_feature_dir
from slicer.runner.locking import LockTimeout
from slicer.workflow.dispatch import CancelToken
from slicer.workflow.engine import run_feature


def cmd_plan(args, project_config: ProjectConfig) -> int:
    """Run the full pipeline for one feature and print the run report."""
    workers = args.workers if args.workers is not None else project_config.max_workers
    if workers < 1:
        print(f"ERROR: --workers must be >= 1 (got {workers})")
        return EXIT_FATAL

    agents_config = load_agents_config(project_config.project_dir)
    stages = ["propose", "render"] + (["implement"] if args.implement else [])
    missing = missing_stage_binaries(agents_config, stages)
    if missing:
        for binary, needed_by in missing.items():
            print(f"ERROR: '{binary}' not found in PATH (needed by: {', '.join(needed_by)})")
        return EXIT_FATAL

    analyzer = CommandAnalyzer(agents_config, project_config.propose_timeout, cwd=project_config.workdir)
    renderer = CommandRenderer(agents_config, project_config.render_timeout, cwd=project_config.workdir)
    build_action = None
    if args.implement:
        build_action = CommandBuildAction(agents_config, project_config.workdir, project_config.implement_timeout)

    print(f"Feature: {args.feature}")
    print("=" * 60)
    print(f"Slicing with {workers} worker(s){' and implementing' if args.implement else ''}...")
    print()

    # First Ctrl-C stops dispatching new slices; a second one interrupts
    cancel = CancelToken()

    def on_sigint(signum, frame):
        if cancel.cancelled:
            raise KeyboardInterrupt
        print("\nCancelling: waiting for in-flight slices to finish (Ctrl-C again to abort)")
        cancel.cancel()

    original_sigint = signal.signal(signal.SIGINT, on_sigint)
    try:
        report = run_feature(
            args.feature,
            args.description,
            analyzer=analyzer,
            renderer=renderer,
            build_action=build_action,
            features_dir=project_config.features_dir,
            implement=args.implement,
            max_workers=workers,
            cancel=cancel,
            lock_timeout=project_config.lock_timeout,
        )
    except LockTimeout as e:
        print(f"ERROR: {e}")
        print("Another run is working on this feature.")
        return EXIT_FATAL
    finally:
        signal.signal(signal.SIGINT, original_sigint)

    print(format_report(report))

    if report.fatal_error is None:
        print()
        print("-" * 60)
        print(f"Artifacts: {get_feature_dir(project_config.features_dir, args.feature)}")
        print()
        print("Next steps:")
        print(f"  slicer status {args.feature}")
        if report.entries:
            print(f"  slicer show {args.feature} {report.entries[0].slice_name}")

    return report.exit_code
