"""
slicer status - Show the last run of a feature.
"""

from slicer.lib.config import ProjectConfig
from slicer.lib.constants import EXIT_FATAL, EXIT_OK
from slicer.plan import store
from slicer.plan.report import format_report
from slicer.runner.locking import is_feature_locked


def cmd_status(args, project_config: ProjectConfig) -> int:
    """Print the persisted report and the current status of every slice."""
    feature_dir = store.get_feature_dir(project_config.features_dir, args.feature)

    feature = store.load_feature(feature_dir)
    if feature is None:
        print(f"ERROR: Feature '{args.feature}' not found in {project_config.features_dir}")
        return EXIT_FATAL

    print(f"Feature: {feature.name}")
    print("=" * 60)
    print()
    print(f"Created:  {feature.created}")
    print(f"Slices:   {len(feature.slices)}")
    print()

    if is_feature_locked(project_config.features_dir, feature.name):
        print("A run is in progress (feature is locked); statuses may change.")
        print()

    order = store.load_order(feature_dir) or feature.slice_names
    width = max((len(name) for name in order), default=5)
    print("Slices (processing order):")
    for i, name in enumerate(order, 1):
        slice_ = feature.get_slice(name)
        if slice_ is None:
            continue
        deps = f"  <- {', '.join(slice_.depends_on)}" if slice_.depends_on else ""
        print(f"  {i:>2}. {name:<{width}}  {slice_.status.value:<22} {len(slice_.artifacts)} artifact(s){deps}")
    print()

    stale = store.find_stale_slices(feature_dir, feature)
    if stale:
        print(f"Stale slice directories: {', '.join(stale)}")
        print()

    report = store.load_report(feature_dir)
    if report is None:
        print("No run report yet.")
        return EXIT_OK

    print(format_report(report))
    return EXIT_OK
