"""
slicer show - Show a slice's metadata and artifacts.
"""

from slicer.lib.config import ProjectConfig
from slicer.lib.constants import EXIT_FATAL, EXIT_OK
from slicer.plan import store
from slicer.plan.models import ArtifactKind


def cmd_show(args, project_config: ProjectConfig) -> int:
    feature_dir = store.get_feature_dir(project_config.features_dir, args.feature)
    if not feature_dir.exists():
        print(f"ERROR: Feature '{args.feature}' not found in {project_config.features_dir}")
        return EXIT_FATAL

    kind = None
    if args.kind:
        try:
            kind = ArtifactKind(args.kind)
        except ValueError:
            valid = ", ".join(k.value for k in ArtifactKind)
            print(f"ERROR: Unknown artifact kind '{args.kind}' (expected one of: {valid})")
            return EXIT_FATAL

    slice_ = store.load_slice(feature_dir, args.slice)
    if slice_ is None:
        print(f"ERROR: Slice '{args.slice}' not found in feature '{args.feature}'")
        return EXIT_FATAL

    if kind is not None:
        artifact = slice_.artifacts.get(kind)
        if artifact is None:
            print(f"ERROR: Slice '{slice_.name}' has no {kind.value} artifact")
            return EXIT_FATAL
        print(artifact.content)
        return EXIT_OK

    print(f"Slice: {args.feature}/{slice_.name}")
    print("=" * 60)
    print()
    print(f"Status:     {slice_.status.value}")
    if slice_.failure_reason:
        print(f"Reason:     {slice_.failure_reason}")
    print(f"Priority:   {slice_.priority}")
    print(f"Depends on: {', '.join(slice_.depends_on) or '(none)'}")
    print(f"Research:   {'yes' if slice_.requires_research else 'no'}")
    print()
    if slice_.rationale:
        print("Rationale:")
        print(f"  {slice_.rationale}")
        print()

    if not slice_.artifacts:
        print("No artifacts generated.")
        return EXIT_OK

    for k in ArtifactKind:
        artifact = slice_.artifacts.get(k)
        if artifact is None:
            continue
        print("-" * 60)
        print(f"{k.value}  (generated {artifact.generated_at})")
        print("-" * 60)
        print(artifact.content.rstrip())
        print()

    return EXIT_OK
