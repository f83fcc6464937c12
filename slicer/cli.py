#!/usr/bin/env python3
"""slicer CLI entrypoint."""

import argparse
import logging
import sys
from pathlib import Path

from slicer.lib.config import load_project_config
from slicer.lib.constants import EXIT_FATAL
from slicer.commands import plan as cmd_plan_module
from slicer.commands import show as cmd_show_module
from slicer.commands import status as cmd_status_module


def get_project_config(args):
    """Load project config from --project-dir (default: current directory)."""
    project_dir = Path(args.project_dir).resolve() if args.project_dir else Path.cwd()
    if not project_dir.is_dir():
        print(f"ERROR: Project directory '{project_dir}' does not exist")
        sys.exit(EXIT_FATAL)

    try:
        return load_project_config(project_dir)
    except ValueError as e:
        print(f"ERROR: {e}")
        sys.exit(EXIT_FATAL)


def cmd_plan(args):
    project_config = get_project_config(args)
    return cmd_plan_module.cmd_plan(args, project_config)


def cmd_status(args):
    project_config = get_project_config(args)
    return cmd_status_module.cmd_status(args, project_config)


def cmd_show(args):
    project_config = get_project_config(args)
    return cmd_show_module.cmd_show(args, project_config)


def setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    # transitions logs every trigger at INFO; our FSM logs its own line
    logging.getLogger("transitions").setLevel(logging.WARNING)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='slicer', description='Feature decomposition and build orchestration')
    parser.add_argument('--project-dir', '-C', help='Project directory (default: current directory)')
    parser.add_argument('--verbose', '-v', action='store_true', help='Debug logging')
    subparsers = parser.add_subparsers(dest='command', required=True)

    # slicer plan
    p_plan = subparsers.add_parser('plan', help='Decompose a feature into slices and generate artifacts')
    p_plan.add_argument('feature', help='Feature name (lowercase slug)')
    p_plan.add_argument('description', help='Feature request text')
    p_plan.add_argument('--implement', action='store_true', help='Implement planned slices after generation')
    p_plan.add_argument('--workers', '-w', type=int, help='Slices processed in parallel (default: MAX_WORKERS)')
    p_plan.set_defaults(func=cmd_plan)

    # slicer status
    p_status = subparsers.add_parser('status', help='Show the last run of a feature')
    p_status.add_argument('feature', help='Feature name')
    p_status.set_defaults(func=cmd_status)

    # slicer show
    p_show = subparsers.add_parser('show', help='Show a slice and its artifacts')
    p_show.add_argument('feature', help='Feature name')
    p_show.add_argument('slice', help='Slice name')
    p_show.add_argument('--kind', '-k', help='Only show this artifact kind (e.g. technical-plan)')
    p_show.set_defaults(func=cmd_show)

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)
    return args.func(args)


if __name__ == '__main__':
    sys.exit(main())
