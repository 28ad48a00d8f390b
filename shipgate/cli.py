#!/usr/bin/env python3
"""shipgate CLI entrypoint."""

import sys
import argparse
import logging
from pathlib import Path

from shipgate.lib.config import load_engine_config, load_tracked_projects
from shipgate.lib.validate import ValidationError
from shipgate.commands import status as cmd_status_module
from shipgate.commands import watch as cmd_watch_module

DEFAULT_PROJECTS_FILE = "projects.json"


def load_context(args):
    """Load engine config and tracked projects, exiting with 2 on config errors."""
    settings_file = Path(args.config) if args.config else None
    try:
        config = load_engine_config(settings_file)
        projects = load_tracked_projects(Path(args.projects))
    except (ValidationError, FileNotFoundError, ValueError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(2)
    return config, projects


def cmd_status(args):
    config, projects = load_context(args)
    return cmd_status_module.cmd_status(args, config, projects)


def cmd_watch(args):
    config, projects = load_context(args)
    return cmd_watch_module.cmd_watch(args, config, projects)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='shipgate', description='Project ship-gate status')
    parser.add_argument('--config', '-c', help='Settings file (KEY=value lines)')
    parser.add_argument('--projects', '-p', default=DEFAULT_PROJECTS_FILE,
                        help=f'Tracked projects JSON file (default: {DEFAULT_PROJECTS_FILE})')
    parser.add_argument('--verbose', '-v', action='store_true', help='Debug logging')
    subparsers = parser.add_subparsers(dest='command', required=True)

    # shipgate status
    p_status = subparsers.add_parser('status', help='Refresh once and show project status')
    p_status.add_argument('--json', action='store_true', help='Print JSON instead of text')
    p_status.set_defaults(func=cmd_status)

    # shipgate watch
    p_watch = subparsers.add_parser('watch', help='Auto-refresh project status')
    p_watch.add_argument('--interval', '-i', type=float, help='Seconds between refreshes')
    p_watch.add_argument('--count', '-n', type=int, help='Stop after this many refreshes')
    p_watch.set_defaults(func=cmd_watch)

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    return args.func(args)


if __name__ == '__main__':
    sys.exit(main())
