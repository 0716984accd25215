"""Command-line entry point for skillctl.

Subcommands map one-to-one onto the sync API: ``list`` -> ``list_skills``,
``status`` -> ``status_for_target``, ``push``/``import`` -> plan, print the
summary, execute.  Every ``SkillctlError`` is printed as ``error:`` plus an
optional ``help:`` line on stderr and turned into the error's exit code.
"""

import argparse
import json
import logging
import sys

from dotenv import load_dotenv

from . import __version__
from .config_loader import load_raw_config, resolve_config_path, write_starter_config
from .config_schema import SkillctlConfig, build_config
from .diff import run_diff
from .doctor import doctor_root, format_doctor_report
from .errors import SkillctlError
from .logger import setup_logging
from .sync import (
    PlanExecutionError,
    Selection,
    execute_plan,
    list_skills,
    plan_import,
    plan_push,
    plan_to_json,
    render_status_table,
    status_for_target,
    status_to_json,
    summarize_plan,
)

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="skillctl",
        description="Sync skill directories between a global root and targets",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Compare global with one target
  skillctl status --target claude

  # Preview, then apply, a push of every skill
  skillctl push --all --target claude --dry-run
  skillctl push --all --target claude --prune

  # Bring a skill edited in a target back into global
  skillctl import my-skill --from claude --overwrite

Exit codes: 0 success, 1 doctor found issues, 3 configuration error,
4 execution error.
        """,
    )
    parser.add_argument(
        "--config",
        help="Config file path (overrides SKILLCTL_CONFIG and the default "
        "~/.config/skillctl/config.yml)",
    )
    parser.add_argument(
        "--debug", action="store_true", help="Enable debug logging"
    )
    parser.add_argument("--log-file", help="Also append logs to this file")
    parser.add_argument(
        "--version",
        action="version",
        version=f"skillctl version {__version__}",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("targets", help="List configured target names")

    p_list = sub.add_parser("list", help="List skills in a root")
    scope = p_list.add_mutually_exclusive_group(required=True)
    scope.add_argument("--global", dest="use_global", action="store_true")
    scope.add_argument("--target")

    p_status = sub.add_parser("status", help="Compare global with targets")
    scope = p_status.add_mutually_exclusive_group(required=True)
    scope.add_argument("--target")
    scope.add_argument("--all", action="store_true")
    p_status.add_argument("--json", action="store_true")

    p_push = sub.add_parser("push", help="Copy skills from global to a target")
    selection = p_push.add_mutually_exclusive_group(required=True)
    selection.add_argument("skill", nargs="?")
    selection.add_argument("--all", action="store_true")
    p_push.add_argument("--target", required=True)
    p_push.add_argument("--dry-run", action="store_true")
    p_push.add_argument(
        "--prune",
        action="store_true",
        help="Remove target skills that are absent from global",
    )
    p_push.add_argument("--json", action="store_true")

    p_import = sub.add_parser(
        "import", help="Copy skills from a target into global"
    )
    selection = p_import.add_mutually_exclusive_group(required=True)
    selection.add_argument("skill", nargs="?")
    selection.add_argument("--all", action="store_true")
    p_import.add_argument("--from", dest="source", required=True)
    p_import.add_argument("--dry-run", action="store_true")
    p_import.add_argument(
        "--overwrite",
        action="store_true",
        help="Replace global skills that differ from the target",
    )
    p_import.add_argument("--json", action="store_true")

    p_diff = sub.add_parser("diff", help="Run the diff command on one skill")
    p_diff.add_argument("skill")
    p_diff.add_argument("--target", required=True)

    p_doctor = sub.add_parser("doctor", help="Check skill structure")
    scope = p_doctor.add_mutually_exclusive_group(required=True)
    scope.add_argument("--global", dest="use_global", action="store_true")
    scope.add_argument("--target")

    p_init = sub.add_parser("init", help="Write a starter config file")
    p_init.add_argument("--path", help="Where to write the config file")

    return parser


def _selection(args: argparse.Namespace) -> Selection:
    if args.all:
        return Selection.all()
    return Selection.one(args.skill)


def _print_json(data) -> None:
    print(json.dumps(data, indent=2))


def _run_sync(args: argparse.Namespace, config: SkillctlConfig) -> int:
    if args.command == "push":
        target = config.target_by_name(args.target)
        plan = plan_push(config, target, _selection(args), prune=args.prune)
    else:
        target = config.target_by_name(args.source)
        plan = plan_import(
            config, target, _selection(args), overwrite=args.overwrite
        )

    if not args.json:
        for line in summarize_plan(plan):
            print(line)
    try:
        report = execute_plan(plan, dry_run=args.dry_run)
    except PlanExecutionError as exc:
        if args.json:
            _print_json(plan_to_json(plan, exc.report, error=exc.message))
        raise
    if args.json:
        _print_json(plan_to_json(plan, report))
    return 0


def dispatch(args: argparse.Namespace) -> int:
    """Run the parsed command.  Raises ``SkillctlError`` on failure."""
    if args.command == "init":
        path = write_starter_config(resolve_config_path(args.path or args.config))
        print(f"Wrote {path}")
        return 0

    config = build_config(load_raw_config(args.config))

    if args.command == "targets":
        for target in config.targets:
            print(target.name)
        return 0

    if args.command == "list":
        root = (
            config.global_root
            if args.use_global
            else config.target_by_name(args.target).root
        )
        for skill in list_skills(root):
            print(skill)
        return 0

    if args.command == "status":
        targets = (
            config.targets
            if args.all
            else [config.target_by_name(args.target)]
        )
        results = []
        for target in targets:
            rows = status_for_target(config, target)
            if args.json:
                results.append(status_to_json(target.name, rows))
                continue
            if args.all:
                print(f"Target: {target.name}")
            print(render_status_table(rows), end="")
        if args.json:
            _print_json(results if args.all else results[0])
        return 0

    if args.command in ("push", "import"):
        return _run_sync(args, config)

    if args.command == "diff":
        run_diff(config, config.target_by_name(args.target), args.skill)
        return 0

    if args.command == "doctor":
        root = (
            config.global_root
            if args.use_global
            else config.target_by_name(args.target).root
        )
        report = doctor_root(root)
        print(format_doctor_report(report))
        return 0 if report.ok else 1

    raise AssertionError(f"unhandled command: {args.command}")


def main(argv: list[str] | None = None) -> int:
    """Parse *argv*, run the command, and return the process exit code."""
    args = build_parser().parse_args(argv)
    # .env may set LOG_LEVEL, so load it before configuring logging.
    load_dotenv()
    setup_logging(debug=args.debug, log_file=args.log_file)

    try:
        return dispatch(args)
    except SkillctlError as err:
        logger.debug("Command failed", exc_info=True)
        print(f"error: {err.message}", file=sys.stderr)
        if err.hint:
            print(f"help: {err.hint}", file=sys.stderr)
        return err.exit_code


def run() -> None:
    """Console-script entry point."""
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(130)


if __name__ == "__main__":
    run()
