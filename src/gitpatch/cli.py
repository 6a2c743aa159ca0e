"""Console entrypoint for gitpatch.

``gitpatch apply PATCH --to DIR`` parses a unified diff and applies it to a
directory tree. Exit codes: 0 on full success, 1 when any file failed, 2 for
usage errors and patch files that cannot be decoded, 3 when the patch file
does not exist.
"""

from __future__ import annotations

import argparse
import sys
from enum import Enum
from pathlib import Path
from typing import Any

from gitpatch import __version__
from gitpatch.config import FsMode, LogLevel, NewlineStyle, Settings, default_config_path, load_settings, write_config
from gitpatch.logging import _to_logging_level, close_run_logger, configure_run_logger, generate_run_id
from gitpatch.patch.applier import apply_patch_files
from gitpatch.patch.parser import parse_patch
from gitpatch.report import ApplyReport, ParseReport

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_USAGE = 2
EXIT_PATCH_NOT_FOUND = 3


class PatchUnavailable(Enum):
    MISSING = "missing"
    UNDECODABLE = "undecodable"

    def exit_code(self) -> int:
        return EXIT_PATCH_NOT_FOUND if self is PatchUnavailable.MISSING else EXIT_USAGE


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gitpatch",
        description="Apply git-style unified diffs to a directory tree",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
        help="Show version and exit.",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug mode (root=INFO, gitpatch=DEBUG).",
    )
    parser.add_argument(
        "--log-level",
        choices=[e.value for e in LogLevel],
        dest="log_level",
        help="Log level override",
    )
    parser.add_argument("--config-path", dest="config_path", help="Path to config.toml")

    subparsers = parser.add_subparsers(dest="command", required=True)

    apply_parser = subparsers.add_parser("apply", help="Apply a patch file to a folder")
    apply_parser.add_argument("patch", help="Path to the patch file")
    apply_parser.add_argument("--to", dest="target", required=True, help="Target folder (created if missing)")
    apply_parser.add_argument("--fs-mode", choices=[e.value for e in FsMode], dest="fs_mode", help="Filesystem mode")
    apply_parser.add_argument(
        "--newline",
        choices=[e.value for e in NewlineStyle],
        dest="new_file_newline",
        help="Line terminator for files created from patch contents",
    )
    apply_parser.add_argument(
        "--strict-counts",
        action="store_true",
        default=None,
        dest="strict_hunk_counts",
        help="Fail files whose hunk line counts disagree with their headers",
    )
    apply_parser.add_argument("--json", action="store_true", help="Print the result as JSON")

    parse_parser = subparsers.add_parser("parse", help="Parse a patch file and summarize it")
    parse_parser.add_argument("patch", help="Path to the patch file")
    parse_parser.add_argument("--json", action="store_true", help="Print the parsed patch as JSON")

    config_parser = subparsers.add_parser("config", help="Config helpers")
    config_sub = config_parser.add_subparsers(dest="config_cmd", required=True)
    config_sub.add_parser("path", help="Print config path")
    config_sub.add_parser("print", help="Print resolved settings")
    config_sub.add_parser("init", help="Write a config file with default settings")

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    overrides = _collect_overrides(args)
    settings = load_settings(cli_overrides=overrides, config_path=args.config_path)

    _configure_base_logging(debug_enabled=args.debug, gitpatch_level=settings.log_level)

    if args.command == "apply":
        return _run_apply(settings, args)
    if args.command == "parse":
        return _run_parse(settings, args)
    if args.command == "config":
        return _run_config(settings, args)

    parser.error(f"unknown command {args.command}")
    return EXIT_USAGE


def _run_apply(settings: Settings, args: argparse.Namespace) -> int:
    patch_text = _read_patch(Path(args.patch), settings)
    if isinstance(patch_text, PatchUnavailable):
        return patch_text.exit_code()

    target = Path(args.target).expanduser().resolve()
    target.mkdir(parents=True, exist_ok=True)

    files = parse_patch(patch_text)

    run_id = generate_run_id()
    run_logger = configure_run_logger(run_id, log_level=settings.log_level)
    try:
        run_logger.info("applying %s to %s (%d file change(s))", args.patch, target, len(files))
        result = apply_patch_files(files, target, settings)
        for message in result.messages:
            run_logger.info("%s", message)
        run_logger.info("finished success=%s", result.success)
    finally:
        close_run_logger(run_logger)

    if args.json:
        print(ApplyReport.from_result(result, run_id=run_id).model_dump_json(indent=2))
    else:
        print(f"Parsed {len(files)} file change(s).")
        for message in result.messages:
            print(message)
        print("Success" if result.success else "Completed with errors")
    return EXIT_OK if result.success else EXIT_FAILED


def _run_parse(settings: Settings, args: argparse.Namespace) -> int:
    patch_text = _read_patch(Path(args.patch), settings)
    if isinstance(patch_text, PatchUnavailable):
        return patch_text.exit_code()

    report = ParseReport.from_files(parse_patch(patch_text))
    if args.json:
        print(report.model_dump_json(indent=2))
        return EXIT_OK

    print(f"Parsed {len(report.files)} file change(s).")
    for summary in report.files:
        print(summary.describe())
    return EXIT_OK


def _run_config(settings: Settings, args: argparse.Namespace) -> int:
    path = Path(args.config_path) if args.config_path else default_config_path()
    if args.config_cmd == "path":
        print(path)
        return EXIT_OK
    if args.config_cmd == "print":
        print(settings.model_dump_json(indent=2))
        return EXIT_OK
    if args.config_cmd == "init":
        if path.exists():
            print(f"config already exists: {path}", file=sys.stderr)
            return EXIT_FAILED
        print(write_config(Settings(), path))
        return EXIT_OK
    return EXIT_USAGE


def _read_patch(path: Path, settings: Settings) -> str | PatchUnavailable:
    """Return the patch text, or the reason it could not be read."""

    patch_path = path.expanduser().resolve()
    if not patch_path.is_file():
        print(f"Patch file not found: {patch_path}", file=sys.stderr)
        return PatchUnavailable.MISSING
    try:
        return patch_path.read_text(encoding=settings.encoding)
    except UnicodeDecodeError as exc:
        print(f"cannot decode {patch_path} as {settings.encoding}: {exc}", file=sys.stderr)
        return PatchUnavailable.UNDECODABLE


def _collect_overrides(args: argparse.Namespace) -> dict[str, Any]:
    default_log_level = LogLevel.DEBUG.value if args.debug else None
    return {
        "log_level": args.log_level or default_log_level,
        "fs_mode": getattr(args, "fs_mode", None),
        "new_file_newline": getattr(args, "new_file_newline", None),
        "strict_hunk_counts": getattr(args, "strict_hunk_counts", None),
    }


def _configure_base_logging(*, debug_enabled: bool, gitpatch_level: LogLevel | str) -> None:
    import logging

    root_level = logging.INFO if debug_enabled else logging.WARNING

    logging.basicConfig(
        level=root_level,
        stream=sys.__stderr__,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        force=True,
    )

    logging.getLogger("gitpatch").setLevel(_to_logging_level(gitpatch_level))


if __name__ == "__main__":
    sys.exit(main())
