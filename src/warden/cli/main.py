"""CLI entrypoint for Warden."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from warden import __version__
from warden.config import WardenConfig, load_config
from warden.constants.branding import CLI_DESCRIPTION
from warden.constants.reporting import DEFAULT_OUTPUT_FORMAT, VALID_OUTPUT_FORMATS
from warden.exceptions import ConfigError, DslError, ProfileResolutionError, WardenError
from warden.io import write_json_atomic
from warden.profile import ArchiveOptions, Profile
from warden.reporting import StdoutReporter


def build_parser() -> argparse.ArgumentParser:
    """Build top-level CLI parser."""
    parser = argparse.ArgumentParser(
        prog="warden",
        description=CLI_DESCRIPTION,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command", required=True)

    check = subparsers.add_parser("check", help="Verify the structure of a profile")
    _add_common_arguments(check)
    check.add_argument(
        "--format",
        choices=sorted(VALID_OUTPUT_FORMATS),
        default=DEFAULT_OUTPUT_FORMAT,
        help="Report format on stdout (default: text)",
    )
    check.add_argument("-o", "--output", type=Path, default=None, help="Also write the JSON report to this file")
    check.add_argument("--no-color", action="store_true", help="Disable colored output")

    info = subparsers.add_parser("info", help="Print profile metadata and controls as JSON")
    _add_common_arguments(info)

    archive = subparsers.add_parser("archive", help="Check a profile and package it as tar.gz or zip")
    _add_common_arguments(archive)
    archive.add_argument("-o", "--output", type=Path, default=None, help="Archive destination path")
    archive.add_argument("--zip", action="store_true", help="Write a zip archive instead of tar.gz")
    archive.add_argument("--overwrite", action="store_true", help="Replace an existing archive")

    return parser


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("path", type=Path, help="Profile directory")
    parser.add_argument("-c", "--config", type=Path, help="Explicit config file")
    parser.add_argument("--id", dest="profile_id", default=None, help="Override the profile name")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show progress logs and diagnostics")


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(message)s",
    )

    try:
        config = load_config(args.path, args.config)
        profile = Profile.for_target(args.path, profile_id=args.profile_id, config=config)
    except ConfigError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2
    except ProfileResolutionError as exc:
        print(f"Profile error: {exc}", file=sys.stderr)
        return 2

    try:
        if args.command == "check":
            return _handle_check(args, profile)
        if args.command == "info":
            return _handle_info(profile)
        if args.command == "archive":
            return _handle_archive(args, profile, config)
    except DslError as exc:
        print(f"Control error: {exc}", file=sys.stderr)
        return 1
    except WardenError as exc:
        print(f"Profile error: {exc}", file=sys.stderr)
        return 1

    parser.error(f"Unsupported command: {args.command}")


def _handle_check(args: argparse.Namespace, profile: Profile) -> int:
    report = profile.check()
    payload = report.to_dict()
    if args.output is not None:
        write_json_atomic(args.output, payload)

    if args.format == "json":
        print(json.dumps(payload, indent=2, default=str))
    else:
        use_color = not args.no_color and sys.stdout.isatty()
        print(StdoutReporter(report, color=use_color, verbose=args.verbose).render())

    return 0 if report.valid else 1


def _handle_info(profile: Profile) -> int:
    print(json.dumps(profile.info(), indent=2, default=str))
    return 0


def _handle_archive(args: argparse.Namespace, profile: Profile, config: WardenConfig) -> int:
    report = profile.check()
    if not report.valid:
        print("Profile check failed. Please fix the profile before generating an archive.", file=sys.stderr)
        return 1

    options = ArchiveOptions(
        archive=args.output,
        zip=args.zip or config.zip_archives,
        overwrite=args.overwrite,
    )
    if not profile.archive(options):
        print("Archive already exists. Use --overwrite to replace it.", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
