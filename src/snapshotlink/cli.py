"""Command-line interface for snapshotlink."""

import argparse
import dataclasses
import logging
import sys

from snapshotlink.config import check_upload_directory, load_configuration
from snapshotlink.errors import SnapshotError
from snapshotlink.logging_config import setup_logging
from snapshotlink.packager import create_snapshot

logger = logging.getLogger("snapshotlink")


def _add_common_arguments(parser: argparse.ArgumentParser):
    parser.add_argument(
        "-p",
        "--properties",
        required=True,
        help="Path to the analysis properties file.",
    )
    parser.add_argument(
        "-u",
        "--upload-dir",
        default=None,
        help="Destination directory; overrides uploadDirectory from the properties.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show detailed processing information.",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="snapshotlink",
        description=(
            "Package selected workspace files into a timestamped snapshot archive "
            "for an external analysis server."
        ),
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    package_parser = subparsers.add_parser(
        "package",
        help="Create a snapshot archive and its .DONE marker.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    package_parser.add_argument("workspace", help="The workspace directory to package.")
    _add_common_arguments(package_parser)
    package_parser.add_argument(
        "--respect-gitignore",
        action="store_true",
        help="Skip files ignored by the workspace's .gitignore.",
    )
    package_parser.add_argument(
        "--no-progress",
        action="store_true",
        help="Do not show progress bars.",
    )

    check_parser = subparsers.add_parser(
        "check",
        help="Validate the properties file and upload directory without packaging.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    _add_common_arguments(check_parser)
    return parser


def run_check(args) -> int:
    try:
        configuration = load_configuration(args.properties)
        destination = check_upload_directory(args.upload_dir or configuration.upload_directory)
    except SnapshotError as e:
        print(f"❌ Error: {e}", file=sys.stderr)
        return 1

    print(
        f"✓ Properties OK: customer {configuration.customer_id}, "
        f"project {configuration.project_id}"
    )
    print(f"✓ Languages: {', '.join(lang.name for lang in configuration.languages)}")
    print(f"✓ Upload directory: {destination}")
    return 0


def run_package(args) -> int:
    try:
        configuration = load_configuration(args.properties)
    except SnapshotError as e:
        print(f"❌ Error: {e}", file=sys.stderr)
        return 1

    if args.respect_gitignore and not configuration.respect_gitignore:
        configuration = dataclasses.replace(configuration, respect_gitignore=True)

    print(f"📂 Packaging workspace: {args.workspace}")
    result = create_snapshot(
        args.workspace,
        configuration,
        destination_dir=args.upload_dir,
        logger=logger,
        progress=not args.no_progress,
    )
    if not result.success:
        print(f"\n❌ Error: {result.error}", file=sys.stderr)
        return 1

    print(f"\n✅ Success! Packaged {result.entries} files")
    print(f"📄 Output: {result.archive_path}")
    return 0


def main(argv=None):
    """Main entry point for the snapshotlink CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging("DEBUG" if args.verbose else "INFO")

    if args.command == "check":
        sys.exit(run_check(args))
    sys.exit(run_package(args))


if __name__ == "__main__":
    main()
