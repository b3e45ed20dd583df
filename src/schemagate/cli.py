"""schemagate CLI: quality-gate commands for MySQL schema artifacts."""

import argparse
import logging
import sys
from importlib.metadata import version as get_version, PackageNotFoundError
from pathlib import Path
from typing import Optional

from schemagate.errors import DiscoveryEmpty, InvocationError
from schemagate.kernel.exit_policy import EXIT_INVOCATION_ERROR, EXIT_PASS
from schemagate._internal.logging_config import level_for, setup_logging

logger = logging.getLogger(__name__)


def _write_reports(report, output_dir: Path) -> None:
    from ._internal.report_contract import REPORT_JSON_FILENAME, REPORT_MARKDOWN_FILENAME
    from ._internal.canonical_json import json_document_bytes
    from ._internal.reporting.render import render_markdown

    output_dir.mkdir(parents=True, exist_ok=True)
    json_path = output_dir / REPORT_JSON_FILENAME
    md_path = output_dir / REPORT_MARKDOWN_FILENAME
    json_path.write_bytes(json_document_bytes(report.to_contract()))
    md_path.write_text(render_markdown(report), encoding="utf-8")
    logger.info("Wrote %s and %s", json_path, md_path)


def _build_config(args):
    from .config import GateConfig

    options = {
        "parallel_gates": args.parallel_gates,
        "require_explicit_charset": args.require_explicit_charset,
        "reserved_words_path": str(args.reserved_words) if args.reserved_words else None,
        "lexicons_path": str(args.lexicons) if args.lexicons else None,
    }
    if args.workers is not None:
        if args.workers < 1:
            raise InvocationError("--workers must be at least 1")
        options["workers"] = args.workers
    return GateConfig(**options)


def _run_check(args) -> int:
    from .api import validate_repository
    from ._internal.reporting.render import render

    config = _build_config(args)
    report = validate_repository(
        args.root,
        mode="quick" if args.quick else "full",
        config=config,
        snapshot=args.snapshot,
        fallback_snapshot=args.fallback_snapshot,
    )
    if args.output_dir is not None:
        _write_reports(report, args.output_dir)
    if not args.quiet:
        sys.stdout.write(render(report, args.format))
    return report.exit_code


def _run_locate(args) -> int:
    from .api import locate

    artifacts = locate(args.root)
    if not args.quiet:
        for artifact in artifacts:
            rollback = artifact.rollback.path if artifact.rollback is not None else "-"
            print(f"{artifact.kind.value}\t{artifact.strategy}\t{artifact.path}\t{rollback}")
    return EXIT_PASS


def main(argv: Optional[list] = None):
    """Main CLI entry point for schemagate commands."""
    try:
        schemagate_version = get_version("schemagate")
    except PackageNotFoundError:
        schemagate_version = "dev"

    parser = argparse.ArgumentParser(
        prog="schemagate",
        description="schemagate: quality gates for MySQL schemas and migrations"
    )
    parser.add_argument("--version", action="version", version=f"schemagate {schemagate_version}")
    # Common arguments
    parent_parser = argparse.ArgumentParser(add_help=False)
    parent_parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress all non-error output."
    )
    parent_parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log discovery, skipped statements and gate timing to stderr."
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # check command
    check_parser = subparsers.add_parser(
        "check",
        help="Run the quality gates over a repository",
        parents=[parent_parser]
    )
    check_parser.add_argument(
        "root",
        nargs="?",
        type=Path,
        default=Path("."),
        help="Repository root (defaults to the current directory)"
    )
    check_parser.add_argument(
        "--quick",
        action="store_true",
        help="Run only the naming and engine/charset gates"
    )
    check_parser.add_argument(
        "--format",
        choices=["text", "json", "markdown"],
        default="text",
        help="Report format on stdout"
    )
    check_parser.add_argument(
        "--output-dir",
        type=Path,
        default=None,
        help="Also write schemagate_report.json and schemagate_report.md here"
    )
    snapshot_group = check_parser.add_mutually_exclusive_group()
    snapshot_group.add_argument(
        "--snapshot",
        type=Path,
        default=None,
        help="Validate this live-schema snapshot instead of repository files"
    )
    snapshot_group.add_argument(
        "--fallback-snapshot",
        type=Path,
        default=None,
        help="Validate this snapshot only when no artifacts are found"
    )
    check_parser.add_argument(
        "--reserved-words",
        type=Path,
        default=None,
        help="Reserved-word list (one word per line) replacing the built-in list"
    )
    check_parser.add_argument(
        "--lexicons",
        type=Path,
        default=None,
        help="JSON file overriding business-entity, monetary and identifier terms"
    )
    check_parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Thread pool size for discovery and extraction"
    )
    check_parser.add_argument(
        "--parallel-gates",
        action="store_true",
        help="Evaluate gates concurrently"
    )
    check_parser.add_argument(
        "--require-explicit-charset",
        action="store_true",
        help="Flag tables that declare no character set"
    )

    # locate command
    locate_parser = subparsers.add_parser(
        "locate",
        help="List the schema artifacts discovery finds",
        parents=[parent_parser]
    )
    locate_parser.add_argument(
        "root",
        nargs="?",
        type=Path,
        default=Path("."),
        help="Repository root (defaults to the current directory)"
    )

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(EXIT_INVOCATION_ERROR)

    setup_logging(level_for(verbose=args.verbose, quiet=args.quiet))

    try:
        if args.command == "check":
            exit_code = _run_check(args)
        else:
            exit_code = _run_locate(args)
    except DiscoveryEmpty as e:
        print(f"Error: {e.guidance()}", file=sys.stderr)
        sys.exit(EXIT_INVOCATION_ERROR)
    except (InvocationError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(EXIT_INVOCATION_ERROR)
    except Exception as e:
        print(f"Unexpected error: {e}", file=sys.stderr)
        import traceback
        traceback.print_exc()
        sys.exit(EXIT_INVOCATION_ERROR)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
