from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from shimport.app import import_identity_files
from shimport.config import (
    ConfigurationError,
    configure_logging,
    get_run_config,
    resolve_thread_count,
)

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from shimport.config import RunConfig

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Reconcile identity export files with the identity database",
        epilog="Options default to the matching environment variables (see README).",
    )
    parser.add_argument("files", nargs="+", type=Path, help="Identity export JSON files")
    parser.add_argument(
        "--threads",
        type=int,
        default=None,
        help="Number of parallel workers (defaults to NCPUS or the CPU count)",
    )
    parser.add_argument(
        "--single-threaded",
        action="store_true",
        default=None,
        help="Process everything in the main thread (ST)",
    )
    parser.add_argument(
        "--debug", action="store_true", default=None, help="Verbose decision logging (DEBUG)"
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        default=None,
        help="Load files and the organization registry, then stop (DRY)",
    )
    parser.add_argument(
        "--replace",
        action="store_true",
        default=None,
        help="Delete and reinsert entities that already exist (REPLACE)",
    )
    parser.add_argument(
        "--compare",
        action="store_true",
        default=None,
        help="Compare existing entities before deciding to replace (COMPARE)",
    )
    parser.add_argument(
        "--orgs-read-only",
        action="store_true",
        default=None,
        help="Never create organizations; resolve names via mapping rules (ORGS_RO)",
    )
    parser.add_argument(
        "--project-slug",
        type=str,
        help="Only touch enrollments scoped to this project (PROJECT_SLUG)",
    )
    parser.add_argument(
        "--orgs-map-file",
        type=Path,
        help="YAML file with organization regex mappings (ORGS_MAP_FILE)",
    )
    parser.add_argument(
        "--missing-orgs-csv",
        type=Path,
        help="Where to write organization names that could not be resolved (MISSING_ORGS_CSV)",
    )
    parser.add_argument(
        "--database-uri",
        type=str,
        help="SQLAlchemy database URL (defaults to SH_DSN or the SH_* variables)",
    )
    return parser.parse_args(list(argv))


def _build_run_config(args: argparse.Namespace) -> RunConfig:
    base = get_run_config()
    threads = None
    if args.threads is not None or args.single_threaded:
        if args.threads is not None and args.threads < 1:
            raise ValueError("--threads must be positive")
        threads = resolve_thread_count(
            single_threaded=bool(args.single_threaded),
            requested=args.threads,
        )
    return base.with_overrides(
        threads=threads,
        debug=args.debug,
        dry_run=args.dry_run,
        replace=args.replace,
        compare=args.compare,
        orgs_read_only=args.orgs_read_only,
        project_slug=args.project_slug,
        orgs_map_file=args.orgs_map_file,
        missing_orgs_csv=args.missing_orgs_csv,
    )


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    configure_logging()
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        run_config = _build_run_config(parsed_args)
    except (ValueError, ConfigurationError):
        log.exception("CLI validation error")
        sys.exit(2)

    if run_config.debug:
        configure_logging(level=logging.DEBUG, force=True)

    try:
        import_identity_files(
            parsed_args.files,
            run_config=run_config,
            database_uri=parsed_args.database_uri,
        )
    except Exception:
        log.exception("Fatal error during import")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
