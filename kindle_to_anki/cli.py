from __future__ import annotations

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

from .config import ConfigurationError, ImportConfig, load_env_file, parse_start_date
from .exporter import export_cards
from .filters import filter_since
from .io_utils import read_text
from .loader import ValidationError, load_cards
from .notes import attach_notes
from .parser import ParseError, parse_clippings
from .renderer import render_document, write_document


def build_arg_parser() -> argparse.ArgumentParser:
    """Construct the command-line parser for the clippings importer."""

    parser = argparse.ArgumentParser(
        prog="kindle-to-anki"
        ,description="Turn Kindle clippings into a Markdown review document, then into Anki records."
    )
    parser.add_argument(
        "-v",
        "--validate",
        action="store_true",
        help="Check the edited document (one definition per highlight) and compile it to JSON records.",
    )
    parser.add_argument(
        "-d",
        "--start-date",
        metavar="MM-DD-YYYY",
        help="Only include clippings added on or after this date.",
    )
    parser.add_argument(
        "-p",
        "--clipping-path",
        help="Path to the Kindle clippings export. Defaults to where Calibre puts it.",
    )
    parser.add_argument("--output-dir", help="Directory for the Markdown document and JSON records.")
    parser.add_argument("--env", default=".env", help="Optional .env file with path and date format settings.")
    parser.add_argument("--strict", action="store_true", help="Abort on the first malformed clipping instead of skipping it.")
    parser.add_argument(
        "--separate-notes",
        action="store_true",
        help="Give every note its own card instead of turning its lines into terms on the highlight before it.",
    )
    parser.add_argument(
        "--debug-log",
        action="store_true",
        help="Write per-entry parse details, skipped entries and record payloads to import.debug.log",
    )
    return parser


def render_clippings(
    config: ImportConfig
    ,logger: logging.Logger
    ,*
    ,start_date: Optional[datetime] = None
    ,strict: bool = False
    ,separate_notes: bool = False
    ,debug_logger: Optional[logging.Logger] = None
) -> None:
    """Parse the export, filter by date and (over)write the intermediate document."""

    logger.info("Reading clippings from %s", config.clippings_path)
    result = parse_clippings(read_text(config.clippings_path), config.date_formats, strict=strict)

    for warning in result.warnings:
        print(f"[warn] Skipped malformed {warning}")
    if result.skipped:
        print(f"[info] Skipped {len(result.skipped)} bookmarks/placeholder entries")
    if debug_logger:
        for skipped in result.skipped:
            debug_logger.info("Skipped %s", skipped)

    clippings = filter_since(result.clippings, start_date)
    if start_date is not None:
        logger.info(
            "Kept %d of %d clippings added on or after %s"
            ,len(clippings)
            ,len(result.clippings)
            ,start_date.date().isoformat()
        )

    if separate_notes:
        cards, definitions = list(clippings), None
    else:
        cards, definitions = attach_notes(clippings)

    backed_up = write_document(render_document(cards, definitions), config)
    if backed_up:
        print(f"[info] Overwrote {config.document_path} (previous version backed up to {config.backup_path})")
    print(f"[info] Wrote {len(cards)} cards to {config.document_path}")
    logger.info("Rendered %d cards from %d clippings to %s", len(cards), len(clippings), config.document_path)


def validate_document(
    config: ImportConfig
    ,logger: logging.Logger
    ,*
    ,debug_logger: Optional[logging.Logger] = None
) -> None:
    """Load and check the edited document, then write the JSON records."""

    logger.info("Validating %s", config.document_path)
    cards = load_cards(read_text(config.document_path))
    records = export_cards(cards, config, debug_logger=debug_logger)
    print(f"[info] Validated {len(cards)} cards")
    print(f"[info] Wrote {len(records)} records to {config.records_path}")


def run_cli(argv: Optional[list[str]] = None) -> int:
    """Entry point invoked by export_clippings_to_anki.py or tests. Returns the exit code."""

    parser = build_arg_parser()
    args = parser.parse_args(argv)

    logger = configure_logging()
    debug_logger = configure_debug_logger() if args.debug_log else None

    try:
        config = load_env_file(Path(args.env)).with_overrides(
            clippings_path=Path(args.clipping_path) if args.clipping_path else None
            ,output_dir=Path(args.output_dir) if args.output_dir else None
        )
        if args.validate:
            if args.start_date:
                print("[warn] --start-date has no effect with --validate")
            validate_document(config, logger, debug_logger=debug_logger)
        else:
            start_date = parse_start_date(args.start_date) if args.start_date else None
            render_clippings(
                config
                ,logger
                ,start_date=start_date
                ,strict=args.strict
                ,separate_notes=args.separate_notes
                ,debug_logger=debug_logger
            )
    except (ConfigurationError, ParseError, ValidationError) as err:
        print(f"[error] {err}", file=sys.stderr)
        logger.error("%s: %s", type(err).__name__, err)
        return 1
    except OSError as err:
        print(f"[error] {err}", file=sys.stderr)
        logger.error("I/O failure: %s", err)
        return 1
    return 0


def main() -> None:
    sys.exit(run_cli(sys.argv[1:]))


LOG_PATH = Path(__file__).resolve().parent.parent / "import.log"
DEBUG_LOG_PATH = Path(__file__).resolve().parent.parent / "import.debug.log"
LOGGER_NAME = "kindle_to_anki"


def configure_logging() -> logging.Logger:
    """Set up the primary info-level logger that writes to import.log."""

    logger = logging.getLogger(LOGGER_NAME)
    if not logger.handlers:
        logger.setLevel(logging.INFO)
        handler = logging.FileHandler(LOG_PATH, encoding="utf-8")
        handler.setLevel(logging.INFO)
        handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s"))
        logger.addHandler(handler)
    return logger


def configure_debug_logger() -> logging.Logger:
    """Create or return the debug logger that captures parse details, skipped entries and record payloads.

    The package logger drops to DEBUG so module-level debug records reach
    import.debug.log; import.log keeps its INFO handler level.
    """

    debug_logger = logging.getLogger(f"{LOGGER_NAME}.debug")
    if not debug_logger.handlers:
        debug_logger.setLevel(logging.INFO)
        debug_logger.propagate = False
        handler = logging.FileHandler(DEBUG_LOG_PATH, encoding="utf-8")
        handler.setLevel(logging.DEBUG)
        handler.setFormatter(logging.Formatter("%(asctime)s [DEBUG] %(name)s %(message)s"))
        debug_logger.addHandler(handler)

        package_logger = logging.getLogger(LOGGER_NAME)
        package_logger.setLevel(logging.DEBUG)
        package_logger.addHandler(handler)
    return debug_logger
