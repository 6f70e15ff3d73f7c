"""Export or import dashboard data from the command line."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from flame.config import AppConfig, load_config
from flame.core.logging_utils import setup_json_logging
from flame.db.database import Database
from flame.transfer.exceptions import TransferError
from flame.transfer.exporter import ExportService
from flame.transfer.importer import ImportService
from flame.transfer.records import ImportOptions, TransferFormat

logger = logging.getLogger(__name__)

_EXTENSION_FORMATS = {
    ".json": TransferFormat.STRUCTURED,
    ".html": TransferFormat.MARKUP,
    ".htm": TransferFormat.MARKUP,
}


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments."""
    parser = argparse.ArgumentParser(
        description="Export or import dashboard apps, categories and bookmarks",
        allow_abbrev=False,
    )
    parser.add_argument(
        "--db-path",
        type=Path,
        help="Override the configured SQLite path for this run.",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Override the configured log level for this session.",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    export_cmd = commands.add_parser("export", help="Write the whole dataset to a file.")
    export_cmd.add_argument(
        "--format",
        dest="fmt",
        default=TransferFormat.STRUCTURED.value,
        help='"json" (full backup) or "html" (browser bookmark file).',
    )
    export_cmd.add_argument(
        "--output",
        type=Path,
        help="Destination file; defaults to the suggested filename in the current directory.",
    )

    import_cmd = commands.add_parser("import", help="Merge a backup or bookmark file.")
    import_cmd.add_argument("file", type=Path, help="File to import.")
    import_cmd.add_argument(
        "--format",
        dest="fmt",
        help="Input format; inferred from the file extension when omitted.",
    )
    import_cmd.add_argument(
        "--clear-existing",
        action="store_true",
        help="Delete all bookmarks, apps and categories before importing.",
    )
    import_cmd.add_argument(
        "--keep-duplicates",
        action="store_true",
        help="Insert records even when an identical one already exists.",
    )
    import_cmd.add_argument("--no-apps", action="store_true", help="Do not import apps.")
    import_cmd.add_argument(
        "--no-bookmarks", action="store_true", help="Do not import bookmarks."
    )
    import_cmd.add_argument(
        "--no-categories", action="store_true", help="Do not import categories."
    )
    return parser.parse_args(argv)


def _prepare_config(args: argparse.Namespace) -> AppConfig:
    """Load configuration, applying CLI overrides."""
    runtime: dict[str, str] = {}
    if args.db_path:
        runtime["db_path"] = str(args.db_path)
    if args.log_level:
        runtime["log_level"] = args.log_level
    return load_config(runtime=runtime) if runtime else load_config()


def _infer_format(path: Path, explicit: str | None) -> str:
    if explicit:
        return explicit
    inferred = _EXTENSION_FORMATS.get(path.suffix.lower())
    if inferred is None:
        msg = f"Cannot infer the format of {path.name}; pass --format json or --format html."
        raise SystemExit(msg)
    return inferred.value


def run_export(args: argparse.Namespace, cfg: AppConfig, db: Database) -> int:
    service = ExportService(db, product_name=cfg.dashboard.product_name)
    artifact = service.export(args.fmt)
    output = args.output or Path(artifact.filename)
    output.write_bytes(artifact.content)
    print(str(output))
    return 0


def run_import(args: argparse.Namespace, cfg: AppConfig, db: Database) -> int:
    fmt = _infer_format(args.file, args.fmt)
    options = ImportOptions(
        clear_existing=args.clear_existing,
        skip_duplicates=not args.keep_duplicates,
        import_apps=not args.no_apps,
        import_bookmarks=not args.no_bookmarks,
        import_categories=not args.no_categories,
    )
    service = ImportService(
        db, pin_categories_by_default=cfg.dashboard.pin_categories_by_default
    )
    raw = args.file.read_text(encoding="utf-8-sig")
    result = service.import_data(fmt, raw, options)
    print(json.dumps(result.model_dump(), indent=2))
    return 0


def main(argv: list[str] | None = None) -> int:
    """Entry point for ``python -m flame.cli.transfer``."""
    args = parse_args(argv)
    cfg = _prepare_config(args)
    setup_json_logging(
        cfg.runtime.log_level, cfg.runtime.log_file, use_loguru=cfg.runtime.use_loguru
    )

    db = Database(path=cfg.runtime.db_path)
    db.migrate()
    try:
        if args.command == "export":
            return run_export(args, cfg, db)
        return run_import(args, cfg, db)
    except TransferError as exc:
        print(json.dumps({"success": False, "error": exc.message}), file=sys.stderr)
        return 1
    except OSError as exc:
        logger.exception("cli_transfer_failed", exc_info=exc)
        print(json.dumps({"success": False, "error": str(exc)}), file=sys.stderr)
        return 1
    finally:
        db.close()


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
