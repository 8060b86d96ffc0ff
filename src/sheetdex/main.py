import argparse
import asyncio
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from sheetdex.core.errors import SheetdexError, ValidationError
from sheetdex.core.exporter import SearchExporter
from sheetdex.core.indexer.main import Indexer
from sheetdex.core.search_engine import SearchEngine
from sheetdex.core.stats import StatsService
from sheetdex.core.utils.logging import configure_logging
from sheetdex.entry_command_context import CommandContext
from sheetdex.version import __version__


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="sheetdex", description="Spreadsheet folder search index")
    parser.add_argument("--version", action="version", version=f"sheetdex {__version__}")
    parser.add_argument("--db", dest="db_path", default=None, help="SQLite database path")
    parser.add_argument("--log-level", default=None)
    sub = parser.add_subparsers(dest="command", required=True)

    p_import = sub.add_parser("import", help="import a folder of spreadsheets")
    p_import.add_argument("path", nargs="?", default=None)
    p_import.add_argument("--force", action="store_true", default=None, help="reimport unchanged files")
    p_import.add_argument("--max-concurrent", type=int, default=None)
    p_import.add_argument("--prune", action="store_true", default=None,
                          help="drop stored files that are no longer on disk")

    p_search = sub.add_parser("search", help="keyword search")
    p_search.add_argument("query")
    p_search.add_argument("--limit", type=int, default=None)
    p_search.add_argument("--offset", type=int, default=0)

    p_export = sub.add_parser("export", help="export matches to .xlsx")
    p_export.add_argument("query")
    p_export.add_argument("-o", "--output", default=None)

    sub.add_parser("stats", help="row and file counts")
    return parser


def default_export_name(now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    return f"search_results_{now.strftime('%Y%m%d_%H%M%S')}.xlsx"


def _cmd_import(ctx: CommandContext, ns: argparse.Namespace) -> int:
    store = ctx.open_store()
    try:
        indexer = Indexer(store, settings=ctx.settings)
        stats = asyncio.run(indexer.import_folder(
            ns.path or ctx.settings.EXCEL_FOLDER_PATH,
            force_reimport=ns.force,
            max_concurrent_files=ns.max_concurrent,
            prune_missing=ns.prune,
        ))
    finally:
        store.close()
    ctx.print_json(stats.to_dict())
    return 0 if stats.failed == 0 else 1


def _cmd_search(ctx: CommandContext, ns: argparse.Namespace) -> int:
    store = ctx.open_store()
    try:
        response = SearchEngine(store, settings=ctx.settings).search(ns.query, ns.limit, ns.offset)
    finally:
        store.close()
    ctx.print_json(response.to_dict())
    return 0


def _cmd_export(ctx: CommandContext, ns: argparse.Namespace) -> int:
    store = ctx.open_store()
    try:
        engine = SearchEngine(store, settings=ctx.settings)
        payload = SearchExporter(engine, settings=ctx.settings).export(ns.query)
    finally:
        store.close()
    out = Path(ns.output or default_export_name())
    out.write_bytes(payload)
    ctx.print_json({"output": str(out), "bytes": len(payload)})
    return 0


def _cmd_stats(ctx: CommandContext, ns: argparse.Namespace) -> int:
    store = ctx.open_store()
    try:
        stats = StatsService(store, settings=ctx.settings).get_statistics()
    finally:
        store.close()
    ctx.print_json(stats.to_dict())
    return 0


COMMANDS = {
    "import": _cmd_import,
    "search": _cmd_search,
    "export": _cmd_export,
    "stats": _cmd_stats,
}


def main(argv: Optional[List[str]] = None, ctx: Optional[CommandContext] = None) -> int:
    ns = build_parser().parse_args(argv)
    configure_logging(level=ns.log_level)
    ctx = ctx or CommandContext(db_path=ns.db_path)
    try:
        return COMMANDS[ns.command](ctx, ns)
    except ValidationError as e:
        ctx.print_err(f"error: {e}")
        return 2
    except SheetdexError as e:
        ctx.print_err(f"error: {e}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
