"""Command line interface for fuzzydex.

Usage:
    fuzzydex search books.json "old man sea" --key title:2 --key author.name
    fuzzydex search books.json '{"$or": [{"title": "sea"}, {"tags": "classic"}]}' --logical --key title --key tags
    fuzzydex index books.json --output books.index.json --key title --key author.name
    fuzzydex search books.json "woodhous" --key author.name --highlight
    fuzzydex titles titles.json "gettin startd" --exclude Draft

RECORDS is a JSON file holding a list of strings or objects; TITLES_FILE is a
JSON list of strings. Defaults for the fuzzy options come from ``FUZZYDEX_*``
environment variables.
"""

from __future__ import annotations

import argparse
from collections.abc import Sequence
import logging
from pathlib import Path
import sys
from typing import Any

import orjson
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table
from rich.text import Text

from fuzzydex.config import Settings
from fuzzydex.document_search import fuzzy_search_titles
from fuzzydex.engine import SearchEngine
from fuzzydex.errors import FuzzydexError
from fuzzydex.observability.logging import configure_logging
from fuzzydex.search.highlight import highlight_ranges, merge_ranges
from fuzzydex.search.index import FuseIndex, create_index
from fuzzydex.search.models import SearchResult
from fuzzydex.search.storage import IndexSnapshotStore


logger = logging.getLogger(__name__)

console = Console()


class CliInputError(FuzzydexError, ValueError):
    """Raised when an input file or argument cannot be used."""


def parse_key_spec(raw: str) -> str | dict[str, Any]:
    """Parse ``NAME[:WEIGHT]`` into a key spec."""
    name, sep, weight = raw.rpartition(":")
    if not sep:
        return raw
    try:
        return {"name": name, "weight": float(weight)}
    except ValueError:
        return raw


def load_json_list(path: str | Path) -> list[Any]:
    source = Path(path)
    try:
        data = orjson.loads(source.read_bytes())
    except OSError as exc:
        raise CliInputError(f"Cannot read {source}: {exc}") from exc
    except orjson.JSONDecodeError as exc:
        raise CliInputError(f"{source} is not valid JSON: {exc}") from exc

    if not isinstance(data, list):
        raise CliInputError(f"{source} must contain a JSON list")
    return data


def _parse_logical_query(raw: str) -> dict[str, Any]:
    try:
        query = orjson.loads(raw)
    except orjson.JSONDecodeError as exc:
        raise CliInputError(f"Logical query is not valid JSON: {exc}") from exc
    if not isinstance(query, dict):
        raise CliInputError("Logical query must be a JSON object")
    return query


def _keys_from_index(index: FuseIndex) -> list[dict[str, Any]]:
    return [{"name": key.src if key.src is not None else list(key.path), "weight": key.weight} for key in index.keys]


def _render_item(item: Any) -> str:
    if isinstance(item, str):
        return item
    return orjson.dumps(item).decode("utf-8")


def _key_label(key: Any) -> str:
    return ".".join(str(segment) for segment in key) if isinstance(key, list) else str(key)


def _highlight_cell(result: SearchResult) -> Text:
    """Render the best matched value with its matched ranges emphasized."""
    if not result.matches:
        return Text(_render_item(result.item))

    match = result.matches[0]
    cell = Text(match.value)
    for start, end in merge_ranges(match.indices):
        cell.stylize("bold yellow", start, end + 1)
    if match.key is None:
        return cell
    return Text.assemble((f"{_key_label(match.key)}: ", "dim"), cell)


def _result_payload(result: SearchResult, highlight: bool) -> dict[str, Any]:
    payload = result.model_dump(exclude_none=True)
    if highlight:
        for match in payload.get("matches", []):
            match["highlight"] = highlight_ranges(match["value"], match["indices"])
    return payload


def _print_results(results: list[SearchResult], query: str, *, highlight: bool = False) -> None:
    if not results:
        console.print(f"[yellow]No matches for {query!r}[/yellow]")
        return

    table = Table(title=f"Results for {query!r}")
    table.add_column("#", justify="right", style="cyan")
    table.add_column("Ref", justify="right")
    table.add_column("Score", justify="right", style="green")
    table.add_column("Item")

    for rank, result in enumerate(results, start=1):
        score = f"{result.score:.4f}" if result.score is not None else "-"
        item = _highlight_cell(result) if highlight else _render_item(result.item)
        table.add_row(str(rank), str(result.ref_index), score, item)

    console.print(table)


def _write_json(payload: Any) -> None:
    sys.stdout.write(orjson.dumps(payload).decode("utf-8") + "\n")


def search_command(args: argparse.Namespace, settings: Settings) -> int:
    records = load_json_list(args.records)
    keys: list[Any] = [parse_key_spec(raw) for raw in args.key or []]

    index = None
    if args.index:
        index = IndexSnapshotStore(args.index).load()
        if not keys:
            keys = _keys_from_index(index)

    overrides: dict[str, Any] = {
        "keys": keys,
        "include_score": True,
        "include_matches": args.json or args.highlight,
        "use_extended_search": args.extended,
    }
    if args.threshold is not None:
        overrides["threshold"] = args.threshold

    engine = SearchEngine(records, settings.search_options(**overrides), index)
    query: str | dict[str, Any] = _parse_logical_query(args.query) if args.logical else args.query
    results = engine.search(query, limit=args.limit)
    logger.info("Search returned %d results", len(results))

    if args.json:
        _write_json([_result_payload(result, args.highlight) for result in results])
    else:
        _print_results(results, args.query, highlight=args.highlight)
    return 0


def index_command(args: argparse.Namespace, settings: Settings) -> int:
    records = load_json_list(args.records)
    keys = [parse_key_spec(raw) for raw in args.key or []]

    index = create_index(keys, records)
    path = IndexSnapshotStore(args.output).save(index)
    console.print(f"[green]Indexed {index.size()} records into {path}[/green]")
    return 0


def titles_command(args: argparse.Namespace, settings: Settings) -> int:
    titles = [str(title) for title in load_json_list(args.titles_file)]
    matched = fuzzy_search_titles(args.query, titles, exclude=args.exclude)

    if args.json:
        _write_json(matched)
        return 0

    if not matched:
        console.print(f"[yellow]No titles match {args.query!r}[/yellow]")
    for title in matched:
        console.print(f"  • {title}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fuzzydex",
        description="Fuzzy search over JSON collections",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    subparsers = parser.add_subparsers(dest="command", help="Command", required=True)

    search_parser = subparsers.add_parser("search", help="Search a JSON collection")
    search_parser.add_argument("records", help="JSON file with a list of strings or objects")
    search_parser.add_argument("query", help="Pattern, or a JSON logical query with --logical")
    search_parser.add_argument(
        "--key",
        "-k",
        action="append",
        help="Key to search, NAME or NAME:WEIGHT (repeatable; dotted paths allowed)",
    )
    search_parser.add_argument("--logical", action="store_true", help="Treat QUERY as a JSON $and/$or query")
    search_parser.add_argument("--extended", action="store_true", help="Enable the extended query syntax")
    search_parser.add_argument("--threshold", type=float, default=None, help="Match threshold in [0, 1]")
    search_parser.add_argument("--limit", "-n", type=int, default=-1, help="Maximum results (default: all)")
    search_parser.add_argument("--index", help="Index snapshot to reuse instead of indexing RECORDS")
    search_parser.add_argument("--json", action="store_true", help="Print results as JSON")
    search_parser.add_argument(
        "--highlight",
        action="store_true",
        help="Show matched characters ([[x]] markers in JSON output)",
    )

    index_parser = subparsers.add_parser("index", help="Build an index snapshot")
    index_parser.add_argument("records", help="JSON file with a list of strings or objects")
    index_parser.add_argument("--output", "-o", required=True, help="Snapshot file to write")
    index_parser.add_argument("--key", "-k", action="append", help="Key to index (repeatable)")

    titles_parser = subparsers.add_parser("titles", help="Search document titles")
    titles_parser.add_argument("titles_file", help="JSON file with a list of titles")
    titles_parser.add_argument("query", help="Space separated keywords")
    titles_parser.add_argument(
        "--exclude", action="append", default=None, help="Drop titles containing this text (repeatable)"
    )
    titles_parser.add_argument("--json", action="store_true", help="Print titles as JSON")

    return parser


_COMMANDS = {
    "search": search_command,
    "index": index_command,
    "titles": titles_command,
}


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = Settings()
    except ValidationError as exc:
        console.print(f"[red]❌ Invalid FUZZYDEX_* settings: {exc}[/red]")
        return 1

    configure_logging(settings.log_level, json_output=settings.log_json)

    try:
        return _COMMANDS[args.command](args, settings)
    except (FuzzydexError, ValidationError) as exc:
        logger.debug("Command %s failed", args.command, exc_info=True)
        console.print(f"[red]❌ Error: {exc}[/red]")
        return 1


if __name__ == "__main__":
    sys.exit(main())
