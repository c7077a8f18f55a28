"""
Command-line interface for the knowledge base search engine.

Usage:
    kbsearch search "machine learning algorithms" --kb knowledge-base
    kbsearch search "latest ai trends" --max-results 3 --json
    kbsearch describe --kb knowledge-base

Settings come from KBSEARCH_* variables (.env.local / .env supported).
"""

import argparse
import logging
import os
import sys
from typing import List, Optional

from .config import load_settings
from .errors import InvalidQuery, RebuildFailed
from .logging_config import setup_logging
from .models import SearchResponse
from .service import KnowledgeSearchService

DEFAULT_KB_PATH = "knowledge-base"


def _print_results(response: SearchResponse) -> None:
    if response.stale:
        print(f"Warning: index could not be refreshed, showing older results ({response.rebuild_error})",
              file=sys.stderr)
    if response.empty_corpus:
        print("No documents available in knowledge base.")
        return
    if response.no_searchable_terms:
        print("Query has no searchable terms - try adding more specific words.")
        return
    if not response.results:
        print(f"No relevant documents found ({response.total_documents} searched).")
        return

    print(f"\n{len(response.results)} results from {response.total_documents} documents "
          f"({response.search_time_ms}ms)")
    print("=" * 80)
    for rank, result in enumerate(response.results, start=1):
        print(f"{rank:>2}. [{result.normalized_score:>3}] {result.title}  ({result.source_id})")
        signals = ", ".join(f"{label}={value:g}" for label, value in result.signal_breakdown.items())
        print(f"      {signals}")


def cmd_search(args: argparse.Namespace, service: KnowledgeSearchService) -> int:
    try:
        response = service.search(args.query, max_results=args.max_results)
    except InvalidQuery as e:
        print(f"Invalid query: {e}", file=sys.stderr)
        return 2

    if args.json:
        print(response.model_dump_json(indent=2))
    else:
        _print_results(response)
    return 0


def cmd_describe(args: argparse.Namespace, service: KnowledgeSearchService) -> int:
    # describe() never builds; index first so the record reflects the directory
    service.cache.get_snapshot()
    print(service.describe().model_dump_json(indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kbsearch",
        description="Relevance search over a small markdown knowledge base",
    )
    parser.add_argument(
        "--kb",
        default=os.getenv("KBSEARCH_KB_PATH", DEFAULT_KB_PATH),
        help="Knowledge base directory (default: %(default)s)",
    )
    parser.add_argument("--log-file", default=None, help="Also write detailed logs to this file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show INFO logs on the console")

    # --kb is also accepted after the subcommand
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--kb", default=argparse.SUPPRESS, help="Knowledge base directory")

    subparsers = parser.add_subparsers(dest="command", required=True)

    search = subparsers.add_parser("search", parents=[common], help="Search the knowledge base")
    search.add_argument("query", help="Free-text query")
    search.add_argument("-n", "--max-results", type=int, default=None, help="Number of results")
    search.add_argument("--json", action="store_true", help="Print the raw JSON response")
    search.set_defaults(handler=cmd_search)

    describe = subparsers.add_parser("describe", parents=[common], help="Show index statistics")
    describe.set_defaults(handler=cmd_describe)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    settings = load_settings()
    args = build_parser().parse_args(argv)

    setup_logging(
        log_file=args.log_file,
        console_level=logging.INFO if args.verbose else logging.WARNING,
    )

    service = KnowledgeSearchService.from_directory(args.kb, settings)
    try:
        return args.handler(args, service)
    except RebuildFailed as e:
        print(f"Knowledge base unavailable: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
