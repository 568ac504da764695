"""CLI entry-point: ``python -m trisearch search|batch|analyze|comments``."""

from __future__ import annotations

import argparse
import asyncio
import logging
import random
import sys
import time
from pathlib import Path

from trisearch import config
from trisearch.analyze import analyze_sessions, top_dominant
from trisearch.comments import scrape_comments
from trisearch.errors import TriSearchError
from trisearch.models import OverlapReport, ProgressEvent
from trisearch.orchestrator import run_triple_search
from trisearch.queries import load_queries
from trisearch.report import load_report, write_report

logger = logging.getLogger(__name__)


def _setup_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _log_progress(event: ProgressEvent) -> None:
    logger.info("[%5.1f%%] %s", event.percent, event.message)


def _log_summary(report: OverlapReport, top: int = 5) -> None:
    logger.info(
        "Query %r: %d unique items | all %d | some %d | once %d | overlap %.1f%%",
        report.query,
        len(report.all_unique),
        len(report.appeared_in_all),
        len(report.appeared_in_some),
        len(report.appeared_once),
        report.overlap_rate,
    )
    for item, score in top_dominant(report, limit=top):
        logger.info(
            "  [%5.1f] %s @%s views=%d: %s",
            score, item.id, item.author.unique_id, item.metrics.view_count, item.desc[:80],
        )


def _search(query: str, target: int, out_dir: Path) -> int:
    try:
        report = asyncio.run(run_triple_search(query, target, progress=_log_progress))
    except TriSearchError as exc:
        logger.error("Search for %r failed: %s (%s)", query, exc.user_message, exc)
        return 1
    except ValueError as exc:
        logger.error("Search for %r rejected: %s", query, exc)
        return 1
    _log_summary(report)
    try:
        write_report(report, out_dir)
    except OSError as exc:
        logger.error("Could not write report for %r to %s: %s", query, out_dir, exc)
        return 1
    return 0


def _batch(queries_path: Path, target: int, out_dir: Path) -> int:
    queries = load_queries(queries_path)
    if not queries:
        logger.error("No queries loaded from %s — nothing to do.", queries_path)
        return 1

    failed: list[str] = []
    for n, query in enumerate(queries):
        if n:
            gap = random.uniform(config.SESSION_DELAY_MIN, config.SESSION_DELAY_MAX)
            logger.info("Waiting %.1fs before next query", gap)
            time.sleep(gap)
        if _search(query, target, out_dir):
            failed.append(query)

    logger.info("Batch done: %d ok, %d failed", len(queries) - len(failed), len(failed))
    for query in failed:
        logger.warning("  failed: %s", query)
    return 1 if failed else 0


def _comments(video_url: str) -> int:
    try:
        comments = asyncio.run(scrape_comments(video_url))
    except TriSearchError as exc:
        logger.error("Comments for %s failed: %s (%s)", video_url, exc.user_message, exc)
        return 1
    except ValueError as exc:
        logger.error("%s", exc)
        return 1
    for text in comments:
        print(text)
    logger.info("%d comments", len(comments))
    return 0


def _analyze(report_path: Path) -> int:
    stored = load_report(report_path)
    report = analyze_sessions(stored.sessions, query=stored.query)
    _log_summary(report, top=10)
    return 0


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="trisearch",
        description="Triple-session search with cross-session overlap analysis.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging.")
    sub = parser.add_subparsers(dest="command")

    # ── search ────────────────────────────────────────────────────────
    search_parser = sub.add_parser("search", help="Run one triple search.")
    search_parser.add_argument("query", help="Search term.")
    search_parser.add_argument(
        "--target",
        type=int,
        default=config.PER_SESSION_TARGET,
        help=f"Items to collect per session (default: {config.PER_SESSION_TARGET}).",
    )
    search_parser.add_argument(
        "--out",
        type=Path,
        default=config.OUTPUT_BASE,
        help="Directory for the JSON report.",
    )

    # ── batch ─────────────────────────────────────────────────────────
    batch_parser = sub.add_parser("batch", help="Run every query in a YAML file.")
    batch_parser.add_argument("queries", type=Path, help="Path to queries.yml.")
    batch_parser.add_argument("--target", type=int, default=config.PER_SESSION_TARGET)
    batch_parser.add_argument("--out", type=Path, default=config.OUTPUT_BASE)

    # ── analyze ───────────────────────────────────────────────────────
    analyze_parser = sub.add_parser(
        "analyze",
        help="Re-run the overlap analysis on a stored report.",
    )
    analyze_parser.add_argument("report", type=Path, help="Path to a report JSON file.")

    # ── comments ──────────────────────────────────────────────────────
    comments_parser = sub.add_parser("comments", help="Print the comments a video page loads.")
    comments_parser.add_argument("url", help="Video page URL.")

    args = parser.parse_args(argv)
    _setup_logging(args.verbose)

    if args.command == "search":
        sys.exit(_search(args.query, args.target, args.out))
    elif args.command == "batch":
        sys.exit(_batch(args.queries, args.target, args.out))
    elif args.command == "analyze":
        sys.exit(_analyze(args.report))
    elif args.command == "comments":
        sys.exit(_comments(args.url))
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
