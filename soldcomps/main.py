"""
SoldComps - Command Line Entrypoint

Runs one search and prints the SearchReport as JSON on stdout. Logs go to
stderr as JSON lines.

Run via:
    python -m soldcomps.main --card-name charizard --grade "PSA 10" --card-number 4
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

import structlog

from soldcomps.config import MatchMode, settings
from soldcomps.exceptions import UpstreamError
from soldcomps.models import Query
from soldcomps.pipeline.search import run_search


# ---------------------------------------------------------------------------
# Structlog Configuration
# ---------------------------------------------------------------------------


def configure_logging(log_level: str = "INFO") -> None:
    """
    Set up structured logging with JSON output on stderr.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR).
    """
    # stdlib logging first, for third-party libraries
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, log_level.upper()),
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.JSONRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Look up sold and active eBay comps for a trading card.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m soldcomps.main --card-name charizard --set-name "base set" --grade "PSA 10"
  python -m soldcomps.main --card-name pikachu --card-number 58 --mode fuzzy --no-active
""",
    )
    parser.add_argument("--card-name", type=str, default="", help="Card name, e.g. 'Charizard'.")
    parser.add_argument("--set-name", type=str, default="", help="Set name, e.g. 'Base Set'.")
    parser.add_argument("--grade", type=str, default="", help="Grade, e.g. 'PSA 10'.")
    parser.add_argument("--card-number", type=str, default="", help="Card number, e.g. '4/102'.")
    parser.add_argument(
        "--mode",
        type=str,
        default=MatchMode.STRICT.value,
        choices=[m.value for m in MatchMode],
        help="Title matching strategy (default: strict).",
    )
    parser.add_argument(
        "--max-pages",
        type=int,
        default=settings.SCRAPE_MAX_PAGES,
        help=f"Sold result pages per variant (default: {settings.SCRAPE_MAX_PAGES}).",
    )
    parser.add_argument("--no-active", action="store_true", help="Skip the Browse API active listings.")
    parser.add_argument("--no-sold", action="store_true", help="Skip the sold listing scrape.")
    return parser.parse_args(argv)


async def main(argv: list[str] | None = None) -> int:
    """
    Parse arguments, run the search, print the report.

    Returns the process exit code: 0 on success (including no results),
    1 for an unusable query, 2 when an upstream service failed.
    """
    args = parse_args(argv)
    configure_logging(settings.LOG_LEVEL)
    logger = structlog.get_logger(__name__)

    query = Query(
        card_name=args.card_name,
        set_name=args.set_name,
        grade=args.grade,
        card_number=args.card_number,
    )

    try:
        report = await run_search(
            query,
            mode=MatchMode(args.mode),
            max_pages=args.max_pages,
            include_active=not args.no_active,
            include_sold=not args.no_sold,
        )
    except ValueError as e:
        logger.error("search_rejected", error=str(e))
        return 1
    except UpstreamError as e:
        logger.error(
            "search_upstream_failed",
            service=e.service_name,
            error=str(e),
            error_type=type(e).__name__,
        )
        return 2

    print(report.model_dump_json(by_alias=True, indent=2))
    return 0


# ---------------------------------------------------------------------------
# CLI Entry
# ---------------------------------------------------------------------------


def run() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
