"""Command-line interface for the offers scraper."""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

__all__ = ["main", "parse_args", "show_stats", "show_history"]

from offers.advisor import OpenAIAdvisor
from offers.config import DB_PATH, LLM_MODEL, OFFERS_URL, OUTPUT_PATH
from offers.db import SQLiteCatalogStore, get_price_history, get_product, get_product_count, init_db
from offers.errors import CatalogStoreError, SourceUnavailable
from offers.logging_config import get_logger, setup_logging
from offers.models import DEAL_MULTI_BUY, DEAL_PRICE_DROP
from offers.report import export_db_to_csv, print_report
from offers.scraper import HtmlFileSource, OffersPageSource
from offers.workflows import run_offers_workflow

logger = get_logger("cli")


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {value}")
    return number


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Scrape a promotions page, rank offers by price per 100ml and track prices",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Scrape the offers page, store prices and print the ranking with LLM analysis
  python -m offers.cli

  # Rank a saved copy of the page without touching the database or the LLM
  python -m offers.cli --html-file data/offers.html --no-db --no-advice

  # Show the 10 best offers only
  python -m offers.cli --top 10

  # Price history of one product
  python -m offers.cli --history 123456

  # Export stored products to CSV
  python -m offers.cli --export-csv data/offers_export.csv
        """,
    )

    # Source
    parser.add_argument(
        "--url",
        default=OFFERS_URL,
        help=f"Offers page URL (default: {OFFERS_URL})",
    )
    parser.add_argument(
        "--html-file",
        metavar="PATH",
        help="Read a saved offers page instead of fetching --url",
    )

    # Database options
    parser.add_argument(
        "--db",
        default=DB_PATH,
        help=f"SQLite database path (default: {DB_PATH})",
    )
    parser.add_argument(
        "--no-db",
        action="store_true",
        help="Don't save products to the database",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Threads used for database upserts (default: sequential)",
    )

    # Ranking / report
    parser.add_argument(
        "--no-advice",
        action="store_true",
        help="Skip the LLM advisory ranking",
    )
    parser.add_argument(
        "--model",
        default=LLM_MODEL,
        help=f"LLM model for the advisory ranking (default: {LLM_MODEL})",
    )
    parser.add_argument(
        "--top",
        type=_positive_int,
        default=None,
        help="Only print the N best offers",
    )

    # Info / export commands
    parser.add_argument(
        "--export-csv",
        nargs="?",
        const=OUTPUT_PATH,
        metavar="PATH",
        help=f"Export stored products to CSV and exit (default path: {OUTPUT_PATH})",
    )
    parser.add_argument(
        "--history",
        metavar="PRODUCT_ID",
        help="Show the price history of a product and exit",
    )
    parser.add_argument(
        "--stats",
        action="store_true",
        help="Show database statistics and exit",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Debug logging on the console",
    )

    return parser.parse_args(argv)


def show_stats(db_path: str) -> None:
    """Display database statistics."""
    init_db(db_path)

    print(f"\n{'='*50}")
    print(f"Database: {db_path}")
    print(f"{'='*50}")
    print(f"\nTotal products: {get_product_count(db_path)}")
    print(f"  {DEAL_MULTI_BUY}: {get_product_count(db_path, deal_type=DEAL_MULTI_BUY)}")
    print(f"  {DEAL_PRICE_DROP}: {get_product_count(db_path, deal_type=DEAL_PRICE_DROP)}")
    print()


def show_history(db_path: str, product_id: str) -> int:
    """Print the stored price observations of one product."""
    init_db(db_path)
    product = get_product(db_path, product_id)
    if product is None:
        print(f"No product with id {product_id} in {db_path}")
        return 1

    print(f"\n{product['name']} ({product['volume_ml']} mL)")
    for entry in get_price_history(db_path, product_id):
        deal = f"  [{entry['deal_type']}: {entry['deal_details']}]" if entry["deal_type"] else ""
        print(
            f"  {entry['observed_at']}  ${entry['current_price']:.2f}"
            f"  (${entry['price_per_100ml']:.2f}/100mL){deal}"
        )
    print()
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for CLI."""
    load_dotenv(dotenv_path=Path.cwd() / ".env")
    args = parse_args(argv)
    setup_logging(level=logging.DEBUG if args.verbose else logging.INFO)

    if args.stats:
        show_stats(args.db)
        return 0

    if args.history:
        return show_history(args.db, args.history)

    if args.export_csv:
        init_db(args.db)
        export_db_to_csv(args.db, args.export_csv)
        return 0

    source = HtmlFileSource(args.html_file) if args.html_file else OffersPageSource(args.url)
    store = None
    store_failed = False
    if not args.no_db:
        try:
            store = SQLiteCatalogStore(args.db)
        except CatalogStoreError as e:
            logger.error(f"{e}; products will not be saved")
            store_failed = True
    advisor = None if args.no_advice else OpenAIAdvisor(model=args.model)

    try:
        result = run_offers_workflow(source, store=store, advisor=advisor, max_workers=args.workers)
    except SourceUnavailable as e:
        logger.error(f"Could not load offers: {e}")
        return 2

    print_report(result.ranking, limit=args.top)

    if result.persistence is not None:
        print(f"Products saved to database: {args.db} "
              f"({len(result.persistence.saved)} saved, {len(result.persistence.failures)} failed)")
        if not result.persistence.ok:
            return 1
    return 1 if store_failed else 0


if __name__ == "__main__":
    sys.exit(main())
