"""
ReviewExport - Bazaarvoice review downloader

CLI entry point: fetches every review for a product and saves them as CSV.
"""

import argparse
import logging
import sys
from typing import Sequence

from src.agents.identifier import STRATEGIES, get_strategy
from src.models.pagination import PaginationState
from src.models.review import NormalizedReview
from src.orchestrator import ReviewExportOrchestrator
from src.utils.storage import CsvExporter
import config.settings as settings


def setup_logging(log_level: str = "INFO"):
    """Configure logging for the entire application."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format=settings.LOG_FORMAT,
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler(settings.LOG_FILE)
        ]
    )


def truncate(text: str, length: int = settings.PREVIEW_TEXT_LENGTH) -> str:
    """Shorten text for table display."""
    if len(text) > length:
        return text[:length] + "..."
    return text


def print_preview(reviews: Sequence[NormalizedReview], rows: int) -> None:
    """Print the first few reviews as a plain-text table."""
    if rows <= 0 or not reviews:
        return

    print(f"{'Recommended':<12} {'Rating':<7} {'Title':<30} Review Text")
    print("-" * 60)
    for review in reviews[:rows]:
        text = truncate(review.reviewtext).replace("\n", " ")
        print(f"{review.recommended:<12} {str(review.rating):<7} {truncate(review.title, 28):<30} {text}")
    if len(reviews) > rows:
        print(f"... and {len(reviews) - rows} more")


def print_page_progress(state: PaginationState) -> None:
    print(
        f"  Page {state.pages_fetched}: {state.reviews_collected}/{state.total_results} "
        f"reviews ({state.progress_percent:.0f}%)"
    )


def print_retry(attempt: int, total_attempts: int, delay_ms: int) -> None:
    print(f"  Request failed (attempt {attempt}/{total_attempts}), retrying in {delay_ms}ms...")


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="ReviewExport - Download product reviews to CSV",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Export reviews for a product page URL
  python main.py --url "https://www.sephora.com/product/lip-sleeping-mask-P420652"

  # Use the P<digits> pattern extractor
  python main.py --url "https://www.sephora.com/product/lip-sleeping-mask-P420652?skuId=1" \\
                 --strategy pattern

  # Export by product ID, show 10 preview rows, skip writing the file
  python main.py --product-id P420652 --preview 10 --no-export
        """
    )

    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument(
        "--url",
        help="Product page URL to extract the product ID from"
    )
    source.add_argument(
        "--product-id",
        help="Upstream product ID (e.g., P420652)"
    )

    parser.add_argument(
        "--strategy",
        default=settings.DEFAULT_ID_STRATEGY,
        choices=sorted(STRATEGIES),
        help=f"Product ID extraction strategy for --url (default: {settings.DEFAULT_ID_STRATEGY})"
    )

    parser.add_argument(
        "--output-dir",
        default=str(settings.OUTPUT_ROOT),
        help=f"Directory for the CSV file (default: {settings.OUTPUT_ROOT})"
    )

    parser.add_argument(
        "--no-export",
        action="store_true",
        help="Fetch and preview reviews without writing a CSV file"
    )

    parser.add_argument(
        "--preview",
        type=int,
        default=settings.PREVIEW_ROWS,
        help=f"Number of reviews to print (default: {settings.PREVIEW_ROWS})"
    )

    parser.add_argument(
        "--log-level",
        default=settings.LOG_LEVEL,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help=f"Logging level (default: {settings.LOG_LEVEL})"
    )

    args = parser.parse_args()

    setup_logging(args.log_level)
    logger = logging.getLogger(__name__)

    print("=" * 60)
    print("ReviewExport - Product Review Downloader")
    print("=" * 60)
    print(f"Source: {args.url or args.product_id}")
    if args.url:
        print(f"ID strategy: {args.strategy}")
    print(f"Export: {'disabled' if args.no_export else args.output_dir}")
    print("=" * 60)
    print()

    try:
        orchestrator = ReviewExportOrchestrator(
            exporter=CsvExporter(args.output_dir, headers=settings.CSV_HEADERS),
            on_retry=print_retry,
            on_page=print_page_progress
        )

        if args.url:
            result = orchestrator.run_from_url(args.url, get_strategy(args.strategy))
        else:
            result = orchestrator.run(args.product_id)

        if result.is_error:
            print(f"\n❌ {result.message}")
            if result.reviews:
                print(f"({len(result.reviews)} reviews were collected before the failure)")
            sys.exit(1)

        print()
        print("=" * 60)
        print("✅ Export completed successfully!")
        print("=" * 60)
        print(f"Total reviews: {result.total_results}")
        print(f"Pages fetched: {result.pages_fetched}")
        print(f"Reviews collected: {len(result.reviews)}")
        print()
        print_preview(result.reviews, args.preview)

        if not args.no_export:
            output_path = orchestrator.export_csv(result)
            if output_path:
                print(f"\nCSV: {output_path}")
            else:
                print("\nNo reviews found, nothing to export")

        logger.info("ReviewExport completed successfully")
        sys.exit(0)

    except KeyboardInterrupt:
        logger.warning("Export interrupted by user")
        print("\n⚠️  Export interrupted")
        sys.exit(1)

    except Exception as e:
        logger.error(f"Export failed: {e}", exc_info=True)
        print(f"\n❌ Export failed: {e}")
        print(f"Check {settings.LOG_FILE} for details")
        sys.exit(1)


if __name__ == "__main__":
    main()
