"""
Pipeline Orchestrator.

Single entry point for a review export run:
Pagination → Normalization → (on demand) CSV Export
"""

import logging
from typing import List, Optional

from src.agents.identifier import IdStrategy, extract_dash_suffix, resolve_product_id
from src.agents.ingestion import BazaarvoiceClient, PageCallback, ReviewPaginator
from src.agents.normalization import normalize_reviews
from src.errors import InvalidInputError, ReviewExportError
from src.models.pagination import ExportResult, PaginationState
from src.models.review import RawReviewRecord
from src.utils.http_client import RetryCallback
from src.utils.storage import CsvExporter
import config.settings as settings

logger = logging.getLogger(__name__)


def build_paginator() -> ReviewPaginator:
    """Paginator wired from config settings."""
    client = BazaarvoiceClient(
        base_url=settings.BAZAARVOICE_BASE_URL,
        passkey=settings.BAZAARVOICE_PASSKEY,
        api_version=settings.API_VERSION,
        locale=settings.API_LOCALE,
        content_locale_filter=settings.CONTENT_LOCALE_FILTER,
        sort=settings.SORT_ORDER,
        include=settings.INCLUDE,
        stats=settings.STATS,
        max_retries=settings.MAX_RETRIES,
        base_delay_ms=settings.BASE_DELAY_MS,
        timeout_seconds=settings.REQUEST_TIMEOUT_SECONDS
    )
    return ReviewPaginator(
        client,
        page_size=settings.PAGE_SIZE,
        page_delay_seconds=settings.PAGE_DELAY_SECONDS
    )


def run_review_export(
    product_id: str,
    on_retry: Optional[RetryCallback] = None,
    on_page: Optional[PageCallback] = None,
    paginator: Optional[ReviewPaginator] = None
) -> ExportResult:
    """
    Fetch and normalize every review for a product.

    Failures are reported on the result (is_error + message) rather than
    raised. Reviews collected before the failing page are kept.

    Args:
        product_id: Upstream product identifier
        on_retry: Optional callback(attempt, total_attempts, delay_ms)
        on_page: Optional callback(PaginationState) after each page
        paginator: Pagination engine (built from settings if omitted)

    Returns:
        ExportResult
    """
    if not product_id or not product_id.strip():
        return ExportResult(is_error=True, message="Please enter a product ID to continue")

    product_id = product_id.strip()
    paginator = paginator or build_paginator()

    raw_reviews: List[RawReviewRecord] = []
    state = PaginationState(current_limit=paginator.page_size)

    logger.info(f"Starting review export for {product_id}")

    try:
        paginator.fetch_all(
            product_id,
            on_page=on_page,
            on_retry=on_retry,
            reviews=raw_reviews,
            state=state
        )
    except ReviewExportError as e:
        logger.error(
            f"Review export for {product_id} failed after "
            f"{state.pages_fetched} pages: {e}"
        )
        return ExportResult(
            reviews=normalize_reviews(raw_reviews),
            pages_fetched=state.pages_fetched,
            total_results=state.total_results,
            is_error=True,
            message=f"Request failed: {e}",
            raw_reviews=raw_reviews
        )

    reviews = normalize_reviews(raw_reviews)
    logger.info(
        f"Review export for {product_id} complete: {len(reviews)} reviews, "
        f"{state.pages_fetched} pages, total reported {state.total_results}"
    )
    return ExportResult(
        reviews=reviews,
        pages_fetched=state.pages_fetched,
        total_results=state.total_results,
        message=f"Collected {len(reviews)} reviews",
        raw_reviews=raw_reviews
    )


class ReviewExportOrchestrator:
    """
    Coordinates a review export run for callers (CLI, tests).

    Holds the paginator and exporter; keeps no per-run state.
    """

    def __init__(
        self,
        paginator: Optional[ReviewPaginator] = None,
        exporter: Optional[CsvExporter] = None,
        on_retry: Optional[RetryCallback] = None,
        on_page: Optional[PageCallback] = None
    ):
        """
        Initialize orchestrator.

        Args:
            paginator: Pagination engine (built from settings if omitted)
            exporter: CSV exporter (writes to settings.OUTPUT_ROOT if omitted)
            on_retry: Progress callback for retries
            on_page: Progress callback for fetched pages
        """
        self.paginator = paginator or build_paginator()
        self.exporter = exporter or CsvExporter(
            str(settings.OUTPUT_ROOT),
            headers=settings.CSV_HEADERS
        )
        self.on_retry = on_retry
        self.on_page = on_page

    def run(self, product_id: str) -> ExportResult:
        """Fetch and normalize reviews for a product ID."""
        return run_review_export(
            product_id,
            on_retry=self.on_retry,
            on_page=self.on_page,
            paginator=self.paginator
        )

    def run_from_url(self, url: str, strategy: IdStrategy = extract_dash_suffix) -> ExportResult:
        """Resolve the product ID from a product URL, then run."""
        try:
            product_id = resolve_product_id(url, strategy)
        except InvalidInputError as e:
            logger.warning(f"Invalid input: {e}")
            return ExportResult(is_error=True, message=str(e))

        return self.run(product_id)

    def export_csv(
        self,
        result: ExportResult,
        label: str = settings.DEFAULT_FILE_LABEL
    ) -> Optional[str]:
        """Save a run's reviews as CSV. No-op for an empty result."""
        return self.exporter.export(result.reviews, label=label)
