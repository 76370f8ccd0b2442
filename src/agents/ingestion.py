"""
Ingestion Agent.

Fetches reviews for a product from the Bazaarvoice Conversations API,
walking offset-based pages until every review has been collected.
"""

import logging
import time
from typing import Callable, Iterator, List, Optional, Tuple

import requests

from src.models.pagination import PaginationResult, PaginationState
from src.models.review import RawReviewRecord
from src.utils.http_client import RetryCallback, decode_json, fetch_with_retry

logger = logging.getLogger(__name__)

PageCallback = Callable[[PaginationState], None]


class BazaarvoiceClient:
    """
    Issues single page requests against the reviews endpoint.

    Each request goes through fetch_with_retry, so server and network
    failures are retried with exponential backoff before surfacing.
    """

    def __init__(
        self,
        base_url: str,
        passkey: str,
        api_version: str = "5.4",
        locale: str = "en_US",
        content_locale_filter: str = "contentlocale:en*",
        sort: str = "SubmissionTime:desc",
        include: str = "Products,Comments",
        stats: str = "Reviews",
        max_retries: int = 3,
        base_delay_ms: float = 1000,
        timeout_seconds: float = 30,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize API client.

        Args:
            base_url: Reviews endpoint URL
            passkey: Static API access token
            api_version: Bazaarvoice API version
            locale: Response locale
            content_locale_filter: Filter restricting review content locale
            sort: Sort order for reviews
            include: Related sub-resources to include
            stats: Statistics to include
            max_retries: Retries per page after the first attempt
            base_delay_ms: Base delay of the backoff schedule
            timeout_seconds: Per-attempt request timeout
            session: Optional requests session (one is created if omitted)
        """
        self.base_url = base_url
        self.passkey = passkey
        self.api_version = api_version
        self.locale = locale
        self.content_locale_filter = content_locale_filter
        self.sort = sort
        self.include = include
        self.stats = stats
        self.max_retries = max_retries
        self.base_delay_ms = base_delay_ms
        self.timeout_seconds = timeout_seconds
        self.session = session or requests.Session()

        logger.info(f"Initialized BazaarvoiceClient for {base_url} (apiversion={api_version})")

    def build_params(self, product_id: str, offset: int, limit: int) -> List[Tuple[str, str]]:
        """
        Query parameters for one page.

        Returned as a list of pairs so both Filter values are sent.
        """
        return [
            ("Filter", self.content_locale_filter),
            ("Filter", f"ProductId:{product_id}"),
            ("Sort", self.sort),
            ("Limit", str(limit)),
            ("Offset", str(offset)),
            ("Include", self.include),
            ("Stats", self.stats),
            ("passkey", self.passkey),
            ("apiversion", self.api_version),
            ("Locale", self.locale),
        ]

    def fetch_page(
        self,
        product_id: str,
        offset: int = 0,
        limit: int = 100,
        on_retry: Optional[RetryCallback] = None
    ) -> dict:
        """
        Fetch one page of reviews.

        Returns:
            Decoded JSON body (with "Results" and "TotalResults")

        Raises:
            ClientError, ExhaustedRetriesError, UpstreamResponseError
        """
        logger.debug(f"Fetching reviews for {product_id} (offset={offset}, limit={limit})")

        response = fetch_with_retry(
            self.base_url,
            params=self.build_params(product_id, offset, limit),
            session=self.session,
            max_retries=self.max_retries,
            base_delay_ms=self.base_delay_ms,
            on_retry=on_retry,
            timeout=self.timeout_seconds
        )
        return decode_json(response)


class ReviewPaginator:
    """
    Pagination engine.

    Walks pages of fixed size from offset 0 until a page comes back empty
    or the accumulated count reaches the server-reported total. Holds no
    state between runs; each call builds its own PaginationState.
    """

    def __init__(
        self,
        client: BazaarvoiceClient,
        page_size: int = 100,
        page_delay_seconds: float = 0.1
    ):
        self.client = client
        self.page_size = page_size
        self.page_delay_seconds = page_delay_seconds

    def iter_pages(
        self,
        product_id: str,
        on_page: Optional[PageCallback] = None,
        on_retry: Optional[RetryCallback] = None,
        state: Optional[PaginationState] = None
    ) -> Iterator[Tuple[List[RawReviewRecord], PaginationState]]:
        """
        Yield (page_results, state) for every non-empty page.

        Any unrecoverable fetch error propagates out of the generator;
        pages already yielded remain with the caller. A page is cut down
        to the room left under the latest reported total; if no room is
        left the run stops without counting the page.
        """
        state = state or PaginationState(current_limit=self.page_size)
        offset = 0

        while True:
            data = self.client.fetch_page(
                product_id,
                offset=offset,
                limit=self.page_size,
                on_retry=on_retry
            )

            results = data.get("Results") or []
            if not results:
                logger.info(f"Empty page at offset {offset}, stopping")
                break

            # Most recent truthy total wins
            state.total_results = data.get("TotalResults") or state.total_results

            if state.total_results:
                keep = max(0, state.total_results - state.reviews_collected)
                if len(results) > keep:
                    logger.warning(
                        f"Upstream returned {len(results) - keep} reviews beyond "
                        f"TotalResults={state.total_results}, trimming"
                    )
                    results = results[:keep]
                if not results:
                    logger.info(
                        f"Already holding {state.reviews_collected} reviews for "
                        f"TotalResults={state.total_results}, stopping"
                    )
                    break

            state.pages_fetched += 1
            state.current_offset = offset
            state.reviews_collected += len(results)

            logger.info(
                f"Page {state.pages_fetched}: {len(results)} reviews "
                f"({state.reviews_collected}/{state.total_results})"
            )

            if on_page:
                on_page(state)

            yield results, state

            if state.reviews_collected >= state.total_results:
                break

            offset += self.page_size
            time.sleep(self.page_delay_seconds)

    def fetch_all(
        self,
        product_id: str,
        on_page: Optional[PageCallback] = None,
        on_retry: Optional[RetryCallback] = None,
        reviews: Optional[List[RawReviewRecord]] = None,
        state: Optional[PaginationState] = None
    ) -> PaginationResult:
        """
        Collect every review for a product.

        Args:
            product_id: Upstream product identifier
            on_page: Optional callback(PaginationState) after each page
            on_retry: Optional callback(attempt, total_attempts, delay_ms)
            reviews: List to accumulate into; on a fetch error it keeps
                     the reviews collected so far
            state: PaginationState to update; on a fetch error it reflects
                   the last successful page

        Returns:
            PaginationResult with raw records and final state
        """
        reviews = reviews if reviews is not None else []
        state = state or PaginationState(current_limit=self.page_size)

        try:
            for page_results, _ in self.iter_pages(product_id, on_page, on_retry, state):
                reviews.extend(page_results)
        finally:
            # A total that shrank below earlier pages cuts the collection back
            if state.total_results and len(reviews) > state.total_results:
                logger.warning(
                    f"Dropping {len(reviews) - state.total_results} reviews collected "
                    f"beyond TotalResults={state.total_results}"
                )
                del reviews[state.total_results:]
                state.reviews_collected = len(reviews)

        logger.info(
            f"Collected {len(reviews)} reviews for {product_id} "
            f"in {state.pages_fetched} pages"
        )
        return PaginationResult(reviews=reviews, state=state)
