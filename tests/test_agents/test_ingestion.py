"""
Unit tests for the Ingestion Agent (API client + pagination engine).
"""

import math

import pytest
from unittest.mock import MagicMock, call, patch

from src.agents.ingestion import BazaarvoiceClient, ReviewPaginator
from src.errors import ClientError, ExhaustedRetriesError, ServerError
from src.models.pagination import PaginationState


def make_reviews(count: int, start: int = 0):
    return [{"Id": str(i), "Rating": 5, "Title": f"Review {i}"} for i in range(start, start + count)]


def make_provider(total: int):
    """fetch_page stand-in serving `total` reviews by offset/limit."""
    catalog = make_reviews(total)

    def fetch_page(product_id, offset=0, limit=100, on_retry=None):
        return {"Results": catalog[offset:offset + limit], "TotalResults": total}

    return fetch_page


@pytest.fixture
def mock_sleep():
    with patch("src.agents.ingestion.time.sleep") as sleep:
        yield sleep


@pytest.fixture
def client():
    return MagicMock(spec=BazaarvoiceClient)


class TestBazaarvoiceClient:

    @pytest.fixture
    def api(self):
        session = MagicMock()
        return BazaarvoiceClient(
            base_url="https://api.example.com/data/reviews.json",
            passkey="test-passkey",
            max_retries=2,
            base_delay_ms=10,
            timeout_seconds=5,
            session=session
        )

    def test_build_params(self, api):
        params = api.build_params("P12345", offset=200, limit=100)

        assert ("Filter", "contentlocale:en*") in params
        assert ("Filter", "ProductId:P12345") in params
        assert ("Sort", "SubmissionTime:desc") in params
        assert ("Limit", "100") in params
        assert ("Offset", "200") in params
        assert ("Include", "Products,Comments") in params
        assert ("Stats", "Reviews") in params
        assert ("passkey", "test-passkey") in params
        assert ("apiversion", "5.4") in params
        assert ("Locale", "en_US") in params

    def test_fetch_page_returns_json(self, api):
        response = MagicMock(status_code=200, ok=True)
        response.json.return_value = {"Results": make_reviews(2), "TotalResults": 2}
        api.session.get.return_value = response

        data = api.fetch_page("P12345", offset=0, limit=100)

        assert data["TotalResults"] == 2
        assert len(data["Results"]) == 2
        api.session.get.assert_called_once_with(
            "https://api.example.com/data/reviews.json",
            params=api.build_params("P12345", 0, 100),
            timeout=5
        )

    def test_fetch_page_client_error(self, api):
        api.session.get.return_value = MagicMock(status_code=403, ok=False, reason="Forbidden")

        with pytest.raises(ClientError):
            api.fetch_page("P12345")

        assert api.session.get.call_count == 1


class TestReviewPaginator:

    @pytest.mark.parametrize("total", [1, 99, 100, 101, 250, 1000])
    def test_page_count_matches_total(self, client, mock_sleep, total):
        """N reviews with page size P take ceil(N/P) fetches and yield N reviews."""
        client.fetch_page.side_effect = make_provider(total)
        paginator = ReviewPaginator(client, page_size=100)

        result = paginator.fetch_all("P1")

        assert len(result.reviews) == total
        assert client.fetch_page.call_count == math.ceil(total / 100)
        assert result.state.pages_fetched == math.ceil(total / 100)
        assert result.state.total_results == total

    def test_offsets_advance_by_page_size(self, client, mock_sleep):
        client.fetch_page.side_effect = make_provider(250)
        paginator = ReviewPaginator(client, page_size=100)

        paginator.fetch_all("P1")

        offsets = [c.kwargs["offset"] for c in client.fetch_page.call_args_list]
        limits = [c.kwargs["limit"] for c in client.fetch_page.call_args_list]
        assert offsets == [0, 100, 200]
        assert limits == [100, 100, 100]

    def test_stops_on_empty_page_before_total(self, client, mock_sleep):
        """TotalResults 5 but only 3 records: stop after the empty page with 3."""
        client.fetch_page.side_effect = [
            {"Results": make_reviews(2), "TotalResults": 5},
            {"Results": make_reviews(1, start=2), "TotalResults": 5},
            {"Results": [], "TotalResults": 5},
        ]
        paginator = ReviewPaginator(client, page_size=2)

        result = paginator.fetch_all("P1")

        assert len(result.reviews) == 3
        assert client.fetch_page.call_count == 3
        assert result.state.pages_fetched == 2
        assert result.state.total_results == 5

    def test_absent_results_treated_as_empty(self, client, mock_sleep):
        client.fetch_page.return_value = {"TotalResults": 10}
        paginator = ReviewPaginator(client)

        result = paginator.fetch_all("P1")

        assert result.reviews == []
        assert result.state.pages_fetched == 0

    def test_total_overwritten_by_latest_truthy_value(self, client, mock_sleep):
        client.fetch_page.side_effect = [
            {"Results": make_reviews(100), "TotalResults": 300},
            {"Results": make_reviews(100, start=100)},
            {"Results": make_reviews(50, start=200), "TotalResults": 250},
        ]
        paginator = ReviewPaginator(client, page_size=100)
        seen_totals = []

        result = paginator.fetch_all(
            "P1",
            on_page=lambda state: seen_totals.append(state.total_results)
        )

        assert seen_totals == [300, 300, 250]
        assert result.state.total_results == 250
        assert len(result.reviews) == 250

    def test_missing_total_stops_after_first_page(self, client, mock_sleep):
        client.fetch_page.side_effect = [
            {"Results": make_reviews(100)},
            {"Results": make_reviews(100, start=100)},
        ]
        paginator = ReviewPaginator(client)

        result = paginator.fetch_all("P1")

        assert len(result.reviews) == 100
        assert client.fetch_page.call_count == 1

    def test_over_delivery_trimmed_to_total(self, client, mock_sleep):
        client.fetch_page.return_value = {"Results": make_reviews(8), "TotalResults": 5}
        paginator = ReviewPaginator(client, page_size=10)

        result = paginator.fetch_all("P1")

        assert len(result.reviews) == 5
        assert result.state.reviews_collected == 5

    def test_total_shrinking_below_collected(self, client, mock_sleep):
        """A later page reporting a smaller total cuts the collection back to it."""
        client.fetch_page.side_effect = [
            {"Results": make_reviews(100), "TotalResults": 300},
            {"Results": make_reviews(100, start=100), "TotalResults": 50},
        ]
        paginator = ReviewPaginator(client, page_size=100)

        result = paginator.fetch_all("P1")

        assert len(result.reviews) <= result.state.total_results
        assert len(result.reviews) == 50
        assert [r["Id"] for r in result.reviews] == [str(i) for i in range(50)]
        assert result.state.total_results == 50
        assert result.state.reviews_collected == 50
        assert result.state.pages_fetched == 1
        assert client.fetch_page.call_count == 2

    def test_overflow_larger_than_page(self, client, mock_sleep):
        """Overflow bigger than the current page keeps none of that page."""
        client.fetch_page.side_effect = [
            {"Results": make_reviews(10), "TotalResults": 100},
            {"Results": make_reviews(10, start=10), "TotalResults": 5},
        ]
        paginator = ReviewPaginator(client, page_size=10)

        result = paginator.fetch_all("P1")

        assert len(result.reviews) == 5
        assert result.state.total_results == 5
        assert client.fetch_page.call_count == 2

    def test_iter_pages_never_yields_beyond_total(self, client, mock_sleep):
        client.fetch_page.side_effect = [
            {"Results": make_reviews(100), "TotalResults": 300},
            {"Results": make_reviews(100, start=100), "TotalResults": 150},
        ]
        paginator = ReviewPaginator(client, page_size=100)

        pages = [len(results) for results, _ in paginator.iter_pages("P1")]

        assert pages == [100, 50]

    def test_fetch_all_keeps_partial_reviews_on_error(self, client, mock_sleep):
        client.fetch_page.side_effect = [
            {"Results": make_reviews(100), "TotalResults": 300},
            ClientError(403, "Forbidden"),
        ]
        paginator = ReviewPaginator(client, page_size=100)
        reviews = []
        state = PaginationState(current_limit=100)

        with pytest.raises(ClientError):
            paginator.fetch_all("P1", reviews=reviews, state=state)

        assert len(reviews) == 100
        assert state.pages_fetched == 1
        assert state.total_results == 300

    def test_delay_between_pages(self, client, mock_sleep):
        client.fetch_page.side_effect = make_provider(250)
        paginator = ReviewPaginator(client, page_size=100, page_delay_seconds=0.1)

        paginator.fetch_all("P1")

        assert mock_sleep.call_args_list == [call(0.1), call(0.1)]

    def test_on_page_reports_state(self, client, mock_sleep):
        client.fetch_page.side_effect = make_provider(150)
        paginator = ReviewPaginator(client, page_size=100)
        snapshots = []

        def on_page(state: PaginationState):
            snapshots.append(
                (state.pages_fetched, state.current_offset, state.reviews_collected, state.progress_percent)
            )

        paginator.fetch_all("P1", on_page=on_page)

        assert snapshots == [(1, 0, 100, pytest.approx(66.666, rel=1e-3)), (2, 100, 150, 100.0)]

    def test_retry_callback_passed_to_client(self, client, mock_sleep):
        client.fetch_page.side_effect = make_provider(10)
        on_retry = MagicMock()
        paginator = ReviewPaginator(client)

        paginator.fetch_all("P1", on_retry=on_retry)

        assert client.fetch_page.call_args.kwargs["on_retry"] is on_retry

    def test_error_aborts_run_keeping_yielded_pages(self, client, mock_sleep):
        client.fetch_page.side_effect = [
            {"Results": make_reviews(100), "TotalResults": 300},
            ExhaustedRetriesError(ServerError(503, "Service Unavailable"), attempts=4),
        ]
        paginator = ReviewPaginator(client, page_size=100)
        collected = []

        with pytest.raises(ExhaustedRetriesError):
            for page_results, state in paginator.iter_pages("P1"):
                collected.extend(page_results)

        assert len(collected) == 100
        assert client.fetch_page.call_count == 2

    def test_runs_are_independent(self, client, mock_sleep):
        client.fetch_page.side_effect = make_provider(120)
        paginator = ReviewPaginator(client, page_size=100)

        first = paginator.fetch_all("P1")
        second = paginator.fetch_all("P1")

        assert len(first.reviews) == len(second.reviews) == 120
        assert second.state.pages_fetched == 2
