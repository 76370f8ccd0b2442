"""
Pagination and run result models.
"""

from dataclasses import dataclass, field
from typing import List

from src.models.review import NormalizedReview, RawReviewRecord


@dataclass
class PaginationState:
    """
    Bookkeeping for a single pagination run.

    Updated once per successful page. pages_fetched and current_offset
    never decrease; total_results holds the most recent truthy
    TotalResults reported by the API.
    """
    total_results: int = 0
    current_offset: int = 0
    current_limit: int = 100
    pages_fetched: int = 0
    reviews_collected: int = 0

    @property
    def progress_percent(self) -> float:
        """Share of the reported total collected so far (0-100)."""
        if not self.total_results:
            return 0.0
        return min(100.0, 100.0 * self.reviews_collected / self.total_results)


@dataclass
class PaginationResult:
    """Raw records and final state of a completed pagination run."""
    reviews: List[RawReviewRecord]
    state: PaginationState


@dataclass
class ExportResult:
    """
    Caller-facing outcome of a review export run.

    On failure, is_error is set, message carries a human-readable
    explanation, and reviews/raw_reviews hold whatever was collected
    before the failing page.
    """
    reviews: List[NormalizedReview] = field(default_factory=list)
    pages_fetched: int = 0
    total_results: int = 0
    is_error: bool = False
    message: str = ""
    raw_reviews: List[RawReviewRecord] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.is_error
