"""
Record Normalization Agent.

Maps raw upstream review records into the flat four-field shape used
for display and CSV export.
"""

import logging
from typing import Iterable, List

from src.models.review import (
    DEFAULT_RATING,
    DEFAULT_REVIEW_TEXT,
    DEFAULT_TITLE,
    NormalizedReview,
    RawReviewRecord,
)

logger = logging.getLogger(__name__)


def normalize_review(raw: RawReviewRecord) -> NormalizedReview:
    """
    Normalize a single raw review.

    Falsy source values take the default, so an empty title or a zero
    rating is reported the same as a missing one.
    """
    rating = raw.get("Rating") or DEFAULT_RATING
    # 4.0 is reported as 4
    if isinstance(rating, float) and rating.is_integer():
        rating = int(rating)

    return NormalizedReview(
        recommended="Yes" if raw.get("IsRecommended") else "No",
        rating=rating,
        title=raw.get("Title") or DEFAULT_TITLE,
        reviewtext=raw.get("ReviewText") or DEFAULT_REVIEW_TEXT
    )


def normalize_reviews(raws: Iterable[RawReviewRecord]) -> List[NormalizedReview]:
    """
    Normalize raw reviews, one-to-one and order-preserving.

    Args:
        raws: Raw review records as returned by the API

    Returns:
        List of NormalizedReview, same length and order as the input
    """
    normalized = [normalize_review(raw) for raw in raws]
    logger.debug(f"Normalized {len(normalized)} reviews")
    return normalized
