"""
Review data models.

RawReviewRecord is the untouched JSON object returned by the upstream API.
NormalizedReview is the flat four-field shape used for display and export.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Union

RawReviewRecord = Dict[str, Any]

DEFAULT_RATING = "N/A"
DEFAULT_TITLE = "No Title"
DEFAULT_REVIEW_TEXT = "No Review Text"


@dataclass(frozen=True)
class NormalizedReview:
    """
    Flat, tabular view of a single review.
    Output of the Record Normalizer.
    """
    recommended: str  # "Yes" or "No"
    rating: Union[int, float, str]  # Numeric rating or "N/A"
    title: str
    reviewtext: str

    def __post_init__(self):
        if self.recommended not in ("Yes", "No"):
            raise ValueError(
                f"Invalid recommended value: {self.recommended}. Must be 'Yes' or 'No'"
            )

    def to_row(self) -> List[Union[int, float, str]]:
        """Values in CSV column order."""
        return [self.recommended, self.rating, self.title, self.reviewtext]
