"""
Storage utility.

CSV export of normalized reviews.
"""

import csv
import logging
import os
from datetime import date
from typing import List, Optional, Sequence

import pandas as pd

from src.models.review import NormalizedReview

logger = logging.getLogger(__name__)

CSV_HEADERS = ["Recommended", "Rating", "Title", "Review Text"]


class CsvExporter:
    """
    Serializes normalized reviews to CSV and saves them in one shot.

    Output format:
    - Unquoted header row: Recommended,Rating,Title,Review Text
    - Every data field double-quoted, inner quotes doubled
    - Rows joined by "\\n"; embedded newlines kept inside quoted fields
    """

    def __init__(self, output_dir: str, headers: Optional[List[str]] = None):
        """
        Initialize CSV exporter.

        Args:
            output_dir: Directory CSV files are written to (created on first export)
            headers: Column names for the header row
        """
        self.output_dir = output_dir
        self.headers = headers or CSV_HEADERS

        logger.info(f"Initialized CsvExporter with output_dir={output_dir}")

    def build_csv(self, reviews: Sequence[NormalizedReview]) -> str:
        """
        Render reviews as CSV text.

        Args:
            reviews: Normalized reviews

        Returns:
            CSV content without a trailing newline
        """
        header = ",".join(self.headers)
        if not reviews:
            return header

        # object dtype keeps ratings as written (3 stays "3", not "3.0")
        df = pd.DataFrame(
            [review.to_row() for review in reviews],
            columns=self.headers,
            dtype=object
        )
        body = df.to_csv(
            header=False,
            index=False,
            quoting=csv.QUOTE_ALL,
            lineterminator="\n"
        )
        return header + "\n" + body.rstrip("\n")

    def build_filename(self, label: str = "product", today: Optional[date] = None) -> str:
        """Date-stamped file name, e.g. reviews_product_2024-06-01.csv."""
        today = today or date.today()
        return f"reviews_{label}_{today.isoformat()}.csv"

    def export(
        self,
        reviews: Sequence[NormalizedReview],
        label: str = "product"
    ) -> Optional[str]:
        """
        Save reviews to a date-stamped CSV file.

        Args:
            reviews: Normalized reviews
            label: Middle part of the file name

        Returns:
            Path to the written file, or None if there was nothing to export
        """
        if not reviews:
            logger.info("No reviews to export, skipping CSV")
            return None

        os.makedirs(self.output_dir, exist_ok=True)
        filepath = os.path.join(self.output_dir, self.build_filename(label))

        try:
            with open(filepath, "w", encoding="utf-8", newline="") as f:
                f.write(self.build_csv(reviews))
            logger.info(f"Saved {len(reviews)} reviews to {filepath}")
        except OSError as e:
            logger.error(f"Failed to write CSV to {filepath}: {e}")
            raise

        return filepath
