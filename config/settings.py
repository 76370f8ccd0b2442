"""
Configuration settings for ReviewExport.

Centralized configuration for the upstream API, retry policy and output.
"""

import os
from pathlib import Path

# Project paths
PROJECT_ROOT = Path(__file__).parent.parent
OUTPUT_ROOT = Path(os.getenv("REVIEW_EXPORT_OUTPUT_DIR", str(PROJECT_ROOT / "output")))

# Bazaarvoice Conversations API
BAZAARVOICE_BASE_URL = os.getenv(
    "BAZAARVOICE_BASE_URL",
    "https://api.bazaarvoice.com/data/reviews.json"
)
BAZAARVOICE_PASSKEY = os.getenv(
    "BAZAARVOICE_PASSKEY",
    "calXm2DyQVjcCy9agq85vmTJv5ELuuBCF2sdg4BnJzJus"
)
API_VERSION = "5.4"
API_LOCALE = "en_US"
CONTENT_LOCALE_FILTER = "contentlocale:en*"
SORT_ORDER = "SubmissionTime:desc"
INCLUDE = "Products,Comments"
STATS = "Reviews"

# Pagination
PAGE_SIZE = 100
PAGE_DELAY_SECONDS = 0.1  # Fixed pause between pages

# Retry policy
MAX_RETRIES = 3  # Retries after the first attempt (4 attempts total)
BASE_DELAY_MS = 1000
REQUEST_TIMEOUT_SECONDS = 30

# Product identifier extraction ("dash" or "pattern")
DEFAULT_ID_STRATEGY = "dash"

# Export
CSV_HEADERS = ["Recommended", "Rating", "Title", "Review Text"]
DEFAULT_FILE_LABEL = "product"

# CLI preview
PREVIEW_ROWS = 5
PREVIEW_TEXT_LENGTH = 100

# Logging
LOG_LEVEL = "INFO"  # DEBUG, INFO, WARNING, ERROR
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_FILE = "review_export.log"
