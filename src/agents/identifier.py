"""
Product identifier extraction.

Strategies that pull the product ID out of a product page URL. A
strategy is any callable taking the URL and returning the ID or None.
"""

import logging
import re
from typing import Callable, Dict, Optional

from src.errors import InvalidInputError

logger = logging.getLogger(__name__)

IdStrategy = Callable[[str], Optional[str]]

_P_NUMBER_SUFFIX = re.compile(r"-(P\d+)/?$")
_P_NUMBER = re.compile(r"^P\d+$")


def extract_dash_suffix(url: str) -> Optional[str]:
    """
    Last dash-delimited part of the URL, ignoring the query string.

    https://shop.example.com/product/glow-serum-P123?skuId=9 -> "P123"
    """
    before_query = url.split("?")[0]
    last_part = before_query.split("-")[-1]
    return last_part or None


def extract_p_number(url: str) -> Optional[str]:
    """
    A "P<digits>" product ID at the end of the URL path.

    Tries a suffix match on the path first, then falls back to scanning
    the dash-delimited parts from the end.
    """
    path = re.split(r"[?#]", url, maxsplit=1)[0]

    match = _P_NUMBER_SUFFIX.search(path)
    if match:
        return match.group(1)

    for part in reversed(re.split(r"[-/]", path)):
        if _P_NUMBER.match(part):
            logger.debug(f"Found product ID {part} by fallback scan")
            return part

    return None


STRATEGIES: Dict[str, IdStrategy] = {
    "dash": extract_dash_suffix,
    "pattern": extract_p_number,
}


def get_strategy(name: str) -> IdStrategy:
    """Look up an extraction strategy by name."""
    try:
        return STRATEGIES[name]
    except KeyError:
        raise ValueError(
            f"Unknown ID strategy: {name}. Must be one of {sorted(STRATEGIES)}"
        )


def resolve_product_id(url: str, strategy: IdStrategy = extract_dash_suffix) -> str:
    """
    Extract the product ID from a product URL.

    Raises:
        InvalidInputError: If the URL is empty or holds no product ID
    """
    if not url or not url.strip():
        raise InvalidInputError("Please enter a product URL to continue")

    product_id = strategy(url.strip())
    if not product_id:
        raise InvalidInputError(
            f"Couldn't find the product ID in {url.strip()!r}. Please double-check the URL"
        )

    logger.info(f"Resolved product ID {product_id} from URL")
    return product_id
