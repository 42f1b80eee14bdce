"""
Record extraction for catalog detail pages.

Each field is pulled out independently. Missing title, id, price or rating
aborts the record; stock count and review count fall back to 0.
"""

import logging
import re
from typing import Dict, Mapping, Optional

import crawler_config
from catalog_models import Record
from errors import ExtractionError, RecipeError
from extractors.document import Selector, compile_selector, select_first

logger = logging.getLogger(__name__)

RATINGS = ["Zero", "One", "Two", "Three", "Four", "Five"]

RECORD_FIELDS = ("title", "external_id", "price", "available", "reviews", "rating")

_DIGITS_RE = re.compile(r'[0-9]+')


def parse_int(text: str, default: int = 0) -> int:
    """
    Pull the first run of ASCII digits out of free text.

    "In stock (19 available)" -> 19, "Out of stock" -> default.
    A run too long for int() also gives the default.
    """
    logger.debug(f"Attempting to parse input {text!r}")
    match = _DIGITS_RE.search(text)
    if match is None:
        return default
    try:
        return int(match.group())
    except ValueError:
        logger.warning(f"Digit run of length {len(match.group())} too long to parse, using {default}")
        return default


def compile_record_selectors(overrides: Optional[Mapping[str, str]] = None) -> Dict[str, Selector]:
    """
    Compile the per-field selectors, applying any overrides on top of the defaults.

    Raises:
        RecipeError: If a field name is unknown or a selector is invalid
    """
    css = dict(crawler_config.RECORD_SELECTORS)
    for name, value in (overrides or {}).items():
        if name not in RECORD_FIELDS:
            raise RecipeError(f"Unknown record field in selectors: {name}")
        css[name] = value
    return {name: compile_selector(value) for name, value in css.items()}


def _required_text(document, selector: Selector, field: str) -> str:
    elem = select_first(document, selector)
    if elem is None:
        raise ExtractionError(field, f"Failed to extract {field} from detail page")
    return elem.get_text().strip()


def _optional_count(document, selector: Selector, field: str) -> int:
    elem = select_first(document, selector)
    if elem is None:
        logger.debug(f"No {field} element on detail page, defaulting to 0")
        return 0
    return parse_int(elem.get_text())


def extract_title(document, selector: Selector) -> str:
    title = _required_text(document, selector, "title")
    if not title:
        raise ExtractionError("title", "Empty title on detail page")
    return title


def extract_external_id(document, selector: Selector) -> str:
    return _required_text(document, selector, "external_id")


def extract_price(document, selector: Selector) -> str:
    return _required_text(document, selector, "price")


def extract_available(document, selector: Selector) -> int:
    return _optional_count(document, selector, "available")


def extract_reviews(document, selector: Selector) -> int:
    return _optional_count(document, selector, "reviews")


def extract_rating(document, selector: Selector) -> int:
    """Map the star-rating element's last class name (e.g. "Three") to 0-5."""
    elem = select_first(document, selector)
    if elem is None:
        raise ExtractionError("rating", "Failed to extract rating from detail page")

    classes = elem.get('class') or []
    word = classes[-1] if classes else ""
    if word not in RATINGS:
        raise ExtractionError("rating", f"Unrecognized rating word: {word!r}")
    return RATINGS.index(word)


def extract_record(document, selectors: Optional[Mapping[str, Selector]] = None) -> Record:
    """
    Build a Record from a parsed detail page.

    Args:
        document: Parsed detail page
        selectors: Field name -> selector; defaults to crawler_config.RECORD_SELECTORS

    Raises:
        ExtractionError: If a required field is missing or unmappable
    """
    if selectors is None:
        selectors = compile_record_selectors()

    return Record(
        title=extract_title(document, selectors["title"]),
        external_id=extract_external_id(document, selectors["external_id"]),
        price=extract_price(document, selectors["price"]),
        available=extract_available(document, selectors["available"]),
        reviews=extract_reviews(document, selectors["reviews"]),
        rating=extract_rating(document, selectors["rating"]),
    )
