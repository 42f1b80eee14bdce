"""
Parsed HTML documents and CSS selector handling.

Selectors are compiled once when the recipe is loaded so that a typo in a
selector is reported as a configuration error, not halfway through a crawl.
"""

from typing import Optional, Union

import soupsieve
from bs4 import BeautifulSoup, Tag

from errors import RecipeError

Selector = Union[str, soupsieve.SoupSieve]


def parse_document(html: str) -> BeautifulSoup:
    """Parse HTML into a queryable tree. Malformed markup gives a best-effort tree."""
    return BeautifulSoup(html, 'lxml')


def compile_selector(css: str) -> soupsieve.SoupSieve:
    """
    Compile a CSS selector.

    Raises:
        RecipeError: If the selector is empty or not valid CSS
    """
    if not isinstance(css, str) or not css.strip():
        raise RecipeError(f"CSS selector must be a non-empty string, got {css!r}")
    try:
        return soupsieve.compile(css)
    except soupsieve.SelectorSyntaxError as e:
        raise RecipeError(f"Invalid CSS selector {css!r}: {e}") from e


def _compiled(selector: Selector) -> soupsieve.SoupSieve:
    if isinstance(selector, str):
        return compile_selector(selector)
    return selector


def select_all(document: Tag, selector: Selector) -> list:
    return _compiled(selector).select(document)


def select_first(document: Tag, selector: Selector) -> Optional[Tag]:
    return _compiled(selector).select_one(document)


def get_selector_match_count(document: Tag, selector: Selector) -> int:
    """
    Count how many elements match a CSS selector.
    Useful for debugging selectors against a live page.
    """
    return len(select_all(document, selector))
