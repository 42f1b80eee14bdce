"""
URL building for the catalog.

Pure functions: every URL the crawler requests is derived from the
configured base URL plus a page index or a relative path.
"""

import logging
from urllib.parse import urljoin, urlparse

import crawler_config
from errors import UrlBuildError

logger = logging.getLogger(__name__)


def normalize_base_url(base_url: str) -> str:
    """
    Validate a catalog base URL and make sure it ends with a slash.

    Args:
        base_url: Absolute http(s) URL of the catalog root

    Returns:
        The base URL with a trailing slash

    Raises:
        UrlBuildError: If the URL is not an absolute http(s) URL
    """
    try:
        parsed = urlparse(base_url)
    except ValueError as e:
        raise UrlBuildError(base_url, str(e)) from e

    if parsed.scheme not in ('http', 'https') or not parsed.netloc:
        raise UrlBuildError(base_url, "base URL must be an absolute http(s) URL")

    if not base_url.endswith('/'):
        base_url += '/'
    return base_url


def _checked_join(base: str, path: str) -> str:
    try:
        url = urljoin(base, path)
        parsed = urlparse(url)
    except ValueError as e:
        raise UrlBuildError(path, str(e)) from e

    if parsed.scheme not in ('http', 'https') or not parsed.netloc:
        raise UrlBuildError(path, f"resolved to an invalid URL: {url}")
    return url


def build_base_url(path: str, base_url: str = crawler_config.BASE_URL) -> str:
    """
    Join a relative path onto the catalog base URL.

    A leading slash stays under the base path instead of jumping to the
    host root, so "/multiple/paths" and "multiple/paths" give the same URL.
    """
    logger.debug(f"Building url with path: {path}")
    return _checked_join(normalize_base_url(base_url), path.lstrip('/'))


def build_listing_url(page_index: int, base_url: str = crawler_config.BASE_URL) -> str:
    """
    Build the URL of a numbered listing page (base/catalogue/page-<n>.html).

    Args:
        page_index: 1-based page number

    Returns:
        Absolute listing page URL
    """
    if page_index < 1:
        raise ValueError(f"Listing page index must be positive, got {page_index}")
    return build_base_url(f"{crawler_config.CATALOGUE_PATH}page-{page_index}.html", base_url)


def build_detail_url(href: str, base_url: str = crawler_config.BASE_URL) -> str:
    """
    Resolve a detail page href found on a listing page.

    Listing pages link with any number of leading "../" segments; those are
    dropped and the remainder is joined onto base/catalogue/.

    Raises:
        UrlBuildError: If the result is not a valid URL
    """
    logger.debug(f"Building detail page url with path: {href}")
    while href.startswith('../'):
        href = href[3:]
    catalogue_url = build_base_url(crawler_config.CATALOGUE_PATH, base_url)
    return _checked_join(catalogue_url, href)
