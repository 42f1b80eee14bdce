"""
Detail link extraction for catalog listing pages.

These functions are unit-testable and don't perform I/O.
"""

import logging
from typing import List

import crawler_config
from errors import UrlBuildError
from extractors.document import Selector, select_all
from extractors.urls import build_detail_url

logger = logging.getLogger(__name__)


def extract_detail_links(document, base_url: str = crawler_config.BASE_URL,
                         item_link_css: Selector = crawler_config.ITEM_LINK_CSS) -> List[str]:
    """
    Extract detail page URLs from a parsed listing page.

    Anchors without an href, or whose href can't be resolved, are skipped;
    a bad link never fails the whole page.

    Args:
        document: Parsed listing page
        base_url: Catalog base URL
        item_link_css: Selector for the anchors that lead to detail pages

    Returns:
        Absolute detail URLs in page order
    """
    urls = []

    for link in select_all(document, item_link_css):
        href = link.get('href')
        if href is None:
            logger.debug("Skipping item anchor without href")
            continue

        href = href.strip()
        if not href or href.startswith('#') or href.startswith('javascript:'):
            continue

        try:
            urls.append(build_detail_url(href, base_url))
        except UrlBuildError as e:
            logger.warning(f"  Skipping link: {e}")

    return urls
