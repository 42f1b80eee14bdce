"""
Extractors for the catalog crawler.

This package contains pure, unit-testable functions for building catalog
URLs, finding detail links on listing pages and turning detail pages into
records.
"""

from .urls import (
    build_base_url,
    build_listing_url,
    build_detail_url,
    normalize_base_url
)
from .document import (
    parse_document,
    compile_selector,
    get_selector_match_count
)
from .list_page import extract_detail_links
from .detail_page import (
    extract_record,
    compile_record_selectors,
    parse_int,
    RATINGS
)

__all__ = [
    'build_base_url',
    'build_listing_url',
    'build_detail_url',
    'normalize_base_url',
    'parse_document',
    'compile_selector',
    'get_selector_match_count',
    'extract_detail_links',
    'extract_record',
    'compile_record_selectors',
    'parse_int',
    'RATINGS'
]
