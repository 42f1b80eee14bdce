"""
Configuration settings for the catalog crawler.

Every value here can be overridden by a recipe file or on the command line.
"""

import os

# Catalog root - listing and detail URLs are built relative to this
# Set CATALOG_BASE_URL to point the crawler at a mirror or local mock server
BASE_URL = os.environ.get("CATALOG_BASE_URL", "https://books.toscrape.com/")

# Listing pages live at <BASE_URL><CATALOGUE_PATH>page-<n>.html
CATALOGUE_PATH = "catalogue/"

# Maximum number of listing page fetches in flight at once
# Results are still consumed strictly in page order
LISTING_CONCURRENCY = 10

# Maximum number of detail page fetches in flight at once
DETAIL_CONCURRENCY = 10

# Per-request deadline in seconds
REQUEST_TIMEOUT = 30

# Browser fingerprint used by curl_cffi
IMPERSONATE = "chrome120"

# Listing page status codes that mean "no more pages"
# Any other listing failure stops pagination but is reported as an error
EXHAUSTION_STATUSES = [404]

# Anchors on a listing page that point at detail pages
ITEM_LINK_CSS = "article.product_pod a[title]"

# Selectors for each record field on a detail page
RECORD_SELECTORS = {
    "title": "div[class$='product_main'] h1",
    "external_id": "table tr:first-of-type td",
    "price": "div[class$='product_main'] p[class^='price']",
    "available": "div[class$='product_main'] p[class^='instock']",
    "reviews": "table tr:last-of-type td",
    "rating": "div[class$='product_main'] p[class^='star-rating']",
}

# Output files (ignored in dry-run mode)
RECORDS_JSONL = "output/records.jsonl"
PAGES_JSONL = "output/listing_pages.jsonl"
