"""
Tests for the catalog crawl run.

Uses an in-memory fetcher so no network access is needed.
"""

import asyncio
import unittest
from collections import Counter

from catalog_crawler import CatalogCrawler, RecordAggregator
from catalog_models import Record, WalkState
from errors import FetchError
from recipe_loader import CatalogRecipe, ConcurrencyConfig, LimitsConfig

BASE = "http://catalog.test/"

DETAIL_TEMPLATE = """
<html><body>
<div class="col-sm-6 product_main">
  <h1>{title}</h1>
  {price}
  <p class="instock availability">In stock ({stock} available)</p>
  <p class="star-rating Four"></p>
</div>
<table class="table table-striped">
  <tr><th>UPC</th><td>{upc}</td></tr>
  <tr><th>Number of reviews</th><td>{reviews}</td></tr>
</table>
</body></html>
"""


def listing_html(slugs):
    items = "".join(
        f'<article class="product_pod"><h3><a href="../../../{slug}/index.html" title="{slug}">{slug}</a></h3></article>'
        for slug in slugs
    )
    return f"<html><body><ol>{items}</ol></body></html>"


def detail_html(slug, with_price=True):
    return DETAIL_TEMPLATE.format(
        title=slug.replace('-', ' ').title(),
        price='<p class="price_color">£10.00</p>' if with_price else '',
        stock=len(slug),
        upc=f"upc-{slug}",
        reviews=3
    )


def listing_url(n):
    return f"{BASE}catalogue/page-{n}.html"


def detail_url(slug):
    return f"{BASE}catalogue/{slug}/index.html"


class FakeFetcher:
    """Serves pages from a dict; unknown URLs answer 404."""

    def __init__(self, pages, failures=None, delays=None):
        self.pages = pages
        self.failures = failures or {}
        self.delays = delays or {}
        self.calls = []
        self.in_flight = Counter()
        self.max_in_flight = Counter()

    @staticmethod
    def _stage(url):
        return 'listing' if '/page-' in url else 'detail'

    async def fetch(self, url):
        stage = self._stage(url)
        self.calls.append(url)
        self.in_flight[stage] += 1
        self.max_in_flight[stage] = max(self.max_in_flight[stage], self.in_flight[stage])
        try:
            await asyncio.sleep(self.delays.get(url, 0.001))
            if url in self.failures:
                status = self.failures[url]
                raise FetchError(url, f"Received non success status code: {status}", status_code=status)
            if url not in self.pages:
                raise FetchError(url, "Received non success status code: 404", status_code=404)
            return self.pages[url]
        finally:
            self.in_flight[stage] -= 1

    def detail_calls(self):
        return [url for url in self.calls if self._stage(url) == 'detail']


class FakeStore:
    def __init__(self):
        self.records = []
        self.pages = []

    def add_record(self, record, source_url):
        self.records.append((record, source_url))

    def append_listing_page_log(self, index, url, status, links_found, error=None):
        self.pages.append((index, status, links_found))


def build_catalog(num_pages=4, per_page=2, missing_price=()):
    """Listing pages 1..num_pages with per_page items each; page num_pages+1 is a 404."""
    pages = {}
    slugs_by_page = {}
    for n in range(1, num_pages + 1):
        slugs = [f"book-{n}-{i}_{n * 10 + i}" for i in range(per_page)]
        slugs_by_page[n] = slugs
        pages[listing_url(n)] = listing_html(slugs)
        for slug in slugs:
            pages[detail_url(slug)] = detail_html(slug, with_price=slug not in missing_price)
    return pages, slugs_by_page


def make_recipe(listing=3, detail=4, **limits):
    return CatalogRecipe(
        base_url=BASE,
        concurrency=ConcurrencyConfig(listing=listing, detail=detail),
        limits=LimitsConfig(**limits)
    )


class TestCatalogCrawl(unittest.IsolatedAsyncioTestCase):
    """End-to-end crawl against a fake catalog."""

    async def test_stops_at_exhaustion(self):
        pages, slugs = build_catalog(missing_price={"book-3-1_31"})
        fetcher = FakeFetcher(pages)
        crawler = CatalogCrawler(make_recipe(), fetcher)

        result = await crawler.crawl()

        self.assertEqual(result.walk_state, WalkState.EXHAUSTED)
        self.assertTrue(result.succeeded)
        self.assertEqual(result.listing_pages, 4)
        self.assertEqual(len(result.detail_urls), 8)
        self.assertEqual(len(fetcher.detail_calls()), 8)
        self.assertEqual(result.count, 7)
        self.assertEqual(result.failed_urls, [detail_url("book-3-1_31")])
        self.assertEqual(result.listing_error.status_code, 404)

    async def test_detail_urls_keep_page_order(self):
        pages, slugs = build_catalog()
        crawler = CatalogCrawler(make_recipe(), FakeFetcher(pages))

        result = await crawler.crawl()

        expected = [detail_url(slug) for n in range(1, 5) for slug in slugs[n]]
        self.assertEqual(result.detail_urls, expected)

    async def test_record_fields(self):
        pages, _ = build_catalog(num_pages=1, per_page=1)
        crawler = CatalogCrawler(make_recipe(), FakeFetcher(pages))

        result = await crawler.crawl()

        self.assertEqual(result.records, [Record(
            title="Book 1 0_10",
            external_id="upc-book-1-0_10",
            price="£10.00",
            available=len("book-1-0_10"),
            reviews=3,
            rating=4
        )])

    async def test_later_page_discarded_after_earlier_failure(self):
        """A page fetched ahead must not count once an earlier page has failed."""
        pages, slugs = build_catalog(num_pages=3)
        fetcher = FakeFetcher(
            pages,
            failures={listing_url(2): 503},
            delays={listing_url(2): 0.05, listing_url(3): 0.001}
        )
        crawler = CatalogCrawler(make_recipe(listing=3), fetcher)

        result = await crawler.crawl()

        self.assertEqual(result.walk_state, WalkState.INTERRUPTED)
        self.assertFalse(result.succeeded)
        self.assertEqual(result.listing_pages, 1)
        self.assertEqual(result.detail_urls, [detail_url(slug) for slug in slugs[1]])
        self.assertEqual(result.listing_error.status_code, 503)
        self.assertEqual(result.count, 2)

    async def test_first_page_failure_aborts(self):
        fetcher = FakeFetcher({})
        crawler = CatalogCrawler(make_recipe(), fetcher)

        result = await crawler.crawl()

        self.assertEqual(result.walk_state, WalkState.ABORTED)
        self.assertEqual(result.count, 0)
        self.assertEqual(result.detail_urls, [])
        self.assertEqual(fetcher.detail_calls(), [])

    async def test_detail_fetch_failure_is_dropped(self):
        pages, slugs = build_catalog(num_pages=2)
        bad = detail_url(slugs[2][0])
        fetcher = FakeFetcher(pages, failures={bad: 500})
        crawler = CatalogCrawler(make_recipe(), fetcher)

        result = await crawler.crawl()

        self.assertEqual(result.count, 3)
        self.assertEqual(result.failed_urls, [bad])
        self.assertEqual(crawler.stats['fetch_failures'], 1)

    async def test_oversized_stock_count_does_not_stop_crawl(self):
        pages, slugs = build_catalog(num_pages=2)
        huge = detail_url(slugs[1][0])
        pages[huge] = DETAIL_TEMPLATE.format(
            title="Huge Stock",
            price='<p class="price_color">£10.00</p>',
            stock="9" * 5000,
            upc="upc-huge",
            reviews=3
        )
        crawler = CatalogCrawler(make_recipe(), FakeFetcher(pages))

        result = await crawler.crawl()

        self.assertEqual(result.count, 4)
        self.assertEqual(result.failed_urls, [])
        by_id = {record.external_id: record for record in result.records}
        self.assertEqual(by_id["upc-huge"].available, 0)

    async def test_empty_id_cell_still_yields_record(self):
        pages, slugs = build_catalog(num_pages=1, per_page=1)
        pages[detail_url(slugs[1][0])] = detail_html(slugs[1][0]).replace(
            f"<td>upc-{slugs[1][0]}</td>", "<td></td>"
        )
        crawler = CatalogCrawler(make_recipe(), FakeFetcher(pages))

        result = await crawler.crawl()

        self.assertEqual(result.count, 1)
        self.assertEqual(result.records[0].external_id, "")

    async def test_concurrency_windows(self):
        pages, _ = build_catalog(num_pages=6, per_page=5)
        fetcher = FakeFetcher(pages)
        crawler = CatalogCrawler(make_recipe(listing=2, detail=3), fetcher)

        result = await crawler.crawl()

        self.assertEqual(result.count, 30)
        self.assertLessEqual(fetcher.max_in_flight['listing'], 2)
        self.assertLessEqual(fetcher.max_in_flight['detail'], 3)
        self.assertEqual(fetcher.max_in_flight['detail'], 3)

    async def test_listing_page_limit(self):
        pages, _ = build_catalog()
        crawler = CatalogCrawler(make_recipe(max_listing_pages=2), FakeFetcher(pages))

        result = await crawler.crawl()

        self.assertEqual(result.walk_state, WalkState.LIMITED)
        self.assertTrue(result.succeeded)
        self.assertEqual(result.listing_pages, 2)
        self.assertEqual(result.count, 4)

    async def test_record_limit(self):
        pages, _ = build_catalog()
        crawler = CatalogCrawler(make_recipe(detail=1, max_records=3), FakeFetcher(pages))

        result = await crawler.crawl()

        self.assertEqual(result.count, 3)

    async def test_rerun_is_idempotent(self):
        pages, _ = build_catalog(missing_price={"book-1-0_10"})
        crawler = CatalogCrawler(make_recipe(), FakeFetcher(pages))

        first = await crawler.crawl()
        second = await crawler.crawl()

        key = lambda r: r.external_id
        self.assertEqual(first.count, second.count)
        self.assertEqual(sorted(first.records, key=key), sorted(second.records, key=key))

    async def test_store_receives_records_and_page_log(self):
        pages, _ = build_catalog()
        store = FakeStore()
        crawler = CatalogCrawler(make_recipe(), FakeFetcher(pages), store=store)

        await crawler.crawl()

        self.assertEqual(len(store.records), 8)
        self.assertEqual(store.pages, [
            (1, 'success', 2), (2, 'success', 2), (3, 'success', 2), (4, 'success', 2),
            (5, 'exhausted', 0)
        ])

    async def test_dry_run_skips_store(self):
        pages, _ = build_catalog(num_pages=1)
        store = FakeStore()
        crawler = CatalogCrawler(make_recipe(), FakeFetcher(pages), store=store, dry_run=True)

        result = await crawler.crawl()

        self.assertEqual(result.count, 2)
        self.assertEqual(store.records, [])
        self.assertEqual(store.pages, [])


class TestRecordAggregator(unittest.TestCase):
    """Test record collection."""

    def _record(self, n):
        return Record(title=f"T{n}", external_id=str(n), price="£1", rating=1)

    def test_collects_and_counts(self):
        store = FakeStore()
        aggregator = RecordAggregator(store=store)

        aggregator.add(self._record(1), "u1")
        aggregator.add(self._record(2), "u2")

        self.assertEqual(aggregator.count, 2)
        self.assertEqual([url for _, url in store.records], ["u1", "u2"])

    def test_limit(self):
        aggregator = RecordAggregator(max_records=1)

        self.assertTrue(aggregator.add(self._record(1), "u1"))
        self.assertFalse(aggregator.add(self._record(2), "u2"))
        self.assertEqual(aggregator.count, 1)


if __name__ == '__main__':
    unittest.main()
