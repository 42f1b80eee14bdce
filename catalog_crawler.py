"""
Catalog Crawler - paginated listing walk followed by detail page scraping.

This module implements the crawl run, which:
1. Walks numbered listing pages until the catalog runs out
2. Extracts detail page links from every listing page
3. Fetches detail pages concurrently and extracts a record from each
4. Collects the records and reports a summary
"""

import asyncio
import logging
from collections import deque
from typing import AsyncIterator, List, Optional

from catalog_models import CrawlResult, ListingPage, Record, WalkState
from errors import ExtractionError, FetchError
from extractors.detail_page import extract_record
from extractors.document import get_selector_match_count, parse_document
from extractors.list_page import extract_detail_links
from extractors.urls import build_listing_url
from fetcher import Fetcher, PageFetcher
from persistence.record_store import JSONLRecordStore, RecordStore
from recipe_loader import CatalogRecipe

logger = logging.getLogger(__name__)


class RecordAggregator:
    """Collects scraped records and hands them to the output store."""

    def __init__(self, store: Optional[RecordStore] = None, dry_run: bool = False,
                 max_records: Optional[int] = None):
        self.store = store
        self.dry_run = dry_run
        self.max_records = max_records
        self.records: List[Record] = []

    @property
    def count(self) -> int:
        return len(self.records)

    @property
    def full(self) -> bool:
        return self.max_records is not None and self.count >= self.max_records

    def add(self, record: Record, source_url: str) -> bool:
        """Keep a record. Returns False if the record limit was already reached."""
        if self.full:
            return False

        self.records.append(record)
        logger.info(f"{record!r}")

        if self.dry_run:
            print(f"    Record: {source_url} ({record.title})")
        elif self.store is not None:
            self.store.add_record(record, source_url)
        return True


class CatalogCrawler:
    """
    Two-stage catalog crawler.

    Listing pages are fetched ahead in a window but consumed strictly in
    page order; detail pages are fetched in a second window in any order.
    """

    def __init__(self, recipe: CatalogRecipe, fetcher: Fetcher,
                 store: Optional[RecordStore] = None, dry_run: bool = False,
                 verbose_selectors: bool = False):
        """
        Initialize the catalog crawler.

        Args:
            recipe: Crawl configuration
            fetcher: Page fetcher (usually an open PageFetcher)
            store: Output store for records and the listing log
            dry_run: Print records without saving
            verbose_selectors: Log match counts for CSS selectors
        """
        self.recipe = recipe
        self.fetcher = fetcher
        self.store = store
        self.dry_run = dry_run
        self.verbose_selectors = verbose_selectors
        self._reset()

    def _reset(self) -> None:
        self.walk_state = WalkState.RUNNING
        self.listing_error: Optional[FetchError] = None
        self.failed_urls: List[str] = []
        self.aggregator = RecordAggregator(
            store=None if self.dry_run else self.store,
            dry_run=self.dry_run,
            max_records=self.recipe.limits.max_records
        )

        # Statistics
        self.stats = {
            'listing_pages': 0,
            'detail_links': 0,
            'detail_fetches': 0,
            'fetch_failures': 0,
            'extraction_failures': 0
        }

    def _log_listing_page(self, page: ListingPage, status: str, links_found: int = 0) -> None:
        if self.store is None or self.dry_run:
            return
        error = str(page.error) if page.error else None
        self.store.append_listing_page_log(page.index, page.url, status, links_found, error)

    # ------------------------------------------------------------------
    # Listing walk
    # ------------------------------------------------------------------

    async def _fetch_listing_page(self, index: int) -> ListingPage:
        url = build_listing_url(index, self.recipe.base_url)
        try:
            html = await self.fetcher.fetch(url)
        except FetchError as e:
            return ListingPage(index=index, url=url, error=e)
        return ListingPage(index=index, url=url, document=parse_document(html))

    def _end_walk(self, page: ListingPage) -> None:
        """Decide what a failed listing page means for the run."""
        error = page.error
        self.listing_error = error

        if page.index == 1:
            self.walk_state = WalkState.ABORTED
            logger.error(f"First listing page failed, catalog layout may have changed: {error}")
            status = 'error'
        elif error.status_code in self.recipe.exhaustion_statuses:
            self.walk_state = WalkState.EXHAUSTED
            logger.info(f"Catalog exhausted at listing page {page.index} ({error})")
            status = 'exhausted'
        else:
            self.walk_state = WalkState.INTERRUPTED
            logger.error(f"Listing page {page.index} failed, stopping pagination: {error}")
            status = 'error'

        self._log_listing_page(page, status)

    async def walk_listing_pages(self) -> AsyncIterator[ListingPage]:
        """
        Yield successfully fetched listing pages in page order.

        Up to `concurrency.listing` pages are in flight at once. The first
        failed page ends the walk; pages fetched ahead of it are discarded.
        """
        window = self.recipe.concurrency.listing
        max_pages = self.recipe.limits.max_listing_pages
        pending: deque = deque()
        next_index = 1

        try:
            while True:
                while len(pending) < window and (max_pages is None or next_index <= max_pages):
                    pending.append(asyncio.ensure_future(self._fetch_listing_page(next_index)))
                    next_index += 1

                if not pending:
                    self.walk_state = WalkState.LIMITED
                    logger.info(f"Reached max_listing_pages limit: {max_pages}")
                    return

                page = await pending.popleft()
                if not page.ok:
                    self._end_walk(page)
                    return

                self.stats['listing_pages'] += 1
                yield page
        finally:
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

    # ------------------------------------------------------------------
    # Detail pipeline
    # ------------------------------------------------------------------

    async def _scrape_detail(self, url: str, semaphore: asyncio.Semaphore) -> Optional[Record]:
        async with semaphore:
            if self.aggregator.full:
                return None

            self.stats['detail_fetches'] += 1
            try:
                html = await self.fetcher.fetch(url)
            except FetchError as e:
                logger.warning(f"Failed to fetch {url}: {e}")
                self.stats['fetch_failures'] += 1
                self.failed_urls.append(url)
                return None

        document = parse_document(html)
        try:
            record = extract_record(document, self.recipe.field_selectors)
        except ExtractionError as e:
            logger.warning(f"Failed to extract record from {url}: {e}")
            self.stats['extraction_failures'] += 1
            self.failed_urls.append(url)
            return None

        if not self.aggregator.add(record, url):
            return None
        return record

    async def scrape_details(self, urls: List[str]) -> List[Record]:
        """
        Fetch and extract every detail page, at most `concurrency.detail` at a time.

        Failures are logged and dropped; records come back in completion order.
        """
        semaphore = asyncio.Semaphore(self.recipe.concurrency.detail)
        await asyncio.gather(*(self._scrape_detail(url, semaphore) for url in urls))
        return self.aggregator.records

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    async def crawl(self) -> CrawlResult:
        """Run one full crawl from listing page 1."""
        self._reset()

        logger.info("Starting catalog crawl")
        logger.info(f"Base URL: {self.recipe.base_url}")
        logger.info(f"Item link selector: {self.recipe.item_link_css}")
        logger.info(f"Concurrency: listing={self.recipe.concurrency.listing}, "
                    f"detail={self.recipe.concurrency.detail}")

        if self.recipe.limits.max_listing_pages:
            logger.info(f"Max listing pages: {self.recipe.limits.max_listing_pages}")
        if self.recipe.limits.max_records:
            logger.info(f"Max records: {self.recipe.limits.max_records}")

        if self.dry_run:
            logger.info("DRY RUN MODE - No changes will be saved")

        detail_urls: List[str] = []
        async for page in self.walk_listing_pages():
            logger.info(f"Processing listing page {page.index}: {page.url}")

            if self.verbose_selectors:
                count = get_selector_match_count(page.document, self.recipe.item_link_selector)
                logger.info(f"  Selector '{self.recipe.item_link_css}' matched {count} elements")

            links = extract_detail_links(page.document, self.recipe.base_url,
                                         self.recipe.item_link_selector)
            logger.info(f"  Found {len(links)} detail links")

            self._log_listing_page(page, 'success', len(links))
            page.document = None
            detail_urls.extend(links)

        self.stats['detail_links'] = len(detail_urls)
        records = await self.scrape_details(detail_urls)

        result = CrawlResult(
            records=list(records),
            listing_pages=self.stats['listing_pages'],
            detail_urls=detail_urls,
            walk_state=self.walk_state,
            listing_error=self.listing_error,
            failed_urls=list(self.failed_urls)
        )
        self._log_summary(result)
        return result

    def _log_summary(self, result: CrawlResult) -> None:
        logger.info("=" * 60)
        logger.info("Catalog crawl complete!")
        logger.info(f"Listing pages walked: {result.listing_pages} ({result.walk_state.value})")
        logger.info(f"Detail links found: {self.stats['detail_links']}")
        logger.info(f"Detail fetches attempted: {self.stats['detail_fetches']}")
        logger.info(f"Fetch failures: {self.stats['fetch_failures']}")
        logger.info(f"Extraction failures: {self.stats['extraction_failures']}")
        logger.info(f"Number of records scraped: {result.count}")

        if self.store is not None and not self.dry_run:
            logger.info(f"Output files:")
            logger.info(f"  Records: {self.recipe.output.records_jsonl}")
            logger.info(f"  Pages: {self.recipe.output.pages_jsonl}")

        logger.info("=" * 60)


async def run_catalog_crawl(recipe: CatalogRecipe, dry_run: bool = False,
                            verbose_selectors: bool = False) -> CrawlResult:
    """
    Run a catalog crawl with a real HTTP session.

    Args:
        recipe: Crawl configuration
        dry_run: Print records without saving
        verbose_selectors: Log match counts for CSS selectors
    """
    store = None
    if not dry_run:
        store = JSONLRecordStore(recipe.output.records_jsonl, recipe.output.pages_jsonl)

    async with PageFetcher(
        timeout=recipe.request_timeout,
        max_clients=recipe.concurrency.listing + recipe.concurrency.detail
    ) as fetcher:
        crawler = CatalogCrawler(
            recipe=recipe,
            fetcher=fetcher,
            store=store,
            dry_run=dry_run,
            verbose_selectors=verbose_selectors
        )
        return await crawler.crawl()
