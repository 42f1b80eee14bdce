"""
Async page fetching over curl_cffi.

Uses browser impersonation like the rest of the crawler so that catalog
sites see an ordinary Chrome request.
"""

import logging
from typing import Optional, Protocol

from curl_cffi.requests import AsyncSession
from curl_cffi.requests import exceptions as requests_exceptions

import crawler_config
from errors import FetchError

logger = logging.getLogger(__name__)


class Fetcher(Protocol):
    """Anything that can turn a URL into page text or raise FetchError."""

    async def fetch(self, url: str) -> str:
        ...


class PageFetcher:
    """
    Shared async HTTP session for one crawl run.

    Use as an async context manager:

        async with PageFetcher() as fetcher:
            html = await fetcher.fetch(url)
    """

    def __init__(self, timeout: float = crawler_config.REQUEST_TIMEOUT,
                 impersonate: str = crawler_config.IMPERSONATE,
                 max_clients: int = crawler_config.LISTING_CONCURRENCY + crawler_config.DETAIL_CONCURRENCY):
        """
        Args:
            timeout: Per-request deadline in seconds
            impersonate: curl_cffi browser profile
            max_clients: Connection pool size; should cover both concurrency windows
        """
        self.timeout = timeout
        self.impersonate = impersonate
        self.max_clients = max_clients
        self._session: Optional[AsyncSession] = None

    async def __aenter__(self) -> 'PageFetcher':
        self._session = AsyncSession(
            impersonate=self.impersonate,
            timeout=self.timeout,
            max_clients=self.max_clients,
        )
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._session is not None:
            await self._session.close()
            self._session = None

    async def fetch(self, url: str) -> str:
        """
        GET a page and return its body.

        Raises:
            FetchError: On a non-2xx status or any transport failure
        """
        if self._session is None:
            raise RuntimeError("PageFetcher used outside of 'async with'")

        logger.info(f"Making GET request to: {url}")
        try:
            response = await self._session.get(url)
        except requests_exceptions.RequestException as e:
            raise FetchError(url, f"Request to {url} failed: {e}") from e

        if not 200 <= response.status_code < 300:
            raise FetchError(
                url,
                f"Received non success status code: {response.status_code}",
                status_code=response.status_code
            )
        return response.text
