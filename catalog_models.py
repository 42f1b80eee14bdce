"""
Catalog data models.

Defines the record scraped from each detail page and the bookkeeping
objects produced by a crawl run.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from errors import FetchError


class Record(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str = Field(min_length=1)
    external_id: str
    price: str  # display string, currency symbol kept
    available: int = Field(default=0, ge=0)
    reviews: int = Field(default=0, ge=0)
    rating: int = Field(ge=0, le=5)


class WalkState(str, Enum):
    """How pagination ended (or that it is still going)."""
    RUNNING = "running"
    EXHAUSTED = "exhausted"      # listing page answered with an exhaustion status
    INTERRUPTED = "interrupted"  # any other listing failure after page 1
    ABORTED = "aborted"          # the very first listing page failed
    LIMITED = "limited"          # max_listing_pages reached


@dataclass
class ListingPage:
    """One numbered listing page and the outcome of fetching it."""
    index: int
    url: str
    document: Optional[Any] = None  # parsed BeautifulSoup tree
    error: Optional[FetchError] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.document is not None


@dataclass
class CrawlResult:
    records: list[Record] = field(default_factory=list)
    listing_pages: int = 0
    detail_urls: list[str] = field(default_factory=list)
    walk_state: WalkState = WalkState.RUNNING
    listing_error: Optional[FetchError] = None
    failed_urls: list[str] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.records)

    @property
    def succeeded(self) -> bool:
        """True when pagination ended naturally or on a configured limit."""
        return self.walk_state in (WalkState.EXHAUSTED, WalkState.LIMITED)
