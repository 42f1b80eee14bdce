"""
Output storage for scraped catalog records.

Append-only JSONL logs: one line per record, one line per listing page.
Designed with an abstract interface so other sinks can be swapped in.
"""

from typing import Protocol, Optional
from pathlib import Path
import json
from datetime import datetime, timezone

from catalog_models import Record


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z')


class RecordStore(Protocol):
    """
    Abstract interface for record output.

    This allows us to swap implementations without changing the
    CatalogCrawler code.
    """

    def add_record(self, record: Record, source_url: str) -> None:
        """Persist one scraped record."""
        ...

    def append_listing_page_log(self, index: int, url: str, status: str,
                                links_found: int, error: Optional[str] = None) -> None:
        """Append an entry to the listing pages log."""
        ...


class JSONLRecordStore:
    """
    JSONL-based implementation of RecordStore.

    Each crawl run starts from empty files; nothing is carried over
    between runs.
    """

    def __init__(self, records_jsonl: str, pages_jsonl: str):
        """
        Args:
            records_jsonl: Path of the records log
            pages_jsonl: Path of the listing pages log
        """
        self.records_file = Path(records_jsonl)
        self.pages_file = Path(pages_jsonl)

        for path in (self.records_file, self.pages_file):
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text('', encoding='utf-8')

    def add_record(self, record: Record, source_url: str) -> None:
        """
        Append a record to the records log.

        Args:
            record: Scraped record
            source_url: Detail page it was scraped from
        """
        entry = record.model_dump()
        entry['url'] = source_url
        entry['timestamp'] = _timestamp()

        with open(self.records_file, 'a', encoding='utf-8') as f:
            f.write(json.dumps(entry, ensure_ascii=False) + '\n')

    def append_listing_page_log(self, index: int, url: str, status: str,
                                links_found: int, error: Optional[str] = None) -> None:
        """
        Append an entry to the listing pages log.

        Args:
            index: Listing page number
            url: Listing page URL
            status: 'success', 'exhausted' or 'error'
            links_found: Number of detail links found on the page
            error: Failure message, if any
        """
        entry = {
            'index': index,
            'url': url,
            'status': status,
            'links_found': links_found,
            'timestamp': _timestamp()
        }
        if error:
            entry['error'] = error

        with open(self.pages_file, 'a', encoding='utf-8') as f:
            f.write(json.dumps(entry) + '\n')
