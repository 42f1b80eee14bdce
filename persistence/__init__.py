"""
Persistence layer for crawl output.

This package provides JSONL output for scraped records and the
listing page log.
"""

from .record_store import JSONLRecordStore, RecordStore

__all__ = ['JSONLRecordStore', 'RecordStore']
