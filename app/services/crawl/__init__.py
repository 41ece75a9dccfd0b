"""Catalog crawling subsystem.

Structure:
- base.py: record and crawl-result types, spider contract
- sessions.py: Playwright / httpx page sessions
- spiders/: catalog implementations
- pipeline.py: crawl-and-replace refresh, JSONL snapshots
- runner.py: tiny CLI entrypoint for manual runs
"""

__all__ = [
    "base",
    "pipeline",
]
