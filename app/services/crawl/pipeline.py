from __future__ import annotations

import asyncio
import json
import logging
import os
from datetime import datetime
from typing import Callable, Dict, Iterable, Optional

from pymongo.collection import Collection

from app.services.catalog import replace_all
from app.services.errors import RefreshInProgress

from .base import CrawlResult
from .sessions import open_page_session
from .spiders.books_spider import BooksToScrapeSpider

logger = logging.getLogger(__name__)

_refresh_lock = asyncio.Lock()


def build_spider_from_env() -> BooksToScrapeSpider:
    max_pages = os.getenv("CRAWL_MAX_PAGES")
    return BooksToScrapeSpider(
        base_url=os.getenv("CATALOG_BASE_URL") or "https://books.toscrape.com/",
        page_template=os.getenv("CATALOG_PAGE_TEMPLATE") or "catalogue/page-{page}.html",
        nav_timeout_ms=int(os.getenv("CRAWL_NAV_TIMEOUT_MS") or 60_000),
        max_pages=int(max_pages) if max_pages else None,
    )


async def run_crawl(
    *,
    spider: Optional[BooksToScrapeSpider] = None,
    session_kind: Optional[str] = None,
    session_factory: Optional[Callable] = None,
) -> CrawlResult:
    """Open a page session, crawl the whole catalog, release the session.

    Raises BrowserLaunchError when the session cannot be opened; page-level
    failures only truncate the result.
    """
    spider = spider or build_spider_from_env()
    kind = session_kind or os.getenv("CRAWL_SESSION") or "playwright"
    factory = session_factory or open_page_session
    logger.info("Starting %s crawl of %s (session=%s)", spider.name, spider.base_url, kind)
    async with factory(kind) as page:
        return await spider.crawl(page)


async def run_refresh(
    collection: Collection,
    *,
    crawl: Optional[Callable] = None,
    save: bool = True,
) -> CrawlResult:
    """Crawl, then replace the stored catalog with the result.

    Only one refresh runs at a time; a second caller gets RefreshInProgress.
    """
    if _refresh_lock.locked():
        raise RefreshInProgress()
    async with _refresh_lock:
        result = await (crawl or run_crawl)()
        if result.truncated:
            logger.warning("Crawl stopped early (%s); saving %d books", result.stopped_reason, len(result.items))
        if save:
            logger.info("Saving %d books to database", len(result.items))
            await asyncio.to_thread(replace_all, collection, result.items)
        return result


def refresh_in_progress() -> bool:
    return _refresh_lock.locked()


def ensure_dir(path: str) -> None:
    os.makedirs(path, exist_ok=True)


def write_jsonl(records: Iterable[Dict], out_dir: str, filename_prefix: str) -> str:
    """Write crawl records to a timestamped JSONL snapshot. Returns the file path."""
    ensure_dir(out_dir)
    dt = datetime.utcnow().strftime("%Y%m%dT%H%M%SZ")
    path = os.path.join(out_dir, f"{filename_prefix}-{dt}.jsonl")
    with open(path, "a", encoding="utf-8") as f:
        for rec in records:
            f.write(json.dumps(rec, ensure_ascii=False) + "\n")
    return path
