from __future__ import annotations

import argparse
import asyncio
import logging
import os
from typing import Optional

from app.db.mongo_connector import close_client, get_books_collection, load_env_from_file
from app.services.catalog import ensure_indexes
from app.services.errors import CatalogError

from .pipeline import build_spider_from_env, run_crawl, run_refresh, write_jsonl


def _positive_int(value: str) -> int:
    n = int(value)
    if n < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {n}")
    return n


def _configure_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, (os.getenv("LOG_LEVEL") or "INFO").upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(message)s",
    )


async def crawl_once(*, save: bool, session_kind: Optional[str], max_pages: Optional[int], jsonl_out: Optional[str]):
    spider = build_spider_from_env()
    if max_pages is not None:
        spider.max_pages = max_pages

    async def _crawl():
        return await run_crawl(spider=spider, session_kind=session_kind)

    if save:
        collection = get_books_collection()
        try:
            ensure_indexes(collection)
            result = await run_refresh(collection, crawl=_crawl)
        finally:
            close_client()
    else:
        result = await _crawl()

    path = None
    if jsonl_out:
        path = write_jsonl(spider.normalize_records(result.items), out_dir=jsonl_out, filename_prefix="books")
    return result, path


def main(argv: Optional[list] = None) -> int:
    load_env_from_file()
    _configure_logging()
    parser = argparse.ArgumentParser(description="Run catalog crawler tasks")
    sub = parser.add_subparsers(dest="cmd", required=True)

    crawl = sub.add_parser("crawl", help="Crawl the catalog and replace the stored books")
    crawl.add_argument("--no-save", action="store_true", help="Crawl only; leave MongoDB untouched")
    crawl.add_argument("--session", choices=["playwright", "http"], default=None, help="Page session kind")
    crawl.add_argument("--max-pages", type=_positive_int, default=None, help="Stop after this many pages")
    crawl.add_argument("--jsonl-out", default=None, help="Also write a JSONL snapshot into this directory")

    args = parser.parse_args(argv)

    if args.cmd == "crawl":
        try:
            result, path = asyncio.run(
                crawl_once(
                    save=not args.no_save,
                    session_kind=args.session,
                    max_pages=args.max_pages,
                    jsonl_out=args.jsonl_out,
                )
            )
        except CatalogError as exc:
            logging.getLogger(__name__).error("Crawl failed: %s", exc)
            return 1
        print(f"{len(result.items)} books from {result.pages_crawled} pages ({result.state.value})")
        if path:
            print(path)
        return 0

    parser.error("unknown command")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
