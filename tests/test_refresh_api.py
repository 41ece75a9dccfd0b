import asyncio
from contextlib import asynccontextmanager
from pathlib import Path

import mongomock
import pytest
from fastapi.testclient import TestClient

from app.db.mongo_connector import get_books_collection
from app.main import app
from app.services.catalog import list_books
from app.services.crawl import pipeline
from app.services.errors import BrowserLaunchError, NavigationFailure, RefreshInProgress


def read_fixture(name: str) -> str:
    p = Path(__file__).parent / "fixtures" / name
    return p.read_text(encoding="utf-8")


class _FakePage:
    def __init__(self, pages):
        self.pages = pages
        self._current = ""

    async def goto(self, url, *, timeout_ms):
        if url not in self.pages:
            raise NavigationFailure(url, "net::ERR_NAME_NOT_RESOLVED")
        self._current = self.pages[url]

    async def content(self):
        return self._current


def _fake_session_factory(pages):
    @asynccontextmanager
    async def factory(kind):
        yield _FakePage(pages)

    return factory


MOCK_CATALOG = {
    "https://books.toscrape.com/": read_fixture("books_page1.html"),
    "https://books.toscrape.com/catalogue/page-2.html": read_fixture("books_page2.html"),
}


@pytest.fixture()
def collection(monkeypatch):
    monkeypatch.delenv("CATALOG_BASE_URL", raising=False)
    monkeypatch.delenv("CRAWL_MAX_PAGES", raising=False)
    coll = mongomock.MongoClient().book_explorer.books
    app.dependency_overrides[get_books_collection] = lambda: coll
    yield coll
    app.dependency_overrides.pop(get_books_collection, None)


@pytest.fixture()
def client(collection):
    return TestClient(app)


def test_refresh_end_to_end_two_page_catalog(client, collection, monkeypatch):
    monkeypatch.setattr(pipeline, "open_page_session", _fake_session_factory(MOCK_CATALOG))
    collection.insert_one({"title": "stale"})

    resp = client.post("/api/refresh")
    assert resp.status_code == 200, resp.text
    data = resp.json()
    assert data["success"] is True
    assert data["booksSaved"] == 5
    assert data["pagesCrawled"] == 2

    page = list_books(collection, {"limit": 10})
    assert page["totalBooks"] == 5
    assert page["totalPages"] == 1
    assert "stale" not in [b["title"] for b in page["books"]]


def test_run_scraper_reports_success_even_when_crawl_truncated(client, collection, monkeypatch):
    only_first = {"https://books.toscrape.com/": MOCK_CATALOG["https://books.toscrape.com/"]}
    monkeypatch.setattr(pipeline, "open_page_session", _fake_session_factory(only_first))

    resp = client.get("/run-scraper")
    assert resp.status_code == 200, resp.text
    assert resp.json()["booksSaved"] == 3
    assert collection.count_documents({}) == 3


def test_browser_launch_failure_is_500(client, collection, monkeypatch):
    def _no_browser(kind):
        raise BrowserLaunchError("Could not launch Chromium: executable missing")

    monkeypatch.setattr(pipeline, "open_page_session", _no_browser)
    collection.insert_one({"title": "kept"})

    resp = client.post("/api/refresh")
    assert resp.status_code == 500
    data = resp.json()
    assert data["success"] is False
    assert data["error"] == "Failed to trigger data refresh"

    resp = client.get("/run-scraper")
    assert resp.status_code == 500
    assert resp.json()["error"] == "Scraper failed"
    # the store is untouched when the crawl never starts
    assert collection.count_documents({}) == 1


def test_unexpected_error_still_returns_json_failure_body(client, collection, monkeypatch):
    monkeypatch.setenv("CRAWL_NAV_TIMEOUT_MS", "60s")
    collection.insert_one({"title": "kept"})

    resp = client.post("/api/refresh")
    assert resp.status_code == 500
    assert resp.headers["content-type"].startswith("application/json")
    data = resp.json()
    assert data["success"] is False
    assert data["error"] == "Failed to trigger data refresh"
    assert "60s" in data["message"]

    resp = client.get("/run-scraper")
    assert resp.status_code == 500
    assert resp.json()["error"] == "Scraper failed"
    assert "60s" in resp.json()["details"]
    assert collection.count_documents({}) == 1
    assert not pipeline.refresh_in_progress()


class _HeldLock:
    def locked(self):
        return True


def test_concurrent_refresh_is_rejected(client, monkeypatch):
    monkeypatch.setattr(pipeline, "_refresh_lock", _HeldLock())
    resp = client.post("/api/refresh")
    assert resp.status_code == 409
    assert "already running" in resp.json()["error"]
    assert client.get("/run-scraper").status_code == 409


def test_second_refresh_while_first_runs_raises(collection):
    async def scenario():
        started = asyncio.Event()
        release = asyncio.Event()

        async def slow_crawl():
            started.set()
            await release.wait()
            return pipeline.CrawlResult()

        first = asyncio.create_task(pipeline.run_refresh(collection, crawl=slow_crawl, save=False))
        await started.wait()
        assert pipeline.refresh_in_progress()
        with pytest.raises(RefreshInProgress):
            await pipeline.run_refresh(collection, crawl=slow_crawl, save=False)
        release.set()
        await first
        assert not pipeline.refresh_in_progress()

    asyncio.run(scenario())
