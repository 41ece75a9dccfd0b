"""Page sessions the catalog spider can drive.

Both sessions expose the same two coroutines, ``goto(url, timeout_ms=...)``
and ``content()``. They are acquired through ``open_page_session`` which
always releases the browser or HTTP client on exit.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Optional

import httpx
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page, async_playwright

from app.services.errors import BrowserLaunchError, NavigationFailure

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {"User-Agent": "BookExplorer-Crawler/1.0"}
CHROMIUM_ARGS = ["--no-sandbox", "--disable-setuid-sandbox", "--disable-dev-shm-usage"]


class PlaywrightPageSession:
    """Headless Chromium tab. Navigation waits for network idleness."""

    def __init__(self, page: Page) -> None:
        self._page = page
        self._url = ""

    async def goto(self, url: str, *, timeout_ms: int) -> None:
        self._url = url
        try:
            response = await self._page.goto(url, wait_until="networkidle", timeout=timeout_ms)
        except PlaywrightError as exc:
            raise NavigationFailure(url, str(exc)) from exc
        if response is not None and response.status >= 400:
            raise NavigationFailure(url, f"HTTP {response.status}")

    async def content(self) -> str:
        try:
            return await self._page.content()
        except PlaywrightError as exc:
            raise NavigationFailure(self._url, str(exc)) from exc


class HttpPageSession:
    """Plain HTTP session for catalogs that render server-side."""

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client
        self._html = ""

    async def goto(self, url: str, *, timeout_ms: int) -> None:
        try:
            resp = await self._client.get(url, timeout=timeout_ms / 1000.0)
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            raise NavigationFailure(url, str(exc)) from exc
        self._html = resp.text

    async def content(self) -> str:
        return self._html


@asynccontextmanager
async def open_playwright_session(*, headless: bool = True) -> AsyncIterator[PlaywrightPageSession]:
    async with async_playwright() as pw:
        try:
            browser = await pw.chromium.launch(headless=headless, args=CHROMIUM_ARGS)
        except PlaywrightError as exc:
            raise BrowserLaunchError(f"Could not launch Chromium: {exc}") from exc
        try:
            try:
                page = await browser.new_page()
            except PlaywrightError as exc:
                raise BrowserLaunchError(f"Could not open a browser tab: {exc}") from exc
            logger.info("Browser session started")
            yield PlaywrightPageSession(page)
        finally:
            await browser.close()
            logger.info("Browser session closed")


@asynccontextmanager
async def open_http_session(*, headers: Optional[Dict[str, str]] = None) -> AsyncIterator[HttpPageSession]:
    async with httpx.AsyncClient(headers=headers or DEFAULT_HEADERS, follow_redirects=True) as client:
        yield HttpPageSession(client)


def open_page_session(kind: str = "playwright"):
    """Return an async context manager for the requested session kind."""
    kind = (kind or "playwright").strip().lower()
    if kind == "playwright":
        return open_playwright_session()
    if kind == "http":
        return open_http_session()
    raise BrowserLaunchError(f"Unknown crawl session kind: {kind!r}")
