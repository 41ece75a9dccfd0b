from __future__ import annotations

import logging
import re
from typing import List, Optional
from urllib.parse import urljoin

from selectolax.parser import HTMLParser, Node

from app.services.errors import NavigationFailure

from ..base import IN_STOCK, OUT_OF_STOCK, BookRecord, CrawlResult, CrawlState, PageSession, Spider

logger = logging.getLogger(__name__)

RATING_WORDS = {"One": 1, "Two": 2, "Three": 3, "Four": 4, "Five": 5}
_NUMBER_RE = re.compile(r"^\d+(\.\d+)?$")


class BooksToScrapeSpider(Spider):
    """Paginated listing spider for books.toscrape.com-style catalogs.

    Page 1 is the site root, page N>1 is ``base_url + page_template``.
    Pagination continues while the rendered page carries a next-page
    control; the total page count is never known up front.

    Selectors (CSS):
      - item_sel: one node per listed book
      - next_sel: the next-page control
    """

    name = "books_to_scrape"

    def __init__(
        self,
        *,
        base_url: str = "https://books.toscrape.com/",
        page_template: str = "catalogue/page-{page}.html",
        nav_timeout_ms: int = 60_000,
        max_pages: Optional[int] = None,
        item_sel: str = "article.product_pod",
        next_sel: str = ".next",
    ) -> None:
        self.base_url = base_url if base_url.endswith("/") else base_url + "/"
        self.page_template = page_template
        self.nav_timeout_ms = int(nav_timeout_ms)
        self.max_pages = max_pages
        self.item_sel = item_sel
        self.next_sel = next_sel

    # --- Public API ---
    def page_url(self, page_number: int) -> str:
        if page_number <= 1:
            return self.base_url
        return urljoin(self.base_url, self.page_template.format(page=page_number))

    async def crawl(self, page: PageSession) -> CrawlResult:
        """Walk the catalog one page at a time until there is no next page.

        A page that fails to load ends the crawl; whatever was collected
        before it is returned with state FAILED.
        """
        result = CrawlResult()
        current_page = 1
        has_next_page = True

        while has_next_page:
            url = self.page_url(current_page)
            result.state = CrawlState.FETCHING
            logger.info("Scraping page %d: %s", current_page, url)
            try:
                await page.goto(url, timeout_ms=self.nav_timeout_ms)
                html = await page.content()
            except NavigationFailure as exc:
                logger.error("Failed to load page %d: %s", current_page, exc.reason)
                result.state = CrawlState.FAILED
                result.stopped_reason = str(exc)
                break

            books = self.parse_html(html, page_url=url)
            result.items.extend(books)
            result.pages_crawled += 1
            result.state = CrawlState.EXTRACTED
            logger.info("Found %d books on page %d", len(books), current_page)

            result.state = CrawlState.PAGINATING
            has_next_page = self.has_next_page(html)
            logger.debug("Has next page: %s", has_next_page)
            if has_next_page and self.max_pages and result.pages_crawled >= self.max_pages:
                result.stopped_reason = f"max_pages={self.max_pages} reached"
                break
            current_page += 1

        if result.state is not CrawlState.FAILED:
            result.state = CrawlState.DONE
        logger.info(
            "Crawl %s after %d pages with %d books",
            result.state.value, result.pages_crawled, len(result.items),
        )
        return result

    def parse_html(self, html: str, *, page_url: str) -> List[BookRecord]:
        doc = HTMLParser(html)
        return [self.parse_item(node, page_url=page_url) for node in doc.css(self.item_sel)]

    def has_next_page(self, html: str) -> bool:
        return HTMLParser(html).css_first(self.next_sel) is not None

    def parse_item(self, node: Node, *, page_url: str) -> BookRecord:
        link = node.css_first("h3 a")
        title = ""
        href = ""
        if link is not None:
            title = (link.attributes.get("title") or link.text(strip=True) or "").strip()
            href = link.attributes.get("href") or ""

        price_node = node.css_first(".price_color")
        availability = node.css_first(".instock.availability") or node.css_first(".availability")
        rating_node = node.css_first("p.star-rating") or node.css_first("[class*='star-rating']")
        img = node.css_first("img")

        return BookRecord(
            title=title,
            price=self.parse_price(price_node.text(strip=True) if price_node else None),
            stock=self.classify_stock(availability.text(strip=True) if availability else None),
            rating=self.parse_rating(rating_node.attributes.get("class") if rating_node else None),
            detailUrl=urljoin(page_url, href),
            imageUrl=urljoin(page_url, (img.attributes.get("src") or "") if img else ""),
        )

    # --- Field rules ---
    @staticmethod
    def parse_price(text: Optional[str]) -> float:
        """'£51.77' -> 51.77. Missing or unparsable text -> 0.0."""
        t = (text or "").strip()
        if t and not (t[0].isdigit() or t[0] == "."):
            t = t[1:].strip()
        if not _NUMBER_RE.match(t):
            if text:
                logger.debug("Unparsable price %r, defaulting to 0", text)
            return 0.0
        return round(float(t), 2)

    @staticmethod
    def classify_stock(text: Optional[str]) -> str:
        return IN_STOCK if IN_STOCK in (text or "") else OUT_OF_STOCK

    @staticmethod
    def parse_rating(class_attr: Optional[str]) -> int:
        """'star-rating Three' -> 3. Missing or unknown word -> 0."""
        for token in (class_attr or "").split():
            if token in RATING_WORDS:
                return RATING_WORDS[token]
        return 0
