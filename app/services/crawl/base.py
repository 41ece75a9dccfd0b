from __future__ import annotations

import enum
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Protocol


IN_STOCK = "In stock"
OUT_OF_STOCK = "Out of stock"


@dataclass
class BookRecord:
    """One listing extracted from a catalog page."""
    title: str
    price: float
    stock: str
    rating: int
    detailUrl: str
    imageUrl: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class CrawlState(str, enum.Enum):
    FETCHING = "fetching"
    EXTRACTED = "extracted"
    PAGINATING = "paginating"
    DONE = "done"
    FAILED = "failed"


@dataclass
class CrawlResult:
    items: List[BookRecord] = field(default_factory=list)
    pages_crawled: int = 0
    state: CrawlState = CrawlState.FETCHING
    stopped_reason: Optional[str] = None

    @property
    def truncated(self) -> bool:
        return self.state is CrawlState.FAILED


class PageSession(Protocol):
    """What the crawl loop needs from a browser tab or HTTP session."""

    async def goto(self, url: str, *, timeout_ms: int) -> None: ...

    async def content(self) -> str: ...


class Spider:
    """Minimal spider contract.

    Subclasses implement crawl() over an already-open page session and
    return a CrawlResult.
    """

    name: str = "base"

    async def crawl(self, page: PageSession) -> CrawlResult:
        raise NotImplementedError

    @staticmethod
    def normalize_records(items: Iterable[Any]) -> List[Dict[str, Any]]:
        out: List[Dict[str, Any]] = []
        for x in items:
            if hasattr(x, "to_dict"):
                out.append(x.to_dict())
            elif isinstance(x, dict):
                out.append(x)
            else:
                raise TypeError(f"Unsupported record type: {type(x)}")
        return out
