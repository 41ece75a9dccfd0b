"""Error types shared by the crawl, store and query layers.

Each error carries the HTTP status the API answers with; the app-level
exception handler renders them as ``{"error": message}``.
"""


class CatalogError(Exception):
    status_code = 500


class CrawlError(CatalogError):
    """The crawl run could not proceed at all."""


class BrowserLaunchError(CrawlError):
    """The page session (browser or HTTP client) could not be established."""


class NavigationFailure(CatalogError):
    """A single catalog page failed to load. Truncates the crawl, never surfaced."""

    def __init__(self, url: str, reason: str):
        super().__init__(f"Failed to load {url}: {reason}")
        self.url = url
        self.reason = reason


class PersistenceError(CatalogError):
    """The document store rejected a write or read."""


class BookNotFound(CatalogError):
    status_code = 404

    def __init__(self, message: str = "Book not found"):
        super().__init__(message)


class QueryValidationError(CatalogError):
    status_code = 400


class RefreshInProgress(CatalogError):
    status_code = 409

    def __init__(self, message: str = "A catalog refresh is already running"):
        super().__init__(message)
