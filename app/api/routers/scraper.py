import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pymongo.collection import Collection

from app.db.mongo_connector import get_books_collection
from app.services.crawl.pipeline import run_refresh
from app.services.errors import CatalogError, RefreshInProgress

logger = logging.getLogger(__name__)

router = APIRouter(tags=["scraper"])


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _scraper_failed(exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=500, content={"error": "Scraper failed", "details": str(exc)})


def _refresh_failed(exc: Exception) -> JSONResponse:
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": "Failed to trigger data refresh", "message": str(exc)},
    )


@router.get("/run-scraper")
async def api_run_scraper(collection: Collection = Depends(get_books_collection)):
    """Run the crawl-and-replace pipeline and wait for it to finish."""
    try:
        result = await run_refresh(collection)
    except RefreshInProgress:
        raise
    except CatalogError as exc:
        logger.error("Scraper failed: %s", exc)
        return _scraper_failed(exc)
    except Exception as exc:
        logger.exception("Scraper failed unexpectedly")
        return _scraper_failed(exc)
    return {
        "message": "Scraper executed successfully!",
        "booksSaved": len(result.items),
        "pagesCrawled": result.pages_crawled,
    }


@router.post("/api/refresh")
async def api_refresh(collection: Collection = Depends(get_books_collection)):
    logger.info("Refresh endpoint triggered, starting scraper")
    try:
        result = await run_refresh(collection)
    except RefreshInProgress:
        raise
    except CatalogError as exc:
        logger.error("Error triggering scraper: %s", exc)
        return _refresh_failed(exc)
    except Exception as exc:
        logger.exception("Unexpected error triggering scraper")
        return _refresh_failed(exc)
    return {
        "success": True,
        "message": "Data refresh completed successfully",
        "timestamp": _now_iso(),
        "status": "Scraper finished",
        "booksSaved": len(result.items),
        "pagesCrawled": result.pages_crawled,
        "state": result.state.value,
    }
