import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.db.mongo_connector import close_client, get_books_collection, load_env_from_file
from app.services.catalog import ensure_indexes
from app.services.errors import CatalogError
from app.services.scheduler import init_scheduler, scheduler_enabled, shutdown_scheduler

# Routers
from app.api.routers.core import router as core_router
from app.api.routers.books import router as books_router
from app.api.routers.scraper import router as scraper_router

logger = logging.getLogger(__name__)

load_env_from_file()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start the daily refresh and make sure the Mongo client is closed on shutdown."""
    try:
        ensure_indexes(get_books_collection())
    except CatalogError as exc:
        logger.warning("Could not ensure indexes on startup: %s", exc)
    if scheduler_enabled():
        init_scheduler()
    try:
        yield
    finally:
        shutdown_scheduler()
        close_client()


app = FastAPI(title="Book Explorer API", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in (os.getenv("CORS_ORIGINS") or "http://localhost:3000").split(",") if o.strip()],
    allow_origin_regex=os.getenv("CORS_ORIGIN_REGEX") or None,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_credentials=True,
)


@app.exception_handler(CatalogError)
async def catalog_error_handler(request: Request, exc: CatalogError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc)})


app.include_router(core_router)
app.include_router(books_router)
app.include_router(scraper_router)
