from datetime import datetime, timezone

from fastapi import APIRouter

router = APIRouter(tags=["core"])

API_VERSION = "1.0.0"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("/")
def read_index():
    return {
        "message": "Book Explorer API is running!",
        "status": "healthy",
        "timestamp": _now_iso(),
        "endpoints": {
            "Health Check": "/api/health",
            "Get Books": "/api/books",
            "Get Single Book": "/api/books/:id",
            "Refresh Data": "POST /api/refresh",
            "Run Scraper": "GET /run-scraper",
        },
        "version": API_VERSION,
    }


@router.get("/api/health")
def health():
    return {"status": "OK", "timestamp": _now_iso()}
