import math
import re
from typing import Any, Dict, Mapping, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pydantic import ValidationError
from pymongo import ASCENDING
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from app.models.book import BookQuery
from app.services.errors import BookNotFound, PersistenceError, QueryValidationError


def parse_book_query(params: Mapping[str, Any]) -> BookQuery:
    """Validate raw query-string values into a BookQuery.

    Missing or empty values take their defaults; anything else that is not
    a valid number (or stock keyword) is rejected rather than ignored.
    """
    cleaned = {k: v for k, v in params.items() if v is not None and v != ""}
    try:
        return BookQuery(**cleaned)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        raise QueryValidationError(f"Invalid query parameters: {problems}") from exc


def build_filter(query: BookQuery) -> Dict[str, Any]:
    """Translate a BookQuery into a MongoDB filter document."""
    flt: Dict[str, Any] = {
        "rating": {"$gte": query.minRating, "$lte": query.maxRating},
        "price": {"$gte": query.minPrice, "$lte": query.maxPrice},
    }
    if query.search:
        # literal substring, not a user-supplied regex
        flt["title"] = {"$regex": re.escape(query.search), "$options": "i"}
    stock = query.stock_value()
    if stock:
        flt["stock"] = stock
    return flt


def list_books(collection: Collection, params: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
    """Return one page of books matching the filters, sorted by title.

    Shape: {books, currentPage, totalPages, totalBooks}.
    """
    query = params if isinstance(params, BookQuery) else parse_book_query(params or {})
    flt = build_filter(query)
    skip = (query.page - 1) * query.limit
    try:
        cursor = collection.find(flt).sort("title", ASCENDING).skip(skip).limit(query.limit)
        books = [_serialize(doc) for doc in cursor]
        total = collection.count_documents(flt)
    except PyMongoError as exc:
        raise PersistenceError(f"Failed to query books: {exc}") from exc
    return {
        "books": books,
        "currentPage": query.page,
        "totalPages": math.ceil(total / query.limit),
        "totalBooks": total,
    }


def get_book(collection: Collection, book_id: str) -> Dict[str, Any]:
    """Fetch a single book by its ObjectId hex string. Malformed ids count as not found."""
    try:
        oid = ObjectId(book_id)
    except (InvalidId, TypeError):
        raise BookNotFound()
    try:
        doc = collection.find_one({"_id": oid})
    except PyMongoError as exc:
        raise PersistenceError(f"Failed to load book {book_id}: {exc}") from exc
    if not doc:
        raise BookNotFound()
    return _serialize(doc)


def _serialize(doc: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(doc)
    out["_id"] = str(out["_id"])
    return out
