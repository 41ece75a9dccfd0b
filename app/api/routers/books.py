from typing import Optional

from fastapi import APIRouter, Depends, Query
from pymongo.collection import Collection

from app.db.mongo_connector import get_books_collection
from app.models.book import Book, BookPage
from app.services.catalog import get_book, list_books

router = APIRouter(tags=["books"])


# Numeric params arrive as raw strings so malformed values reach the
# service's validation and come back as a 400 {error} body.
@router.get("/api/books", response_model=BookPage)
def api_list_books(
    page: Optional[str] = Query(None, description="1-based page number (default 1)"),
    limit: Optional[str] = Query(None, description="Page size 1..100 (default 20)"),
    search: Optional[str] = Query(None, description="Case-insensitive title substring"),
    minRating: Optional[str] = Query(None, description="Minimum rating 0..5"),
    maxRating: Optional[str] = Query(None, description="Maximum rating 0..5"),
    minPrice: Optional[str] = Query(None, description="Minimum price"),
    maxPrice: Optional[str] = Query(None, description="Maximum price"),
    stock: Optional[str] = Query(None, description="all | in-stock | out-of-stock"),
    collection: Collection = Depends(get_books_collection),
):
    params = {
        "page": page,
        "limit": limit,
        "search": search,
        "minRating": minRating,
        "maxRating": maxRating,
        "minPrice": minPrice,
        "maxPrice": maxPrice,
        "stock": stock,
    }
    return list_books(collection, params)


@router.get("/api/books/{book_id}", response_model=Book)
def api_get_book(book_id: str, collection: Collection = Depends(get_books_collection)):
    return get_book(collection, book_id)
