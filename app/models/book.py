from typing import List, Literal, Optional

from pydantic import BaseModel, Field

StockFilter = Literal["all", "in-stock", "out-of-stock"]

# (page - 1) * limit is sent to MongoDB as skip and must fit in an int64
MAX_PAGE = 10**15

STOCK_FILTER_VALUES = {
    "in-stock": "In stock",
    "out-of-stock": "Out of stock",
}


class Book(BaseModel):
    """A persisted catalog listing as served by the API."""
    id: str = Field(..., alias="_id", description="MongoDB ObjectId as hex string")
    title: str = ""
    price: float = Field(0.0, ge=0)
    stock: Literal["In stock", "Out of stock"] = "Out of stock"
    rating: int = Field(0, ge=0, le=5, description="0 when the rating marker was missing")
    detailUrl: str
    imageUrl: str

    model_config = {"populate_by_name": True}


class BookPage(BaseModel):
    books: List[Book]
    currentPage: int
    totalPages: int
    totalBooks: int


class BookQuery(BaseModel):
    """Filter and pagination parameters accepted by GET /api/books."""
    page: int = Field(1, ge=1, le=MAX_PAGE)
    limit: int = Field(20, ge=1, le=100)
    search: str = ""
    minRating: int = Field(0, ge=0, le=5)
    maxRating: int = Field(5, ge=0, le=5)
    minPrice: float = Field(0, ge=0)
    maxPrice: float = Field(1000, ge=0)
    stock: StockFilter = "all"

    def stock_value(self) -> Optional[str]:
        return STOCK_FILTER_VALUES.get(self.stock)

