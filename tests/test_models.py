import pytest
from pydantic import ValidationError

from app.models.book import Book, BookQuery


def test_book_model_reads_mongo_id():
    b = Book(**{
        "_id": "64b7f0c2a1b2c3d4e5f60718",
        "title": "Sapiens",
        "price": 54.23,
        "stock": "In stock",
        "rating": 5,
        "detailUrl": "https://books.toscrape.com/catalogue/sapiens_996/index.html",
        "imageUrl": "https://books.toscrape.com/media/sapiens.jpg",
    })
    assert b.id == "64b7f0c2a1b2c3d4e5f60718"
    assert b.model_dump(by_alias=True)["_id"] == b.id


def test_book_model_rejects_unknown_stock():
    with pytest.raises(ValidationError):
        Book(**{"_id": "x", "stock": "Preorder", "detailUrl": "u", "imageUrl": "i"})


def test_book_query_stock_mapping():
    assert BookQuery(stock="in-stock").stock_value() == "In stock"
    assert BookQuery(stock="out-of-stock").stock_value() == "Out of stock"
    assert BookQuery().stock_value() is None
