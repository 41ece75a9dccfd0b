"""Catalog store services.

- books.py: read side (filter translation, paging, single lookup)
- writer.py: full-collection replace and index setup
"""
from .books import build_filter, get_book, list_books, parse_book_query
from .writer import ensure_indexes, replace_all

__all__ = [
    # read
    'build_filter', 'get_book', 'list_books', 'parse_book_query',
    # write
    'ensure_indexes', 'replace_all',
]
