"""Ordering of catalog result sets."""
from typing import Callable, Dict, Iterable, List, Tuple, Any

from storefront.models import Book

SORT_KEYS = ("title", "author", "price-low", "price-high", "rating", "year")
DEFAULT_SORT_KEY = "title"


def _text_key(value: str) -> Tuple[str, str]:
    # case-insensitive first, raw text breaks ties so the order is total
    text = value or ""
    return (text.casefold(), text)


def _year_key(book: Book) -> float:
    return book.published_year if book.published_year is not None else float("-inf")


# key function, descending
_ORDERINGS: Dict[str, Tuple[Callable[[Book], Any], bool]] = {
    "title": (lambda book: _text_key(book.title), False),
    "author": (lambda book: _text_key(book.author), False),
    "price-low": (lambda book: book.price, False),
    "price-high": (lambda book: book.price, True),
    "rating": (lambda book: book.rating, True),
    "year": (_year_key, True),
}


def sort_books(books: Iterable[Book], sort_key: str) -> List[Book]:
    """
    Return a new list of books ordered by ``sort_key``.

    The sort is stable, so books that compare equal keep their incoming
    order and sorting an already sorted list changes nothing. An unknown
    key returns the books in their incoming order.

    Args:
        books: Result set to order (not modified)
        sort_key: One of ``SORT_KEYS``

    Returns:
        Ordered list of books
    """
    ordering = _ORDERINGS.get(sort_key)
    if ordering is None:
        return list(books)

    key, descending = ordering
    return sorted(books, key=key, reverse=descending)
