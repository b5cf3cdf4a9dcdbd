"""Parse and normalize store API responses."""
import logging
import math
import re
from typing import Dict, Any, List, Optional

from storefront.models import Book, CartLine

logger = logging.getLogger(__name__)

DEFAULT_PRICE = 0.0
DEFAULT_RATING = 4.0
DEFAULT_QUANTITY = 1

# Longest numeric prefix, the way parseFloat reads a string
_NUMERIC_PREFIX = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def normalize_number(value: Any, default: float) -> float:
    """
    Coerce a price, rating or quantity field into a finite number.

    Args:
        value: Number, numeric string, None or anything else
        default: Value returned when nothing numeric can be read

    Returns:
        The parsed number, or ``default``
    """
    if value is None or isinstance(value, bool):
        return default

    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            # JSON integers have no size limit
            return default
    elif isinstance(value, str):
        match = _NUMERIC_PREFIX.match(value.strip())
        if not match:
            return default
        try:
            number = float(match.group(0))
        except ValueError:
            return default
    else:
        return default

    if math.isnan(number) or math.isinf(number):
        return default
    return number


def _normalize_year(value: Any) -> Optional[int]:
    year = normalize_number(value, None)
    return int(year) if year is not None else None


def _normalize_quantity(value: Any) -> int:
    quantity = int(normalize_number(value, DEFAULT_QUANTITY))
    return quantity if quantity >= 1 else DEFAULT_QUANTITY


def parse_book(item: Dict[str, Any]) -> Optional[Book]:
    """
    Parse a single book record from the catalog service.

    Args:
        item: Raw book JSON object

    Returns:
        Book object or None if the record has no id
    """
    if not isinstance(item, dict):
        logger.warning(f"Skipping non-object book record: {item!r}")
        return None

    book_id = item.get("id")
    if book_id is None or book_id == "":
        logger.warning(f"Skipping book without id: {item.get('title')!r}")
        return None

    return Book(
        id=book_id,
        title=item.get("title") or "Unknown Title",
        author=item.get("author") or "Unknown",
        genre=item.get("genre") or None,
        price=max(normalize_number(item.get("price"), DEFAULT_PRICE), 0.0),
        rating=normalize_number(item.get("rating"), DEFAULT_RATING),
        published_year=_normalize_year(item.get("published_year")),
        image_url=item.get("image_url") or None
    )


def parse_books_response(response_json: Any) -> List[Book]:
    """
    Parse a book listing (catalog, search or filter reply).

    Args:
        response_json: Decoded JSON, expected to be an array

    Returns:
        List of Book objects (empty if nothing usable was found)
    """
    if not isinstance(response_json, list):
        logger.warning(f"Expected a list of books, got {type(response_json).__name__}")
        return []

    books = []
    for item in response_json:
        book = parse_book(item)
        if book:
            books.append(book)

    return books


def parse_cart_line(item: Dict[str, Any]) -> Optional[CartLine]:
    """Parse one cart entry; entries without a cart id are dropped."""
    if not isinstance(item, dict):
        logger.warning(f"Skipping non-object cart record: {item!r}")
        return None

    line_id = item.get("id")
    if line_id is None or line_id == "":
        logger.warning(f"Skipping cart line without id: {item.get('title')!r}")
        return None

    return CartLine(
        id=line_id,
        book_id=item.get("book_id", item.get("bookId")),
        title=item.get("title") or "Unknown Title",
        author=item.get("author") or "Unknown",
        genre=item.get("genre") or None,
        price=max(normalize_number(item.get("price"), DEFAULT_PRICE), 0.0),
        rating=normalize_number(item.get("rating"), DEFAULT_RATING),
        quantity=_normalize_quantity(item.get("quantity")),
        image_url=item.get("image_url") or None
    )


def parse_cart_response(response_json: Any) -> List[CartLine]:
    """Parse the cart listing for a user."""
    if not isinstance(response_json, list):
        logger.warning(f"Expected a list of cart lines, got {type(response_json).__name__}")
        return []

    lines = []
    for item in response_json:
        line = parse_cart_line(item)
        if line:
            lines.append(line)

    return lines


def deduplicate_books(books: List[Book]) -> List[Book]:
    """
    Remove duplicate books by ID.

    Args:
        books: List of Book objects

    Returns:
        Deduplicated list of books
    """
    seen_ids = set()
    unique_books = []

    for book in books:
        if book.id not in seen_ids:
            seen_ids.add(book.id)
            unique_books.append(book)

    return unique_books
