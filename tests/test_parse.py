"""Tests for parsing and normalization functions."""
import math

from storefront.parse import (
    normalize_number,
    parse_book,
    parse_books_response,
    parse_cart_line,
    parse_cart_response,
    deduplicate_books,
)


def test_normalize_number_numeric_string():
    """Numeric strings parse to their value."""
    assert normalize_number("12.5", 0) == 12.5
    assert normalize_number("  7 ", 0) == 7.0


def test_normalize_number_non_numeric_string():
    """Non-numeric strings fall back to the default."""
    assert normalize_number("abc", 4.0) == 4.0
    assert normalize_number("", 0) == 0


def test_normalize_number_leading_numeric_prefix():
    """Like parseFloat, a numeric prefix is enough."""
    assert normalize_number("19.99 USD", 0) == 19.99


def test_normalize_number_absent_values():
    """None and unsupported types use the default."""
    assert normalize_number(None, 1) == 1
    assert normalize_number([], 1) == 1
    assert normalize_number({"price": 3}, 0) == 0
    assert normalize_number(True, 0) == 0


def test_normalize_number_always_finite():
    """Every kind of input yields a finite number."""
    inputs = [3, 2.5, "8", "x", None, float("nan"), float("inf"), "NaN", "1e999", 10 ** 400, -(10 ** 400)]
    for value in inputs:
        result = normalize_number(value, 0)
        assert math.isfinite(result), value


def test_parse_book_complete():
    """Test parsing a book with all fields present."""
    item = {
        "id": 12,
        "title": "Dune",
        "author": "Frank Herbert",
        "genre": "Science Fiction",
        "price": "9.99",
        "rating": "4.6",
        "published_year": "1965",
        "image_url": "http://example.com/dune.jpg"
    }

    book = parse_book(item)

    assert book is not None
    assert book.id == 12
    assert book.price == 9.99
    assert book.rating == 4.6
    assert book.published_year == 1965
    assert book.cover_url == "http://example.com/dune.jpg"


def test_parse_book_missing_fields():
    """Test parsing a book with missing optional fields."""
    book = parse_book({"id": "b7", "title": "Mystery Book", "author": "Anon"})

    assert book is not None
    assert book.price == 0.0
    assert book.rating == 4.0
    assert book.published_year is None
    assert book.genre is None
    assert book.genre_label == "Unknown"
    assert book.cover_url == "https://picsum.photos/300/400?random=b7"


def test_parse_book_negative_price_clamped():
    book = parse_book({"id": 1, "title": "T", "author": "A", "price": -3})
    assert book.price == 0.0


def test_parse_book_no_id():
    """Test that book without ID returns None."""
    assert parse_book({"title": "No ID Book"}) is None


def test_parse_books_response():
    """Test parsing a complete listing."""
    response = [
        {"id": 1, "title": "Book 1", "author": "A"},
        {"title": "Dropped"},
        {"id": 2, "title": "Book 2", "author": "B"},
    ]

    books = parse_books_response(response)

    assert len(books) == 2
    assert books[0].title == "Book 1"
    assert books[1].title == "Book 2"


def test_parse_books_response_not_a_list():
    assert parse_books_response({"error": "oops"}) == []


def test_parse_cart_line_defaults():
    """Quantity defaults to 1 and price strings are coerced."""
    line = parse_cart_line({"id": 5, "book_id": 12, "title": "Dune", "author": "Frank Herbert", "price": "9.50"})

    assert line.id == 5
    assert line.book_id == 12
    assert line.price == 9.5
    assert line.quantity == 1
    assert line.genre_label == "Fiction"
    assert line.cover_url == "https://picsum.photos/120/160"


def test_parse_cart_response():
    lines = parse_cart_response([
        {"id": 1, "title": "A", "price": 10, "quantity": "2"},
        {"id": 2, "title": "B", "price": "bad"},
    ])

    assert [line.id for line in lines] == [1, 2]
    assert lines[0].quantity == 2
    assert lines[1].price == 0.0


def test_deduplicate_books():
    """Test deduplication by book ID."""
    books = parse_books_response([
        {"id": 1, "title": "Book A", "author": "X"},
        {"id": 2, "title": "Book B", "author": "Y"},
        {"id": 1, "title": "Book A Duplicate", "author": "X"},
    ])

    unique = deduplicate_books(books)

    assert len(unique) == 2
    assert unique[0].title == "Book A"
    assert unique[1].id == 2


def test_huge_json_integer_price_uses_default():
    """Integers too large for a float fall back instead of raising."""
    books = parse_books_response([{"id": 1, "title": "T", "author": "A", "price": int("1" + "0" * 400)}])

    assert books[0].price == 0.0


def test_parse_cart_line_non_positive_quantity():
    """Zero or negative quantities count as one copy."""
    lines = parse_cart_response([
        {"id": 1, "title": "A", "price": 10, "quantity": "-2"},
        {"id": 2, "title": "B", "price": 10, "quantity": 0},
    ])

    assert [line.quantity for line in lines] == [1, 1]
    assert all(line.line_total == 10 for line in lines)
