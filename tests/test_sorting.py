"""Tests for result set ordering."""
from storefront.parse import parse_books_response
from storefront.sorting import SORT_KEYS, sort_books


BOOKS = parse_books_response([
    {"id": 1, "title": "dune", "author": "Herbert", "price": "9.99", "rating": 4.5, "published_year": 1965},
    {"id": 2, "title": "Anathem", "author": "Stephenson", "price": 15, "rating": "4.1", "published_year": "2008"},
    {"id": 3, "title": "Bone Clocks", "author": "mitchell", "price": "abc", "rating": None, "published_year": None},
    {"id": 4, "title": "Circe", "author": "Miller", "price": 12.5, "rating": 4.5, "published_year": "unknown"},
])


def ids(books):
    return [book.id for book in books]


def test_title_orders_a_before_b():
    books = parse_books_response([
        {"id": 1, "title": "B", "author": "x"},
        {"id": 2, "title": "A", "author": "x"},
    ])
    assert [b.title for b in sort_books(books, "title")] == ["A", "B"]


def test_title_is_case_insensitive():
    assert ids(sort_books(BOOKS, "title")) == [2, 3, 4, 1]


def test_author_ascending():
    assert ids(sort_books(BOOKS, "author")) == [1, 4, 3, 2]


def test_price_low_and_high():
    # unparseable price counts as 0
    assert ids(sort_books(BOOKS, "price-low")) == [3, 1, 4, 2]
    assert ids(sort_books(BOOKS, "price-high")) == [2, 4, 1, 3]


def test_rating_descending_keeps_ties_in_order():
    assert ids(sort_books(BOOKS, "rating")) == [1, 4, 2, 3]


def test_year_descending_missing_years_last():
    ordered = ids(sort_books(BOOKS, "year"))
    assert ordered[:2] == [2, 1]
    assert set(ordered[2:]) == {3, 4}


def test_sorting_twice_changes_nothing():
    for key in SORT_KEYS:
        once = sort_books(BOOKS, key)
        assert ids(sort_books(once, key)) == ids(once), key


def test_unknown_key_is_identity():
    assert ids(sort_books(BOOKS, "popularity")) == [1, 2, 3, 4]


def test_input_not_mutated():
    books = list(BOOKS)
    sort_books(books, "price-high")
    assert ids(books) == [1, 2, 3, 4]
