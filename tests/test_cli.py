"""Tests for the cart subcommands of the CLI."""
import argparse
import asyncio

import storefront_cli
from storefront.config import Config
from storefront.parse import parse_books_response
from storefront.session import SessionStore


class FakeStoreClient:
    """Catalog and cart endpoints, usable as ``async with``."""

    def __init__(self):
        self.calls = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return None

    async def get_books(self):
        return parse_books_response([
            {"id": 1, "title": "Dune", "author": "Frank Herbert", "price": 9.99},
            {"id": 2, "title": "The Hobbit", "author": "J.R.R. Tolkien", "price": 12},
        ])

    async def get_cart(self, user_id):
        return []

    async def add_to_cart(self, user_id, book_id):
        self.calls.append(("add_to_cart", user_id, book_id))
        return {"success": True}


def run_add(monkeypatch, book_id):
    client = FakeStoreClient()
    monkeypatch.setattr(storefront_cli, "make_async_client", lambda config: client)
    store = SessionStore()
    store.write({"id": 7, "username": "alice"})
    args = argparse.Namespace(command="add", book_id=book_id, yes=True, resync=False)

    ok = asyncio.run(storefront_cli.run_cart_command(args, Config(), store))
    return ok, client


def test_add_reports_book_title(monkeypatch, capsys):
    ok, client = run_add(monkeypatch, "2")

    out = capsys.readouterr().out
    assert ok
    assert 'Added "The Hobbit" to cart!' in out
    assert client.calls == [("add_to_cart", 7, 2)]


def test_add_unknown_book_is_not_sent(monkeypatch, capsys):
    ok, client = run_add(monkeypatch, "99")

    assert not ok
    assert "Book 99 not found" in capsys.readouterr().out
    assert client.calls == []
