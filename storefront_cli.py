#!/usr/bin/env python3
"""Storefront CLI - browse the book catalog and manage your cart."""
import argparse
import asyncio
import sys
import json
from tabulate import tabulate
from storefront.async_client import AsyncStoreClient
from storefront.cart import CartSessionEngine
from storefront.catalog import ALL_GENRES, CatalogQueryEngine
from storefront.client import StoreClient
from storefront.config import Config
from storefront.errors import NotAuthenticated, RemoteFailure
from storefront.session import SessionGate, SessionStore, login, logout, register
from storefront.sorting import SORT_KEYS
import logging

logger = logging.getLogger(__name__)


def make_async_client(config: Config) -> AsyncStoreClient:
    return AsyncStoreClient(
        base_url=config.API_URL,
        timeout=config.DEFAULT_TIMEOUT,
        max_concurrent=config.DEFAULT_MAX_CONCURRENT
    )


def make_confirm(assume_yes: bool):
    """Build the yes/no prompt used before destructive cart actions."""
    def confirm(prompt: str) -> bool:
        if assume_yes:
            print(f"{prompt} [y/N] y")
            return True
        answer = input(f"{prompt} [y/N] ")
        return answer.strip().lower() in ("y", "yes")
    return confirm


def report(result) -> bool:
    """Print an action outcome and return whether it succeeded."""
    print(f"{'✅' if result.ok else '❌'} {result.message}")
    return result.ok


def display_books(books, format_type: str):
    """Display books in specified format."""
    if not books:
        print("\n📚 No books found")
        return

    if format_type == "table":
        headers = ["ID", "Title", "Author", "Genre", "Price", "Rating", "Year"]
        rows = [
            [
                book.id,
                book.title[:50] + "..." if len(book.title) > 50 else book.title,
                book.author[:30] + "..." if len(book.author) > 30 else book.author,
                book.genre_label,
                book.price_str,
                f"{book.rating:.1f}",
                book.published_year or "N/A"
            ]
            for book in books
        ]
        print("\n" + tabulate(rows, headers=headers, tablefmt="grid"))

    elif format_type == "json":
        books_dict = [
            {
                "id": book.id,
                "title": book.title,
                "author": book.author,
                "genre": book.genre,
                "price": book.price,
                "rating": book.rating,
                "published_year": book.published_year,
                "image_url": book.cover_url
            }
            for book in books
        ]
        print(json.dumps(books_dict, indent=2))

    elif format_type == "compact":
        for i, book in enumerate(books, 1):
            print(f"{i}. {book.title} - {book.author} ({book.price_str})")


def display_cart(engine: CartSessionEngine):
    """Show cart lines and the order summary."""
    lines = engine.lines
    count = len(lines)
    print(f"\nYour Cart ({count} {'item' if count == 1 else 'items'})")

    if not lines:
        if engine.gate.current() is None:
            print("Please login to view your cart")
        else:
            print("Your shopping cart is empty")
        return

    rows = [
        [line.id, line.title, line.author, line.genre_label, f"${line.price:.2f}", line.quantity]
        for line in lines
    ]
    print(tabulate(rows, headers=["Cart ID", "Title", "Author", "Genre", "Price", "Qty"], tablefmt="grid"))

    summary = engine.summary.as_dict()
    print("\nOrder Summary")
    print(tabulate(
        [
            [f"Subtotal ({engine.summary.item_count} items)", f"${summary['subtotal']}"],
            ["Shipping", summary["shipping_text"]],
            ["Tax (10%)", f"${summary['tax']}"],
            ["Total Amount", f"${summary['total']}"],
        ],
        tablefmt="plain"
    ))


async def browse_books(args, config: Config):
    """List, search or filter the catalog."""
    async with make_async_client(config) as client:
        engine = CatalogQueryEngine(client, debounce=config.SEARCH_DEBOUNCE_SECONDS)
        try:
            await engine.load_catalog()

            if args.genre and args.genre != ALL_GENRES:
                await engine.set_genre_filter(args.genre)

            if args.search:
                engine.set_search_term(args.search)
                await engine.wait_for_search()

            engine.set_sort_key(args.sort)

            if engine.error:
                print(f"❌ {engine.error}")

            books = engine.visible_books
            display_books(books, args.format)

            caption = f"\nShowing {len(books)} of {len(engine.catalog)} books"
            if engine.search_term:
                caption += f' for "{engine.search_term}"'
            if args.format != "json":
                print(caption)
        finally:
            engine.close()


async def list_genres(args, config: Config):
    """Print the genres present in the catalog."""
    async with make_async_client(config) as client:
        engine = CatalogQueryEngine(client)
        await engine.load_catalog()
        if engine.error:
            print(f"❌ {engine.error}")
        for genre in engine.genres:
            print(genre)


async def run_cart_command(args, config: Config, store: SessionStore) -> bool:
    """Run one cart subcommand; returns False when the action failed."""
    async with make_async_client(config) as client:
        engine = CartSessionEngine(
            client,
            SessionGate(store),
            confirm=make_confirm(args.yes),
            resync_on_failure=args.resync
        )
        try:
            await engine.fetch_cart()
            if engine.error:
                print(f"❌ {engine.error}")

            if args.command == "cart":
                display_cart(engine)
                return engine.error is None

            if args.command in ("add", "buy"):
                book = await find_book(client, args.book_id)
                if book is None:
                    print(f"❌ Book {args.book_id} not found")
                    return False

            if args.command == "add":
                result = await engine.add_item(book.id, book.title)
            elif args.command == "buy":
                result = await engine.quick_buy(book)
                if result.ok:
                    display_cart(engine)
            elif args.command == "remove":
                result = await engine.remove_item(args.line_id)
            elif args.command == "clear":
                result = await engine.clear_cart()
            else:
                result = engine.checkout()

            ok = report(result)
            if args.command == "add" and ok:
                print(f"🛒 Cart items: {engine.item_count}")
            return ok
        finally:
            engine.close()


async def find_book(client: AsyncStoreClient, book_id: str):
    """Look a book up in the catalog by id."""
    for book in await client.get_books():
        if str(book.id) == str(book_id):
            return book
    return None


def run_account_command(args, config: Config, store: SessionStore) -> bool:
    """Login, register or logout."""
    if args.command == "logout":
        return report(logout(store))

    with StoreClient(
        base_url=config.API_URL,
        timeout=config.DEFAULT_TIMEOUT,
        max_retries=config.DEFAULT_MAX_RETRIES
    ) as client:
        if args.command == "login":
            return report(login(client, store, args.username, args.password))
        return report(register(client, args.username, args.password))


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Storefront - Online Book Store CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Sign in
  %(prog)s login alice secret

  # Search the catalog, cheapest first
  %(prog)s books --search "dune" --sort price-low

  # Add a book and review the cart
  %(prog)s add 42
  %(prog)s cart

  # Place the order without prompting
  %(prog)s checkout --yes
        """
    )
    parser.add_argument("--verbose", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    # Account commands
    for name, help_text in (("login", "Sign in"), ("register", "Create an account")):
        account_parser = subparsers.add_parser(name, help=help_text)
        account_parser.add_argument("username", help="Username")
        account_parser.add_argument("password", help="Password")
    subparsers.add_parser("logout", help="Sign out")

    # Catalog commands
    books_parser = subparsers.add_parser("books", help="Browse the catalog")
    books_parser.add_argument("--search", default="", help="Search books, authors, or genres")
    books_parser.add_argument("--genre", default=ALL_GENRES, help="Filter by genre (default: all)")
    books_parser.add_argument("--sort", choices=SORT_KEYS, default="title", help="Sort order (default: title)")
    books_parser.add_argument("--format", choices=["table", "json", "compact"], default="table", help="Output format")
    subparsers.add_parser("genres", help="List catalog genres")

    # Cart commands
    cart_commands = {
        "cart": ("Show cart and order summary", None),
        "add": ("Add a book to the cart", "book_id"),
        "buy": ("Quick buy: add a book and show the cart", "book_id"),
        "remove": ("Remove a cart line", "line_id"),
        "clear": ("Clear the whole cart", None),
        "checkout": ("Place the order", None),
    }
    for name, (help_text, positional) in cart_commands.items():
        cart_parser = subparsers.add_parser(name, help=help_text)
        if positional:
            cart_parser.add_argument(positional, help=positional.replace("_", " "))
        cart_parser.add_argument("--yes", action="store_true", help="Answer yes to confirmations")
        cart_parser.add_argument("--resync", action="store_true", help="Re-fetch the cart after a failed update")

    args = parser.parse_args()

    # Configure logging
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s'
    )

    if not args.command:
        parser.print_help()
        sys.exit(1)

    config = Config()
    store = SessionStore(config.SESSION_FILE)

    try:
        if args.command in ("login", "register", "logout"):
            ok = run_account_command(args, config, store)
        elif args.command == "books":
            asyncio.run(browse_books(args, config))
            ok = True
        elif args.command == "genres":
            asyncio.run(list_genres(args, config))
            ok = True
        else:
            ok = asyncio.run(run_cart_command(args, config, store))

        if not ok:
            sys.exit(1)

    except NotAuthenticated as e:
        print(f"❌ {e.message}")
        print(f"➡️  Run `{parser.prog} {e.redirect_to} <username> <password>` first")
        sys.exit(1)
    except RemoteFailure as e:
        print(f"❌ {e.message}")
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("\n⚠️  Interrupted by user")
        sys.exit(0)
    except Exception as e:
        logger.error(f"❌ Error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
