"""Local mirror of the server-side cart and the actions that change it."""
import logging
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

from storefront.errors import RemoteFailure, ValidationError
from storefront.models import Book, CartLine
from storefront.parse import normalize_number
from storefront.session import ActionResult, SessionGate
from storefront.summary import OrderSummary, calculate_order_summary, format_money

logger = logging.getLogger(__name__)

Confirm = Callable[[str], bool]

# Acknowledgement fields that carry the server's own cart size
_COUNT_FIELDS = ("cartCount", "count")


def _require_id(value: Any, message: str) -> None:
    if value is None or value == "":
        raise ValidationError(message)


class CartSessionEngine:
    """
    Cache of the signed-in user's cart, reconciled with server replies.

    Each action consults the session gate before touching the network. A
    change is applied to the mirror only after the server acknowledges it,
    and only to the mirror as it stands when that acknowledgement arrives.
    Failed actions leave the mirror as it was and return a failed
    ``ActionResult`` instead of raising; only ``NotAuthenticated`` escapes.
    """

    def __init__(
        self,
        client,
        gate: SessionGate,
        confirm: Confirm,
        resync_on_failure: bool = False
    ):
        """
        Args:
            client: An ``AsyncStoreClient`` or compatible object
            gate: Session gate for the current user
            confirm: Yes/no prompt shown before remove, clear and checkout
            resync_on_failure: Re-fetch the cart after a failed remove/clear
        """
        self.client = client
        self.gate = gate
        self.confirm = confirm
        self.resync_on_failure = resync_on_failure

        self.lines: List[CartLine] = []
        self.item_count = 0
        self.error: Optional[str] = None
        self.message: Optional[str] = None

        self._in_flight: Set[Tuple[str, str]] = set()
        self._closed = False

    @property
    def summary(self) -> OrderSummary:
        """Order summary of the mirror as it is right now."""
        return calculate_order_summary(self.lines)

    def _succeed(self, message: str) -> ActionResult:
        self.message = message
        self.error = None
        return ActionResult(True, message)

    def _reject(self, message: str) -> ActionResult:
        self.error = message
        return ActionResult(False, message)

    async def _fail_remote(self, message: str) -> ActionResult:
        if self.resync_on_failure and not self._closed:
            logger.info("Re-fetching cart after failed update")
            await self.fetch_cart()
        return self._reject(message)

    def _find(self, line_id: Any) -> Optional[CartLine]:
        for line in self.lines:
            if str(line.id) == str(line_id):
                return line
        return None

    def _reconcile_count(self, ack: Dict[str, Any]) -> None:
        for field in _COUNT_FIELDS:
            count = normalize_number(ack.get(field), None)
            if count is not None:
                self.item_count = max(int(count), 0)
                return
        # No authoritative count; assume the add created exactly one line
        self.item_count += 1

    async def fetch_cart(self) -> List[CartLine]:
        """
        Load the user's cart.

        Without a session the cart is empty and the server is not contacted.
        """
        if self._closed:
            return list(self.lines)

        session = self.gate.current()
        if session is None:
            self.lines = []
            self.item_count = 0
            return []

        try:
            lines = await self.client.get_cart(session.user_id)
        except RemoteFailure as e:
            logger.error(f"Error fetching cart: {e.message}")
            if not self._closed:
                self.lines = []
                self.item_count = 0
                self.error = "Failed to load cart"
            return []

        if self._closed:
            return lines

        self.lines = list(lines)
        self.item_count = len(lines)
        self.error = None
        logger.info(f"Cart for user {session.user_id} has {len(lines)} line(s)")
        return list(lines)

    async def add_item(self, book_id: Any, title: Optional[str] = None) -> ActionResult:
        """Add a book to the cart and bump the item counter."""
        session = self.gate.require_session("Please login to add items to cart")

        try:
            _require_id(book_id, "Book ID is missing")
        except ValidationError as e:
            return self._reject(str(e))

        key = ("add", str(book_id))
        if key in self._in_flight:
            return ActionResult(False, "Already adding this book")

        self._in_flight.add(key)
        try:
            ack = await self.client.add_to_cart(session.user_id, book_id)
        except RemoteFailure as e:
            logger.error(f"Error adding to cart: {e.message}")
            return self._reject(e.message or "Error adding to cart")
        finally:
            self._in_flight.discard(key)

        if not isinstance(ack, dict) or not ack.get("success"):
            detail = ack.get("error") or ack.get("message") if isinstance(ack, dict) else None
            return self._reject(detail or "Failed to add to cart")

        if not self._closed:
            self._reconcile_count(ack)
        return self._succeed(f'Added "{title or book_id}" to cart!')

    async def quick_buy(self, book: Book) -> ActionResult:
        """Add a book, then refresh the cart so it can be shown right away."""
        result = await self.add_item(book.id, book.title)
        if result.ok:
            await self.fetch_cart()
        return result

    async def remove_item(self, line_id: Any) -> ActionResult:
        """Remove one cart line after the user confirms."""
        session = self.gate.require_session("Please login to manage cart")

        try:
            _require_id(line_id, "Cart item ID is missing")
        except ValidationError as e:
            return self._reject(str(e))

        line = self._find(line_id)
        label = line.title if line else line_id
        if not self.confirm(f'Remove "{label}" from cart?'):
            return ActionResult(False, "Removal cancelled")

        key = ("remove", str(line_id))
        if key in self._in_flight:
            return ActionResult(False, "Already removing this item")

        self._in_flight.add(key)
        try:
            ack = await self.client.remove_from_cart(session.user_id, line_id)
        except RemoteFailure as e:
            logger.error(f"Error removing item {line_id}: {e.message}")
            return await self._fail_remote("Failed to remove item")
        finally:
            self._in_flight.discard(key)

        if not isinstance(ack, dict) or not ack.get("success"):
            return await self._fail_remote("Failed to remove item")

        if self._closed:
            return ActionResult(True, "Item removed!")

        remaining = []
        removed = 0
        for existing in self.lines:
            if removed == 0 and str(existing.id) == str(line_id):
                removed = 1
                continue
            remaining.append(existing)

        self.lines = remaining
        self.item_count = max(self.item_count - removed, 0)
        return self._succeed("Item removed!")

    async def clear_cart(self) -> ActionResult:
        """Empty the cart after the user confirms."""
        session = self.gate.require_session("Please login to manage cart")

        if not self.confirm("Are you sure you want to clear your entire cart?"):
            return ActionResult(False, "Clear cancelled")

        key = ("clear", "")
        if key in self._in_flight:
            return ActionResult(False, "Already clearing the cart")

        self._in_flight.add(key)
        try:
            ack = await self.client.clear_cart(session.user_id)
        except RemoteFailure as e:
            logger.error(f"Error clearing cart: {e.message}")
            return await self._fail_remote("Failed to clear cart")
        finally:
            self._in_flight.discard(key)

        if not isinstance(ack, dict) or not ack.get("success"):
            return await self._fail_remote("Failed to clear cart")

        if not self._closed:
            self.lines = []
            self.item_count = 0
        return self._succeed("Cart cleared successfully!")

    def checkout(self) -> ActionResult:
        """
        Place the order locally.

        Needs a non-empty cart and a confirmation showing the item count and
        total. Once confirmed the local cart is always emptied; no server
        call is made.
        """
        self.gate.require_session("Please login to checkout")

        if not self.lines:
            return self._reject("Your cart is empty!")

        summary = self.summary
        total = format_money(summary.total)
        if not self.confirm(f"Confirm purchase of {summary.item_count} item(s) for ${total}?"):
            return ActionResult(False, "Checkout cancelled")

        self.lines = []
        self.item_count = 0
        logger.info(f"Order placed locally, total ${total}")
        return self._succeed(f"Order placed successfully! Total: ${total}")

    def close(self) -> None:
        """Tear down: replies that arrive later leave the mirror alone."""
        self._closed = True
