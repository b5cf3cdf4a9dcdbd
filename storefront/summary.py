"""Order summary for the cart: subtotal, tax, shipping and total."""
from dataclasses import dataclass
from typing import Dict, Iterable

from storefront.models import CartLine

TAX_RATE = 0.10
FREE_SHIPPING_THRESHOLD = 50.0
SHIPPING_FEE = 5.99


def format_money(amount: float) -> str:
    return f"{amount:.2f}"


@dataclass(frozen=True)
class OrderSummary:
    """Derived totals for one snapshot of the cart."""
    subtotal: float
    tax: float
    shipping: float
    total: float
    item_count: int

    @property
    def shipping_text(self) -> str:
        """``FREE`` or the fee with a dollar sign."""
        return "FREE" if self.shipping == 0 else f"${format_money(self.shipping)}"

    def as_dict(self) -> Dict[str, str]:
        """Monetary values rendered to two decimals."""
        return {
            "subtotal": format_money(self.subtotal),
            "tax": format_money(self.tax),
            "shipping": format_money(self.shipping),
            "total": format_money(self.total),
            "shipping_text": self.shipping_text,
        }


def calculate_order_summary(lines: Iterable[CartLine]) -> OrderSummary:
    """
    Derive the order summary from cart lines.

    Shipping is free when the subtotal is strictly above the threshold.

    Args:
        lines: Cart lines with normalized price and quantity

    Returns:
        OrderSummary
    """
    subtotal = 0.0
    item_count = 0
    for line in lines:
        subtotal += line.price * line.quantity
        item_count += line.quantity

    tax = subtotal * TAX_RATE
    shipping = 0.0 if subtotal > FREE_SHIPPING_THRESHOLD else SHIPPING_FEE
    total = subtotal + tax + shipping

    return OrderSummary(
        subtotal=subtotal,
        tax=tax,
        shipping=shipping,
        total=total,
        item_count=item_count
    )
