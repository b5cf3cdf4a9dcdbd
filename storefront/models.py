"""Data models for books, cart lines and sessions."""
from dataclasses import dataclass, field
from typing import Optional, Dict, Any


BOOK_PLACEHOLDER_URL = "https://picsum.photos/300/400?random={id}"
CART_PLACEHOLDER_URL = "https://picsum.photos/120/160"


@dataclass(frozen=True)
class Book:
    """Normalized catalog entry. Numeric fields are already coerced."""
    id: Any
    title: str
    author: str
    genre: Optional[str]
    price: float
    rating: float
    published_year: Optional[int]
    image_url: Optional[str]

    @property
    def genre_label(self) -> str:
        """Genre as shown in the catalog view."""
        return self.genre or "Unknown"

    @property
    def cover_url(self) -> str:
        """Cover image, falling back to a placeholder."""
        return self.image_url or BOOK_PLACEHOLDER_URL.format(id=self.id)

    @property
    def price_str(self) -> str:
        return f"${self.price:.2f}"


@dataclass(frozen=True)
class CartLine:
    """One entry of the server-side cart with the book fields merged in."""
    id: Any
    book_id: Any
    title: str
    author: str
    genre: Optional[str]
    price: float
    rating: float
    quantity: int
    image_url: Optional[str]

    @property
    def genre_label(self) -> str:
        """Genre as shown in the cart view."""
        return self.genre or "Fiction"

    @property
    def cover_url(self) -> str:
        return self.image_url or CART_PLACEHOLDER_URL

    @property
    def line_total(self) -> float:
        return self.price * self.quantity


@dataclass(frozen=True)
class Session:
    """The logged-in user held in the session slot."""
    user_id: Any
    user: Dict[str, Any] = field(default_factory=dict)

    @property
    def username(self) -> str:
        return str(self.user.get("username") or self.user_id)
