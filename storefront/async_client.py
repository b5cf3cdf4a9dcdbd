"""Async HTTP client for the store's catalog and cart endpoints."""
import asyncio
import httpx
from urllib.parse import quote
from typing import List, Optional, Dict, Any
import logging

from storefront.errors import RemoteFailure
from storefront.models import Book, CartLine
from storefront.parse import parse_books_response, parse_cart_response

logger = logging.getLogger(__name__)


class AsyncStoreClient:
    """Async client for catalog queries and cart round-trips."""

    DEFAULT_BASE_URL = "https://bookstore-backend-production-5d76.up.railway.app/api"

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: int = 10,
        max_concurrent: int = 5,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize async client.

        Args:
            base_url: API root, e.g. ``https://host/api``
            timeout: Request timeout in seconds
            max_concurrent: Maximum concurrent requests
            transport: Optional httpx transport (used by tests)
        """
        self.base_url = (base_url or self.DEFAULT_BASE_URL).rstrip("/")
        self.timeout = timeout
        self.semaphore = asyncio.Semaphore(max_concurrent)

        # Create async HTTP client
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            headers={"Content-Type": "application/json"},
            transport=transport
        )

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        """
        Send one request and decode its JSON body.

        Raises:
            RemoteFailure: on timeout, transport error, HTTP error status
                or an undecodable body
        """
        # Use semaphore to limit concurrency
        async with self.semaphore:
            try:
                logger.info(f"Async request: {method} {path}")
                response = await self.client.request(method, path, **kwargs)

            except httpx.TimeoutException as e:
                logger.warning(f"Timeout after {self.timeout}s: {method} {path}")
                raise RemoteFailure("Request timed out") from e

            except httpx.HTTPError as e:
                logger.error(f"Async request failed: {e}")
                raise RemoteFailure(f"Cannot connect to server: {e}") from e

        if response.status_code >= 400:
            message = self._error_message(response)
            logger.warning(f"Status {response.status_code} for {method} {path}: {message}")
            raise RemoteFailure(message, status_code=response.status_code)

        try:
            return response.json()
        except ValueError as e:
            logger.error(f"Invalid JSON from {method} {path}")
            raise RemoteFailure("Invalid response from server") from e

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        """Pull ``error`` or ``message`` out of an error body if there is one."""
        try:
            body = response.json()
        except ValueError:
            body = None

        if isinstance(body, dict):
            detail = body.get("error") or body.get("message")
            if detail:
                return str(detail)

        return f"Request failed with status {response.status_code}"

    async def get_books(self) -> List[Book]:
        """Fetch the full catalog."""
        data = await self._request("GET", "/books")
        return parse_books_response(data)

    async def search_books(self, term: str) -> List[Book]:
        """Free-text search on the server."""
        data = await self._request("GET", "/books/search", params={"term": term})
        return parse_books_response(data)

    async def filter_books(self, genre: str) -> List[Book]:
        """Books of one genre."""
        data = await self._request("GET", f"/books/filter/{quote(genre, safe='')}")
        return parse_books_response(data)

    async def get_cart(self, user_id: Any) -> List[CartLine]:
        """Cart lines for a user."""
        data = await self._request("GET", "/cart", params={"userId": user_id})
        return parse_cart_response(data)

    async def add_to_cart(self, user_id: Any, book_id: Any) -> Dict[str, Any]:
        """
        Add a book to the user's cart.

        Returns:
            The acknowledgement ``{success, message?|error?}``
        """
        return await self._request(
            "POST", "/cart/add", json={"userId": user_id, "bookId": book_id}
        )

    async def remove_from_cart(self, user_id: Any, line_id: Any) -> Dict[str, Any]:
        """Remove one cart line by its cart-entry id."""
        return await self._request(
            "DELETE", f"/cart/{quote(str(line_id), safe='')}", json={"userId": user_id}
        )

    async def clear_cart(self, user_id: Any) -> Dict[str, Any]:
        """Remove every line from the user's cart."""
        return await self._request("DELETE", "/cart/clear", json={"userId": user_id})

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()
