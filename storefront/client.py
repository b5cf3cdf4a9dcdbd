"""HTTP client for the store's account endpoints with resilience patterns."""
import time
import random
import requests
from typing import Optional, Dict, Any
import logging

from storefront.errors import RemoteFailure

logger = logging.getLogger(__name__)


class StoreClient:
    """Client for login/register with timeouts, retries, and backoff."""

    DEFAULT_BASE_URL = "https://bookstore-backend-production-5d76.up.railway.app/api"

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: int = 10,
        max_retries: int = 3,
        base_backoff: float = 1.0
    ):
        """
        Initialize the account client.

        Args:
            base_url: API root, e.g. ``https://host/api``
            timeout: Request timeout in seconds
            max_retries: Maximum number of retry attempts
            base_backoff: Base delay for exponential backoff
        """
        self.base_url = (base_url or self.DEFAULT_BASE_URL).rstrip("/")
        self.timeout = timeout
        self.max_retries = max_retries
        self.base_backoff = base_backoff

        # Create session for connection pooling
        self.session = requests.Session()
        self.session.headers.update({"Content-Type": "application/json"})

    def login(self, username: str, password: str) -> Dict[str, Any]:
        """
        Check credentials against the server.

        Returns:
            ``{success, user?|message?}``
        """
        return self._post_with_retry("/login", {"username": username, "password": password})

    def register(self, username: str, password: str) -> Dict[str, Any]:
        """Create a new account."""
        # a timed-out or failed register may still have created the account
        return self._post_with_retry(
            "/register", {"username": username, "password": password}, idempotent=False
        )

    def _post_with_retry(
        self, path: str, payload: Dict[str, Any], idempotent: bool = True
    ) -> Dict[str, Any]:
        """
        POST JSON with retry logic.

        Args:
            path: Endpoint path below the base URL
            payload: JSON body
            idempotent: Retry timeouts, dropped connections and 5xx replies.
                A 429 is always retried since the server did not act on it.

        Returns:
            Decoded response body

        Raises:
            RemoteFailure: if the request cannot be completed
        """
        url = f"{self.base_url}{path}"

        for attempt in range(self.max_retries):
            try:
                logger.info(f"Request attempt {attempt + 1}/{self.max_retries}: {url}")

                response = self.session.post(
                    url,
                    json=payload,
                    timeout=self.timeout
                )

                if response.status_code == 429:
                    # Rate limited - must retry with backoff
                    logger.warning(f"Rate limited (429) on attempt {attempt + 1}")
                    if attempt < self.max_retries - 1:
                        self._backoff(attempt)
                        continue
                    raise RemoteFailure("Server is busy, try again later", status_code=429)

                elif response.status_code >= 500:
                    # Server error - retryable when idempotent
                    logger.warning(f"Server error ({response.status_code}) on attempt {attempt + 1}")
                    if idempotent and attempt < self.max_retries - 1:
                        self._backoff(attempt)
                        continue
                    raise RemoteFailure(
                        f"Server error ({response.status_code})",
                        status_code=response.status_code
                    )

                # 2xx and 4xx both carry {success, message}; the caller reads it
                logger.info(f"Response: {response.status_code}")
                try:
                    return response.json()
                except ValueError as e:
                    raise RemoteFailure(
                        "Invalid response from server",
                        status_code=response.status_code
                    ) from e

            except requests.exceptions.Timeout as e:
                logger.warning(f"Timeout on attempt {attempt + 1}")
                if idempotent and attempt < self.max_retries - 1:
                    self._backoff(attempt)
                    continue
                raise RemoteFailure("Request timed out") from e

            except requests.exceptions.ConnectionError as e:
                logger.warning(f"Connection error on attempt {attempt + 1}: {e}")
                if idempotent and attempt < self.max_retries - 1:
                    self._backoff(attempt)
                    continue
                raise RemoteFailure("Cannot connect to server!") from e

            except requests.exceptions.RequestException as e:
                logger.error(f"Request failed: {e}")
                raise RemoteFailure(f"Request failed: {type(e).__name__}") from e

        logger.error(f"All {self.max_retries} attempts failed")
        raise RemoteFailure(f"All {self.max_retries} attempts failed")

    def _backoff(self, attempt: int):
        """
        Sleep with exponential backoff and jitter.

        Args:
            attempt: Current attempt number (0-indexed)
        """
        # Exponential backoff: base * 2^attempt
        delay = self.base_backoff * (2 ** attempt)

        # Add jitter: random value between 0 and delay
        jitter = random.uniform(0, delay)
        total_delay = delay + jitter

        logger.info(f"Backing off for {total_delay:.2f} seconds")
        time.sleep(total_delay)

    def close(self):
        """Close the session."""
        self.session.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
