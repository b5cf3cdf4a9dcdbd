"""Persisted session slot, the session gate, and the login flow that writes it."""
import json
import logging
import os
from dataclasses import dataclass
from typing import Optional, Dict, Any

from storefront.errors import NotAuthenticated, RemoteFailure, ValidationError
from storefront.models import Session

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ActionResult:
    """Outcome of a user action, ready to show as a message."""
    ok: bool
    message: str


class SessionStore:
    """
    Single slot holding the serialized logged-in user.

    With a ``path`` the slot is a JSON file; without one it lives in memory.
    """

    def __init__(self, path: Optional[str] = None):
        self.path = path
        self._memory: Optional[Dict[str, Any]] = None

    def read(self) -> Optional[Dict[str, Any]]:
        """Return the raw user payload, or None if the slot is empty or unreadable."""
        if self.path is None:
            return self._memory

        if not os.path.exists(self.path):
            return None

        try:
            with open(self.path, encoding="utf-8") as f:
                payload = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable session file {self.path}: {e}")
            return None

        return payload if isinstance(payload, dict) else None

    def write(self, user: Dict[str, Any]) -> None:
        """Store the user payload."""
        if self.path is None:
            self._memory = dict(user)
            return

        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(user, f)
        logger.info(f"Session saved to {self.path}")

    def clear(self) -> None:
        """Empty the slot."""
        if self.path is None:
            self._memory = None
            return

        if os.path.exists(self.path):
            os.remove(self.path)
            logger.info(f"Session cleared: {self.path}")


class SessionGate:
    """Read boundary over the session slot for operations that need a user."""

    def __init__(self, store: SessionStore):
        self.store = store

    def current(self) -> Optional[Session]:
        """The current session, or None. A payload without an id is no session."""
        user = self.store.read()
        if not user or user.get("id") in (None, ""):
            return None
        return Session(user_id=user["id"], user=user)

    def require_session(self, prompt: str = "Please login to continue") -> Session:
        """
        Return the current session or abort the caller.

        Raises:
            NotAuthenticated: with ``prompt`` as its message and a redirect
                to the login view
        """
        session = self.current()
        if session is None:
            logger.info(f"No session; redirecting to login ({prompt})")
            raise NotAuthenticated(prompt, redirect_to="login")
        return session


def _validate_credentials(username: str, password: str) -> None:
    if not username or not username.strip() or not password or not password.strip():
        raise ValidationError("Please fill in both name and password!")


def login(client, store: SessionStore, username: str, password: str) -> ActionResult:
    """
    Log in and write the returned user into the session slot.

    Args:
        client: A ``StoreClient``
        store: Session slot to write
        username: Account name
        password: Account password
    """
    try:
        _validate_credentials(username, password)
        data = client.login(username, password)
    except ValidationError as e:
        return ActionResult(False, str(e))
    except RemoteFailure as e:
        logger.error(f"Login failed: {e.message}")
        return ActionResult(False, e.message)

    if not isinstance(data, dict):
        data = {}

    user = data.get("user")
    if not data.get("success") or not isinstance(user, dict):
        return ActionResult(False, data.get("message") or "Login failed!")

    store.write(user)
    return ActionResult(True, "Login successful!")


def register(client, username: str, password: str) -> ActionResult:
    """Create an account. Does not log the user in."""
    try:
        _validate_credentials(username, password)
        data = client.register(username, password)
    except ValidationError as e:
        return ActionResult(False, str(e))
    except RemoteFailure as e:
        logger.error(f"Registration failed: {e.message}")
        return ActionResult(False, e.message)

    if not isinstance(data, dict) or not data.get("success"):
        message = data.get("message") if isinstance(data, dict) else None
        return ActionResult(False, message or "Registration failed!")

    return ActionResult(True, "Registration successful! You can now login.")


def logout(store: SessionStore) -> ActionResult:
    store.clear()
    return ActionResult(True, "Logged out")
