"""Tests for the session slot, the gate and the login flow."""
import pytest

from storefront.errors import NotAuthenticated, RemoteFailure
from storefront.session import SessionGate, SessionStore, login, logout, register


class FakeAccountClient:
    def __init__(self, reply=None, error=None):
        self.reply = reply or {}
        self.error = error
        self.calls = []

    def login(self, username, password):
        self.calls.append(("login", username))
        if self.error:
            raise self.error
        return self.reply

    def register(self, username, password):
        self.calls.append(("register", username))
        if self.error:
            raise self.error
        return self.reply


def test_file_store_round_trip(tmp_path):
    path = tmp_path / "nested" / "session.json"
    store = SessionStore(str(path))

    store.write({"id": 3, "username": "bob"})

    assert path.exists()
    assert SessionStore(str(path)).read() == {"id": 3, "username": "bob"}

    store.clear()
    assert store.read() is None
    assert not path.exists()


def test_corrupt_session_file_reads_as_empty(tmp_path):
    path = tmp_path / "session.json"
    path.write_text("{not json")

    assert SessionStore(str(path)).read() is None


def test_gate_current_session():
    store = SessionStore()
    store.write({"id": 3, "username": "bob"})

    session = SessionGate(store).current()

    assert session.user_id == 3
    assert session.username == "bob"


def test_payload_without_id_is_no_session():
    store = SessionStore()
    store.write({"username": "ghost"})

    assert SessionGate(store).current() is None


def test_require_session_redirects_to_login():
    gate = SessionGate(SessionStore())

    with pytest.raises(NotAuthenticated) as excinfo:
        gate.require_session("Please login to checkout")

    assert excinfo.value.message == "Please login to checkout"
    assert excinfo.value.redirect_to == "login"


def test_login_blank_fields_never_call_server():
    client = FakeAccountClient()

    result = login(client, SessionStore(), "  ", "secret")

    assert not result.ok
    assert result.message == "Please fill in both name and password!"
    assert client.calls == []


def test_login_success_writes_slot():
    store = SessionStore()
    client = FakeAccountClient({"success": True, "user": {"id": 9, "username": "carol"}})

    result = login(client, store, "carol", "pw")

    assert result.ok
    assert SessionGate(store).current().user_id == 9


def test_login_rejected_keeps_slot_empty():
    store = SessionStore()
    client = FakeAccountClient({"success": False, "message": "Invalid credentials"})

    result = login(client, store, "carol", "wrong")

    assert not result.ok
    assert result.message == "Invalid credentials"
    assert store.read() is None


def test_login_remote_failure():
    client = FakeAccountClient(error=RemoteFailure("Cannot connect to server!"))

    result = login(client, SessionStore(), "carol", "pw")

    assert not result.ok
    assert result.message == "Cannot connect to server!"


def test_register_does_not_log_in():
    store = SessionStore()
    client = FakeAccountClient({"success": True, "user": {"id": 10}})

    result = register(client, "dave", "pw")

    assert result.ok
    assert result.message == "Registration successful! You can now login."
    assert store.read() is None


def test_logout_clears_slot():
    store = SessionStore()
    store.write({"id": 1})

    logout(store)

    assert SessionGate(store).current() is None
