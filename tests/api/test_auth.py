"""Tests for the authentication manager."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from musicstream.api import AuthenticationError, AuthManager
from musicstream.api.client import AUTH_LOGIN, AUTH_REGISTER
from musicstream.playback.persistence import KEY_CURRENT_SONG, KEY_QUEUE, KEY_USER, KEY_VOLUME
from musicstream.storage import MemoryStore


@pytest.fixture
def client() -> MagicMock:
    mock_client = MagicMock()
    mock_client.request = AsyncMock(return_value="Login successful!")
    return mock_client


@pytest.fixture
def auth(client, store) -> AuthManager:
    return AuthManager(client, store)


class TestLogin:
    """Tests for login."""

    async def test_successful_login(self, auth, client, store) -> None:
        assert await auth.login("alice", "secret1") is True

        client.request.assert_awaited_once_with(
            AUTH_LOGIN, "POST", {"username": "alice", "password": "secret1"}
        )
        assert auth.is_authenticated
        user = store.get(KEY_USER)
        assert user["username"] == "alice"
        assert user["email"] == "alice@example.com"
        assert user["id"] == auth.user_id
        assert "loginTime" in user

    async def test_rejected_login(self, auth, client, store) -> None:
        client.request.return_value = "Invalid username or password"

        assert await auth.login("alice", "wrong") is False
        assert not auth.is_authenticated
        assert store.get(KEY_USER) is None

    @pytest.mark.parametrize("username,password", [("", "pw"), ("alice", "")])
    async def test_empty_fields(self, auth, client, username, password) -> None:
        with pytest.raises(AuthenticationError, match="fill in all fields"):
            await auth.login(username, password)
        client.request.assert_not_awaited()

    def test_session_restored_from_store(self, client) -> None:
        store = MemoryStore({KEY_USER: {"id": 123, "username": "bob"}})
        auth = AuthManager(client, store)
        assert auth.is_authenticated
        assert auth.user_id == 123

    def test_stored_user_without_id_is_ignored(self, client) -> None:
        auth = AuthManager(client, MemoryStore({KEY_USER: {"username": "bob"}}))
        assert not auth.is_authenticated

    def test_require_auth(self, auth) -> None:
        with pytest.raises(AuthenticationError, match="Please login to add favorites"):
            auth.require_auth("add favorites")


class TestRegister:
    """Tests for registration."""

    async def test_successful_registration(self, auth, client) -> None:
        client.request.return_value = "User registered successfully!"

        assert await auth.register("alice", "alice@mail.test", "secret1") is True

        client.request.assert_awaited_once_with(
            AUTH_REGISTER,
            "POST",
            {"username": "alice", "email": "alice@mail.test", "password": "secret1"},
        )
        assert not auth.is_authenticated

    async def test_rejected_registration(self, auth, client) -> None:
        client.request.return_value = "Username already exists"
        assert await auth.register("alice", "alice@mail.test", "secret1") is False

    async def test_invalid_email(self, auth, client) -> None:
        with pytest.raises(AuthenticationError, match="valid email"):
            await auth.register("alice", "not-an-email", "secret1")
        client.request.assert_not_awaited()

    async def test_short_password(self, auth) -> None:
        with pytest.raises(AuthenticationError, match="at least 6 characters"):
            await auth.register("alice", "alice@mail.test", "12345")


class TestLogout:
    """Tests for logout."""

    async def test_logout_clears_session_and_queue(self, auth, store) -> None:
        await auth.login("alice", "secret1")
        store.set(KEY_QUEUE, [{"songID": "1"}])
        store.set(KEY_CURRENT_SONG, {"songID": "1"})
        store.set(KEY_VOLUME, 0.4)

        auth.logout()

        assert not auth.is_authenticated
        assert store.get(KEY_USER) is None
        assert store.get(KEY_QUEUE) is None
        assert store.get(KEY_CURRENT_SONG) is None
        assert store.get(KEY_VOLUME) == 0.4
