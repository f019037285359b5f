"""
User session management.

The backend answers login and registration with plain-text messages and
returns no user record, so the session user is built locally and persisted.
"""

import logging
import re
import time
from datetime import datetime, timezone
from typing import Any, Optional

from musicstream.playback.persistence import (
    KEY_CURRENT_SONG,
    KEY_QUEUE,
    KEY_QUEUE_ORIGINAL,
    KEY_USER,
)
from musicstream.storage import PersistenceStore

from .client import AUTH_LOGIN, AUTH_REGISTER, RestClient

logger = logging.getLogger(__name__)

LOGIN_SUCCESS = "Login successful!"
REGISTER_SUCCESS = "User registered successfully!"
MIN_PASSWORD_LENGTH = 6

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class AuthenticationError(Exception):
    """Invalid credentials input or missing login."""


class AuthManager:
    """Login, registration and the persisted session user."""

    def __init__(self, client: RestClient, store: PersistenceStore):
        self.client = client
        self.store = store
        self._user: Optional[dict[str, Any]] = None

        stored = store.get(KEY_USER)
        if isinstance(stored, dict) and stored.get("id") is not None:
            self._user = stored
            logger.debug(f"Restored session for {stored.get('username')}")

    @property
    def current_user(self) -> Optional[dict[str, Any]]:
        return self._user

    @property
    def is_authenticated(self) -> bool:
        return self._user is not None

    @property
    def user_id(self) -> Optional[Any]:
        return self._user["id"] if self._user else None

    def require_auth(self, action: str) -> None:
        """Raise AuthenticationError unless logged in."""
        if not self.is_authenticated:
            raise AuthenticationError(f"Please login to {action}")

    async def login(self, username: str, password: str) -> bool:
        """
        Log in.

        Returns:
            True if the backend accepted the credentials

        Raises:
            AuthenticationError: If a field is empty
            APIError: On request failure
        """
        if not username or not password:
            raise AuthenticationError("Please fill in all fields")

        reply = await self.client.request(
            AUTH_LOGIN, "POST", {"username": username, "password": password}
        )
        if reply != LOGIN_SUCCESS:
            logger.warning(f"Login rejected: {reply}")
            return False

        user = {
            "id": int(time.time() * 1000),
            "username": username,
            "email": f"{username}@example.com",
            "loginTime": datetime.now(timezone.utc).isoformat(),
        }
        self._user = user
        self.store.set(KEY_USER, user)
        logger.info(f"Logged in as {username}")
        return True

    async def register(self, username: str, email: str, password: str) -> bool:
        """
        Register a new account.

        Returns:
            True if the backend created the account

        Raises:
            AuthenticationError: If a field is empty or invalid
            APIError: On request failure
        """
        if not username or not email or not password:
            raise AuthenticationError("Please fill in all fields")
        if not EMAIL_RE.match(email):
            raise AuthenticationError("Please enter a valid email address")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise AuthenticationError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
            )

        reply = await self.client.request(
            AUTH_REGISTER, "POST", {"username": username, "email": email, "password": password}
        )
        if reply != REGISTER_SUCCESS:
            logger.warning(f"Registration rejected: {reply}")
            return False

        logger.info(f"Registered {username}")
        return True

    def logout(self) -> None:
        """Forget the user along with the saved queue and current song."""
        self._user = None
        self.store.remove(KEY_USER)
        self.store.remove(KEY_QUEUE)
        self.store.remove(KEY_QUEUE_ORIGINAL)
        self.store.remove(KEY_CURRENT_SONG)
        logger.info("Logged out")
