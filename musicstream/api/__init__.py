"""Backend REST client and user session."""

from .auth import AuthenticationError, AuthManager
from .client import APIError, RestClient

__all__ = [
    "APIError",
    "AuthManager",
    "AuthenticationError",
    "RestClient",
]
