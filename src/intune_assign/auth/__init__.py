"""Authentication utilities for the Intune app assignment tool."""

from .auth_manager import AuthManager, AuthenticatedUser
from .token_cache import TokenCacheManager
from .types import AccessToken

__all__ = [
    "AccessToken",
    "AuthManager",
    "AuthenticatedUser",
    "TokenCacheManager",
]
