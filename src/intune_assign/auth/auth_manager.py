from __future__ import annotations

import asyncio
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping, Sequence

import msal

from intune_assign.auth.types import AccessToken
from intune_assign.config.settings import DEFAULT_GRAPH_SCOPES, Settings
from intune_assign.graph.errors import AuthenticationError
from intune_assign.utils import get_logger

from .token_cache import TokenCacheManager


logger = get_logger(__name__)

# MSAL adds these itself and rejects requests that name them.
_RESERVED_SCOPES = frozenset({"openid", "profile", "offline_access"})

_DEFAULT_LIFETIME_SECONDS = 3600


@dataclass(slots=True, frozen=True)
class AuthenticatedUser:
    display_name: str | None
    username: str | None
    home_account_id: str | None
    tenant_id: str | None

    @classmethod
    def from_claims(cls, claims: Mapping[str, Any]) -> AuthenticatedUser:
        return cls(
            display_name=claims.get("name"),
            username=claims.get("preferred_username") or claims.get("email"),
            home_account_id=claims.get("oid"),
            tenant_id=claims.get("tid"),
        )

    @classmethod
    def from_account(cls, account: Mapping[str, Any]) -> AuthenticatedUser:
        return cls(
            display_name=account.get("name"),
            username=account.get("username"),
            home_account_id=account.get("home_account_id"),
            tenant_id=account.get("environment"),
        )


def requestable_scopes(scopes: Iterable[str]) -> list[str]:
    return [
        scope
        for scope in scopes
        if scope not in _RESERVED_SCOPES and not scope.endswith("/.default")
    ]


def _token_from_result(result: Mapping[str, Any]) -> AccessToken:
    if "error" in result:
        reason = result.get("error_description") or result.get("error")
        raise AuthenticationError(f"MSAL error: {reason}")
    token = result.get("access_token")
    if not isinstance(token, str):
        raise AuthenticationError("MSAL response missing access token")
    expires_on = result.get("expires_on")
    if isinstance(expires_on, (int, str)):
        return AccessToken(token, int(expires_on))
    expires_in = result.get("expires_in")
    lifetime = (
        int(expires_in)
        if isinstance(expires_in, (int, str))
        else _DEFAULT_LIFETIME_SECONDS
    )
    return AccessToken(token, int(time.time()) + lifetime)


class AuthManager:
    """Sign in an Intune administrator with an MSAL public client.

    Tokens come from the persisted cache when possible. Only
    :meth:`acquire_token` may open a browser; the Graph client's
    :meth:`token_provider` never prompts, so a run signs in once up front.
    """

    def __init__(self) -> None:
        self._app: msal.PublicClientApplication | None = None
        self._cache: TokenCacheManager | None = None
        self._lock = threading.Lock()
        self._user: AuthenticatedUser | None = None

    def configure(self, settings: Settings) -> None:
        """Build the MSAL client for ``settings``.

        Raises:
            AuthenticationError: If the client id is missing or MSAL rejects
                the authority.
        """
        if not settings.client_id:
            raise AuthenticationError("A client id is required to sign in")

        authority = settings.derive_authority()
        cache = TokenCacheManager(settings.token_cache_path)
        try:
            app = msal.PublicClientApplication(
                client_id=settings.client_id,
                authority=authority,
                token_cache=cache.cache,
            )
        except ValueError as exc:
            logger.error(
                "MSAL rejected the authority", authority=authority, error=str(exc)
            )
            raise AuthenticationError(f"Invalid authority: {exc}") from exc
        self._app, self._cache = app, cache
        logger.info("Configured MSAL public client", authority=authority)

    def token_provider(self) -> Callable[[Sequence[str]], AccessToken]:
        return self.acquire_token_sync

    async def acquire_token(self, scopes: Sequence[str] | None = None) -> AccessToken:
        """Return a token, signing in through the browser if the cache has none."""

        return await asyncio.to_thread(self._acquire, scopes, True)

    def acquire_token_sync(self, scopes: Sequence[str] | None = None) -> AccessToken:
        try:
            return self._acquire(scopes, False)
        except AuthenticationError as exc:
            raise AuthenticationError(
                "Interactive sign-in required before accessing Microsoft Graph"
            ) from exc

    async def sign_out(self) -> int:
        """Remove every cached account and delete the token cache file.

        Returns the number of accounts that were signed out.
        """

        return await asyncio.to_thread(self._sign_out)

    def current_user(self) -> AuthenticatedUser | None:
        return self._user

    def _require(self) -> tuple[msal.PublicClientApplication, TokenCacheManager]:
        if self._app is None or self._cache is None:
            raise AuthenticationError("Authentication has not been configured")
        return self._app, self._cache

    def _acquire(self, scopes: Sequence[str] | None, interactive: bool) -> AccessToken:
        requested = requestable_scopes(scopes or DEFAULT_GRAPH_SCOPES)
        with self._lock:
            app, cache = self._require()
            result: Mapping[str, Any] | None = None
            accounts = app.get_accounts()
            if accounts:
                self._user = AuthenticatedUser.from_account(accounts[0])
                result = app.acquire_token_silent(requested, account=accounts[0])
            if not result:
                if not interactive:
                    raise AuthenticationError("No cached token for the requested scopes")
                logger.info("Starting interactive sign-in", scopes=requested)
                result = app.acquire_token_interactive(
                    scopes=requested, prompt="select_account"
                )
            token = _token_from_result(result)
            claims = result.get("id_token_claims")
            if isinstance(claims, Mapping):
                self._user = AuthenticatedUser.from_claims(claims)
            cache.save()
            return token

    def _sign_out(self) -> int:
        with self._lock:
            app, cache = self._require()
            accounts = app.get_accounts()
            for account in accounts:
                app.remove_account(account)
            cache.clear()
            self._user = None
        logger.info("Signed out", accounts=len(accounts))
        return len(accounts)


__all__ = ["AuthManager", "AuthenticatedUser", "requestable_scopes"]
