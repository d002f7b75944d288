from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum

import httpx


# Application permissions the assign and report commands rely on.
GRAPH_PERMISSIONS: tuple[str, ...] = (
    "DeviceManagementApps.ReadWrite.All",
    "Group.Read.All",
)


class GraphErrorCategory(str, Enum):
    AUTHENTICATION = "authentication"
    PERMISSION = "permission"
    VALIDATION = "validation"
    CONFLICT = "conflict"
    RATE_LIMIT = "rate_limit"
    NETWORK = "network"
    SERVER = "server"
    UNKNOWN = "unknown"


_SUGGESTIONS: dict[GraphErrorCategory, str] = {
    GraphErrorCategory.AUTHENTICATION: (
        "Run `intune-assign sign-out` and sign in again with an Intune administrator."
    ),
    GraphErrorCategory.PERMISSION: (
        "Consent to " + " and ".join(GRAPH_PERMISSIONS) + " for the app registration."
    ),
    GraphErrorCategory.VALIDATION: (
        "Check that the app id and group ids exist in this tenant."
    ),
    GraphErrorCategory.CONFLICT: (
        "Another change to the app's assignments is in flight; rerun the command."
    ),
    GraphErrorCategory.NETWORK: "Check connectivity to graph.microsoft.com.",
    GraphErrorCategory.SERVER: "Intune returned a server error; rerun the command later.",
}

_HELP_URLS: dict[GraphErrorCategory, str] = {
    GraphErrorCategory.AUTHENTICATION: (
        "https://learn.microsoft.com/entra/identity-platform/reference-error-codes"
    ),
    GraphErrorCategory.PERMISSION: (
        "https://learn.microsoft.com/graph/permissions-reference"
    ),
    GraphErrorCategory.RATE_LIMIT: "https://learn.microsoft.com/graph/throttling",
    GraphErrorCategory.VALIDATION: "https://learn.microsoft.com/graph/errors",
    GraphErrorCategory.CONFLICT: "https://learn.microsoft.com/graph/errors",
}


@dataclass(slots=True)
class GraphAPIError(Exception):
    """A failed Microsoft Graph call, including the request that caused it."""

    message: str
    category: GraphErrorCategory = GraphErrorCategory.UNKNOWN
    status_code: int | None = None
    code: str | None = None
    retry_after: str | None = None
    request_method: str | None = None
    request_url: str | None = None
    cli_example: str | None = None

    def __str__(self) -> str:
        return self.message

    @property
    def recovery_suggestion(self) -> str | None:
        if self.category is GraphErrorCategory.RATE_LIMIT:
            wait = f"{self.retry_after} seconds" if self.retry_after else "a moment"
            return f"Graph is throttling this tenant; wait {wait} and rerun."
        return _SUGGESTIONS.get(self.category)

    @property
    def help_url(self) -> str | None:
        return _HELP_URLS.get(self.category)

    @property
    def is_retriable(self) -> bool:
        return self.category in {
            GraphErrorCategory.RATE_LIMIT,
            GraphErrorCategory.NETWORK,
            GraphErrorCategory.SERVER,
        }


class AuthenticationError(GraphAPIError):
    def __init__(
        self, message: str = "Authentication failed", *, status_code: int | None = None
    ) -> None:
        super().__init__(
            message=message,
            category=GraphErrorCategory.AUTHENTICATION,
            status_code=status_code,
        )


class PermissionError(GraphAPIError):
    def __init__(self, message: str = "Insufficient permissions") -> None:
        super().__init__(
            message=message, category=GraphErrorCategory.PERMISSION, status_code=403
        )


class RateLimitError(GraphAPIError):
    def __init__(
        self, message: str = "Rate limited", retry_after: str | None = None
    ) -> None:
        super().__init__(
            message=message,
            category=GraphErrorCategory.RATE_LIMIT,
            status_code=429,
            retry_after=retry_after,
        )


def _status_category(status: int) -> GraphErrorCategory:
    if status in (400, 404, 422):
        return GraphErrorCategory.VALIDATION
    if status == 409:
        return GraphErrorCategory.CONFLICT
    if status >= 500:
        return GraphErrorCategory.SERVER
    return GraphErrorCategory.UNKNOWN


def error_from_response(response: httpx.Response) -> GraphAPIError:
    """Translate a Graph error response into the matching exception type."""

    status = response.status_code
    code: str | None = None
    message: str | None = None
    try:
        body = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        body = None
    if isinstance(body, dict) and isinstance(body.get("error"), dict):
        code = body["error"].get("code")
        message = body["error"].get("message")
    message = message or response.text or f"Graph returned HTTP {status}"

    match status:
        case 401:
            error: GraphAPIError = AuthenticationError(message, status_code=401)
        case 403:
            error = PermissionError(message)
        case 429:
            error = RateLimitError(message, retry_after=response.headers.get("Retry-After"))
        case _:
            error = GraphAPIError(
                message=message, category=_status_category(status), status_code=status
            )
    error.code = code if isinstance(code, str) else None
    return error


__all__ = [
    "GRAPH_PERMISSIONS",
    "AuthenticationError",
    "GraphAPIError",
    "GraphErrorCategory",
    "PermissionError",
    "RateLimitError",
    "error_from_response",
]
