from __future__ import annotations

import socket
from dataclasses import dataclass
from enum import Enum
from typing import Iterator

import httpx

from intune_assign.graph.errors import GraphAPIError, GraphErrorCategory


class ErrorSeverity(str, Enum):
    WARNING = "warning"
    ERROR = "error"


@dataclass(slots=True)
class ErrorDescriptor:
    """What the CLI prints for a failed command."""

    headline: str
    detail: str
    severity: ErrorSeverity = ErrorSeverity.ERROR
    suggestion: str | None = None
    help_url: str | None = None
    reproduce: str | None = None

    @property
    def transient(self) -> bool:
        return self.severity is ErrorSeverity.WARNING


_GRAPH_HEADLINES: dict[GraphErrorCategory, str] = {
    GraphErrorCategory.AUTHENTICATION: "Microsoft Graph did not accept the sign-in.",
    GraphErrorCategory.PERMISSION: "The signed-in account may not manage Intune apps.",
    GraphErrorCategory.VALIDATION: "Microsoft Graph rejected the request.",
    GraphErrorCategory.CONFLICT: "The app's assignments changed concurrently.",
    GraphErrorCategory.RATE_LIMIT: "Microsoft Graph throttled the request.",
    GraphErrorCategory.NETWORK: "Could not reach Microsoft Graph.",
    GraphErrorCategory.SERVER: "Microsoft Graph failed to process the request.",
}

_COMMAND_HEADLINES: dict[str, str] = {
    "assign": "The assignment was not applied.",
    "report": "The assignment report could not be built.",
    "sign-out": "Sign-out did not complete.",
}

_NETWORK_ERRORS = (httpx.TimeoutException, TimeoutError, socket.gaierror)


def describe_exception(
    error: BaseException, *, command: str | None = None
) -> ErrorDescriptor:
    """Summarise ``error`` for the person running ``command``.

    A :class:`GraphAPIError` anywhere in the cause chain wins over the outer
    exception, so wrapped Graph failures keep their recovery hints.
    """

    chain = list(_exception_chain(error))
    graph_error = next((item for item in chain if isinstance(item, GraphAPIError)), None)
    if graph_error is not None:
        descriptor = _describe_graph_error(graph_error)
    else:
        descriptor = _describe_local_error(chain[-1])
    prefix = _COMMAND_HEADLINES.get(command or "")
    if prefix:
        descriptor.headline = f"{prefix} {descriptor.headline}"
    return descriptor


def _exception_chain(error: BaseException) -> Iterator[BaseException]:
    seen: set[int] = set()
    current: BaseException | None = error
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = current.__cause__ or current.__context__


def _describe_graph_error(error: GraphAPIError) -> ErrorDescriptor:
    detail = str(error)
    if error.code:
        detail = f"{error.code}: {detail}"
    if error.status_code is not None:
        detail = f"HTTP {error.status_code} {detail}"
    return ErrorDescriptor(
        headline=_GRAPH_HEADLINES.get(error.category, "Microsoft Graph request failed."),
        detail=detail,
        severity=ErrorSeverity.WARNING if error.is_retriable else ErrorSeverity.ERROR,
        suggestion=error.recovery_suggestion,
        help_url=error.help_url,
        reproduce=error.cli_example,
    )


def _describe_local_error(error: BaseException) -> ErrorDescriptor:
    if isinstance(error, _NETWORK_ERRORS):
        return ErrorDescriptor(
            headline="Could not reach Microsoft Graph.",
            detail=f"{type(error).__name__}: {error}".rstrip(": "),
            severity=ErrorSeverity.WARNING,
            suggestion="Check connectivity to graph.microsoft.com and rerun.",
        )
    if isinstance(error, ValueError):
        return ErrorDescriptor(
            headline="Invalid arguments.",
            detail=str(error),
            suggestion="Run `intune-assign assign --help` for accepted values.",
        )
    return ErrorDescriptor(
        headline="Operation failed.",
        detail=f"{type(error).__name__}: {error}",
    )


__all__ = [
    "ErrorDescriptor",
    "ErrorSeverity",
    "describe_exception",
]
