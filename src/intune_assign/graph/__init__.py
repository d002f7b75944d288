"""Graph client utilities."""

from .client import (
    GraphClientConfig,
    GraphClientFactory,
    GraphTelemetryEvent,
    az_rest_command,
)
from .errors import (
    GRAPH_PERMISSIONS,
    AuthenticationError,
    GraphAPIError,
    GraphErrorCategory,
    PermissionError,
    RateLimitError,
)

__all__ = [
    "GRAPH_PERMISSIONS",
    "GraphAPIError",
    "GraphErrorCategory",
    "RateLimitError",
    "AuthenticationError",
    "PermissionError",
    "GraphClientFactory",
    "GraphClientConfig",
    "GraphTelemetryEvent",
    "az_rest_command",
]
