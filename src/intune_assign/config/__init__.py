"""Configuration helpers for the Intune app assignment tool."""

from .settings import DEFAULT_GRAPH_SCOPES, Settings, SettingsManager

__all__ = [
    "DEFAULT_GRAPH_SCOPES",
    "Settings",
    "SettingsManager",
]
