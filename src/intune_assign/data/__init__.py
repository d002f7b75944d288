"""Data layer: Graph payload models and response validation."""

from .models import (
    WIN32_LOB_APP_ODATA_TYPE,
    AppAssignmentReport,
    AssignmentFilterType,
    AssignmentIntent,
    DeliveryOptimizationPriority,
    DirectoryGroup,
    GroupAssignmentTarget,
    InstallTimeSettings,
    MobileAppAssignment,
    MobileAppAssignmentRequest,
    NotificationMode,
    ResolvedAssignment,
    RestartSettings,
    Win32AppAssignmentSettings,
    Win32LobApp,
    is_win32_payload,
)
from .validation import GraphResponseValidator, ValidationIssue

__all__ = [
    "WIN32_LOB_APP_ODATA_TYPE",
    "Win32LobApp",
    "is_win32_payload",
    "AssignmentIntent",
    "NotificationMode",
    "DeliveryOptimizationPriority",
    "AssignmentFilterType",
    "GroupAssignmentTarget",
    "InstallTimeSettings",
    "RestartSettings",
    "Win32AppAssignmentSettings",
    "MobileAppAssignmentRequest",
    "MobileAppAssignment",
    "DirectoryGroup",
    "ResolvedAssignment",
    "AppAssignmentReport",
    "GraphResponseValidator",
    "ValidationIssue",
]
