"""Domain models representing Microsoft Graph Intune resources."""

from .application import WIN32_LOB_APP_ODATA_TYPE, Win32LobApp, is_win32_payload
from .assignment import (
    AssignmentFilterType,
    AssignmentIntent,
    AssignmentSettingsSnapshot,
    AssignmentTargetRef,
    DeliveryOptimizationPriority,
    GroupAssignmentTarget,
    InstallTimeSettings,
    MobileAppAssignment,
    MobileAppAssignmentRequest,
    NotificationMode,
    RestartSettings,
    Win32AppAssignmentSettings,
)
from .common import GraphBaseModel, GraphResource
from .group import DirectoryGroup
from .report import AppAssignmentReport, ResolvedAssignment

__all__ = [
    "GraphBaseModel",
    "GraphResource",
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
    "AssignmentTargetRef",
    "AssignmentSettingsSnapshot",
    "MobileAppAssignment",
    "DirectoryGroup",
    "ResolvedAssignment",
    "AppAssignmentReport",
]
