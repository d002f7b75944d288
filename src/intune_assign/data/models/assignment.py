from __future__ import annotations

from enum import StrEnum
from typing import Any, Literal

from pydantic import Field

from .common import GraphBaseModel, GraphResource


class AssignmentIntent(StrEnum):
    REQUIRED = "Required"
    AVAILABLE = "Available"
    UNINSTALL = "Uninstall"

    @classmethod
    def _missing_(cls, value: object):
        if isinstance(value, str):
            normalised = value.lower()
            for member in cls:
                if member.value.lower() == normalised:
                    return member
        return None


class NotificationMode(StrEnum):
    SHOW_ALL = "showAll"
    SHOW_REBOOT = "showReboot"
    HIDE_ALL = "hideAll"


class DeliveryOptimizationPriority(StrEnum):
    NOT_CONFIGURED = "notConfigured"
    FOREGROUND = "foreground"


class AssignmentFilterType(StrEnum):
    """Filter mode for assignment targeting.

    - NONE: No filter applied
    - INCLUDE: Include only devices that match the filter
    - EXCLUDE: Exclude devices that match the filter
    """

    NONE = "none"
    INCLUDE = "include"
    EXCLUDE = "exclude"


class GroupAssignmentTarget(GraphBaseModel):
    odata_type: Literal["#microsoft.graph.groupAssignmentTarget"] = Field(
        default="#microsoft.graph.groupAssignmentTarget",
        alias="@odata.type",
    )
    group_id: str = Field(alias="groupId")
    assignment_filter_id: str | None = Field(
        default=None,
        alias="deviceAndAppManagementAssignmentFilterId",
    )
    assignment_filter_type: AssignmentFilterType = Field(
        default=AssignmentFilterType.NONE,
        alias="deviceAndAppManagementAssignmentFilterType",
    )


class InstallTimeSettings(GraphBaseModel):
    """Install window; a missing bound is sent as an explicit ``null``."""

    use_local_time: bool = Field(default=False, alias="useLocalTime")
    start_date_time: str | None = Field(default=None, alias="startDateTime")
    deadline_date_time: str | None = Field(default=None, alias="deadlineDateTime")


class RestartSettings(GraphBaseModel):
    grace_period_in_minutes: int = Field(alias="gracePeriodInMinutes")
    countdown_display_before_restart_in_minutes: int = Field(
        alias="countdownDisplayBeforeRestartInMinutes"
    )
    restart_notification_snooze_duration_in_minutes: int | None = Field(
        default=None,
        alias="restartNotificationSnoozeDurationInMinutes",
    )


class Win32AppAssignmentSettings(GraphBaseModel):
    odata_type: Literal["#microsoft.graph.win32LobAppAssignmentSettings"] = Field(
        default="#microsoft.graph.win32LobAppAssignmentSettings",
        alias="@odata.type",
    )
    notifications: NotificationMode = NotificationMode.SHOW_ALL
    install_time_settings: InstallTimeSettings | None = Field(
        default=None, alias="installTimeSettings"
    )
    restart_settings: RestartSettings | None = Field(
        default=None, alias="restartSettings"
    )
    delivery_optimization_priority: DeliveryOptimizationPriority = Field(
        default=DeliveryOptimizationPriority.NOT_CONFIGURED,
        alias="deliveryOptimizationPriority",
    )

    def to_graph(self) -> dict[str, Any]:
        # installTimeSettings is always sent (null when unset); restartSettings
        # is only sent when configured.
        payload: dict[str, Any] = {
            "@odata.type": self.odata_type,
            "notifications": self.notifications,
            "installTimeSettings": (
                self.install_time_settings.to_graph(keep_nulls=True)
                if self.install_time_settings is not None
                else None
            ),
            "deliveryOptimizationPriority": self.delivery_optimization_priority,
        }
        if self.restart_settings is not None:
            payload["restartSettings"] = self.restart_settings.to_graph(
                keep_nulls=True
            )
        return payload


class MobileAppAssignmentRequest(GraphBaseModel):
    """One entry of the ``mobileAppAssignments`` list posted to ``/assign``."""

    odata_type: Literal["#microsoft.graph.mobileAppAssignment"] = Field(
        default="#microsoft.graph.mobileAppAssignment",
        alias="@odata.type",
    )
    intent: AssignmentIntent
    target: GroupAssignmentTarget
    settings: Win32AppAssignmentSettings | None = None

    def to_graph(self) -> dict[str, Any]:
        return {
            "@odata.type": self.odata_type,
            "intent": self.intent,
            "target": self.target.to_graph(),
            "settings": self.settings.to_graph() if self.settings is not None else None,
        }


class AssignmentTargetRef(GraphBaseModel):
    """Target of an existing assignment; ``groupId`` is absent for tenant-wide targets."""

    odata_type: str | None = Field(default=None, alias="@odata.type")
    group_id: str | None = Field(default=None, alias="groupId")


class AssignmentSettingsSnapshot(GraphBaseModel):
    notifications: str | None = None
    install_time_settings: InstallTimeSettings | None = Field(
        default=None, alias="installTimeSettings"
    )


class MobileAppAssignment(GraphResource):
    """An assignment as returned by ``mobileApps/{id}/assignments``."""

    intent: str | None = None
    target: AssignmentTargetRef = Field(default_factory=AssignmentTargetRef)
    settings: AssignmentSettingsSnapshot | None = None

    @property
    def group_id(self) -> str | None:
        return self.target.group_id


__all__ = [
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
]
