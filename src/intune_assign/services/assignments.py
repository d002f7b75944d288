from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from typing import Any, Iterable, Sequence, TypeVar

from intune_assign.data import (
    AssignmentFilterType,
    AssignmentIntent,
    DeliveryOptimizationPriority,
    GroupAssignmentTarget,
    InstallTimeSettings,
    MobileAppAssignmentRequest,
    NotificationMode,
    RestartSettings,
    Win32AppAssignmentSettings,
    Win32LobApp,
)
from intune_assign.graph.client import GraphClientFactory
from intune_assign.graph.errors import GraphAPIError
from intune_assign.graph.requests import GraphRequest, mobile_app_assign_request
from intune_assign.services.base import EventHook, MutationStatus
from intune_assign.utils import get_logger


logger = get_logger(__name__)

EnumT = TypeVar("EnumT", bound=StrEnum)

# yyyy-MM-ddTHH:mm:ss.fffZ
_TIMESTAMP_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$")
_TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"

COUNTDOWN_RANGE = (1, 240)
GRACE_PERIOD_RANGE = (1, 20160)
SNOOZE_RANGE = (1, 712)

DEFAULT_COUNTDOWN_MINUTES = 15
DEFAULT_GRACE_PERIOD_MINUTES = 1440
DEFAULT_SNOOZE_MINUTES = 240


class AssignmentValidationError(ValueError):
    """Raised for invalid assignment arguments, always before any Graph call."""


@dataclass(slots=True)
class AssignmentOptions:
    notifications: NotificationMode = NotificationMode.SHOW_ALL
    delivery_optimization_priority: DeliveryOptimizationPriority = (
        DeliveryOptimizationPriority.NOT_CONFIGURED
    )
    install_time_settings: InstallTimeSettings | None = None
    restart_settings: RestartSettings | None = None
    filter_id: str | None = None
    filter_type: AssignmentFilterType = AssignmentFilterType.NONE


@dataclass(slots=True)
class AssignmentResult:
    app_id: str
    intent: AssignmentIntent
    status: MutationStatus
    assignment_count: int
    payload: dict[str, Any]
    response: dict[str, Any] | None = None
    error: GraphAPIError | None = None

    @property
    def succeeded(self) -> bool:
        return self.status is MutationStatus.SUCCEEDED


def validate_timestamp(value: str, *, name: str) -> str:
    """Return ``value`` unchanged if it is an exact ``yyyy-MM-ddTHH:mm:ss.fffZ`` UTC time."""

    if not isinstance(value, str) or not _TIMESTAMP_PATTERN.match(value):
        raise AssignmentValidationError(
            f"{name} must use the UTC format yyyy-MM-ddTHH:mm:ss.fffZ, got {value!r}"
        )
    try:
        datetime.strptime(value, _TIMESTAMP_FORMAT)
    except ValueError as exc:
        raise AssignmentValidationError(f"{name} is not a valid date: {value!r}") from exc
    return value


def _check_range(name: str, value: int, bounds: tuple[int, int]) -> int:
    low, high = bounds
    if isinstance(value, bool) or not isinstance(value, int):
        raise AssignmentValidationError(f"{name} must be an integer, got {value!r}")
    if not low <= value <= high:
        raise AssignmentValidationError(
            f"{name} must be between {low} and {high}, got {value}"
        )
    return value


def _coerce_enum(enum_cls: type[EnumT], value: EnumT | str, *, name: str) -> EnumT:
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        lowered = value.lower()
        for member in enum_cls:
            if member.value.lower() == lowered or member.name.lower() == lowered:
                return member
    choices = ", ".join(member.value for member in enum_cls)
    raise AssignmentValidationError(f"{name} must be one of {choices}, got {value!r}")


def build_assignment_options(
    *,
    notifications: NotificationMode | str = NotificationMode.SHOW_ALL,
    delivery_optimization_priority: DeliveryOptimizationPriority | str = (
        DeliveryOptimizationPriority.NOT_CONFIGURED
    ),
    start_time: str | None = None,
    deadline_time: str | None = None,
    use_local_time: bool = False,
    restart_grace_period: bool = False,
    grace_period_minutes: int = DEFAULT_GRACE_PERIOD_MINUTES,
    countdown_minutes: int = DEFAULT_COUNTDOWN_MINUTES,
    allow_snooze: bool = False,
    snooze_minutes: int = DEFAULT_SNOOZE_MINUTES,
    filter_id: str | None = None,
    filter_type: AssignmentFilterType | str | None = None,
) -> AssignmentOptions:
    """Validate caller options and compute the shared settings sub-objects.

    The install time window only exists when at least one bound is given. The
    restart object exists when a grace period or snooze is requested; when
    both are requested the snooze variant is the one applied.
    """

    notification_mode = _coerce_enum(NotificationMode, notifications, name="notifications")
    priority = _coerce_enum(
        DeliveryOptimizationPriority,
        delivery_optimization_priority,
        name="delivery_optimization_priority",
    )
    if start_time is not None:
        validate_timestamp(start_time, name="start_time")
    if deadline_time is not None:
        validate_timestamp(deadline_time, name="deadline_time")
    _check_range("grace_period_minutes", grace_period_minutes, GRACE_PERIOD_RANGE)
    _check_range("countdown_minutes", countdown_minutes, COUNTDOWN_RANGE)
    _check_range("snooze_minutes", snooze_minutes, SNOOZE_RANGE)

    install_time_settings: InstallTimeSettings | None = None
    if start_time is not None or deadline_time is not None:
        install_time_settings = InstallTimeSettings(
            use_local_time=bool(use_local_time),
            start_date_time=start_time,
            deadline_date_time=deadline_time,
        )

    restart_settings: RestartSettings | None = None
    if restart_grace_period:
        restart_settings = RestartSettings(
            grace_period_in_minutes=grace_period_minutes,
            countdown_display_before_restart_in_minutes=countdown_minutes,
            restart_notification_snooze_duration_in_minutes=None,
        )
    if allow_snooze:
        restart_settings = RestartSettings(
            grace_period_in_minutes=grace_period_minutes,
            countdown_display_before_restart_in_minutes=countdown_minutes,
            restart_notification_snooze_duration_in_minutes=snooze_minutes,
        )

    resolved_filter_type = AssignmentFilterType.NONE
    if filter_type is not None:
        resolved_filter_type = _coerce_enum(
            AssignmentFilterType, filter_type, name="filter_type"
        )
    if filter_id:
        if resolved_filter_type is AssignmentFilterType.NONE:
            if filter_type is not None:
                raise AssignmentValidationError(
                    "filter_type must be include or exclude when filter_id is set"
                )
            resolved_filter_type = AssignmentFilterType.INCLUDE
    elif resolved_filter_type is not AssignmentFilterType.NONE:
        raise AssignmentValidationError("filter_type requires a filter_id")

    return AssignmentOptions(
        notifications=notification_mode,
        delivery_optimization_priority=priority,
        install_time_settings=install_time_settings,
        restart_settings=restart_settings,
        filter_id=filter_id or None,
        filter_type=resolved_filter_type,
    )


def build_assignments(
    intent: AssignmentIntent | str,
    group_ids: Sequence[str],
    options: AssignmentOptions | None = None,
) -> list[MobileAppAssignmentRequest]:
    """Return one assignment entry per group id, in the order given."""

    resolved_intent = _coerce_enum(AssignmentIntent, intent, name="intent")
    if isinstance(group_ids, str) or not group_ids:
        raise AssignmentValidationError("At least one group id is required")
    for group_id in group_ids:
        if not isinstance(group_id, str) or not group_id.strip():
            raise AssignmentValidationError(f"Invalid group id: {group_id!r}")

    opts = options or AssignmentOptions()
    # Computed once; every entry references the same settings object.
    settings = Win32AppAssignmentSettings(
        notifications=opts.notifications,
        install_time_settings=opts.install_time_settings,
        restart_settings=opts.restart_settings,
        delivery_optimization_priority=opts.delivery_optimization_priority,
    )
    return [
        MobileAppAssignmentRequest(
            intent=resolved_intent,
            target=GroupAssignmentTarget(
                group_id=group_id,
                assignment_filter_id=opts.filter_id,
                assignment_filter_type=opts.filter_type,
            ),
            settings=settings,
        )
        for group_id in group_ids
    ]


def normalize_empty_strings(value: Any) -> Any:
    """Recursively replace ``""`` with ``None`` throughout a JSON-ready payload."""

    if isinstance(value, dict):
        return {key: normalize_empty_strings(item) for key, item in value.items()}
    if isinstance(value, list):
        return [normalize_empty_strings(item) for item in value]
    if value == "":
        return None
    return value


def build_assign_payload(
    assignments: Iterable[MobileAppAssignmentRequest],
) -> dict[str, Any]:
    """Wrap entries as the ``/assign`` body with empty strings sent as null."""

    return normalize_empty_strings(
        {"mobileAppAssignments": [assignment.to_graph() for assignment in assignments]}
    )


def build_assign_request(
    app_id: str,
    assignments: Iterable[MobileAppAssignmentRequest],
) -> GraphRequest:
    request = mobile_app_assign_request(app_id, [])
    request.body = build_assign_payload(assignments)
    return request


def resolve_app_id(app_id: str | None = None, app: Win32LobApp | None = None) -> str:
    """Return the target app id from exactly one of ``app_id`` or ``app``."""

    if app_id is not None and app is not None:
        raise AssignmentValidationError("Pass either app_id or app, not both")
    if app is not None:
        if not isinstance(app, Win32LobApp) or not app.is_win32:
            raise TypeError(
                f"Expected a Win32 LOB app, got {type(app).__name__}"
                + (f" ({app.odata_type})" if isinstance(app, Win32LobApp) else "")
            )
        return app.id
    if app_id is None or not str(app_id).strip():
        raise AssignmentValidationError("An app id or app object is required")
    return app_id


@dataclass(slots=True)
class AssignmentAppliedEvent:
    app_id: str
    intent: AssignmentIntent
    status: MutationStatus
    error: Exception | None = None


class AssignmentService:
    """Replace the assignments of a Win32 app with a freshly built list."""

    def __init__(self, client_factory: GraphClientFactory) -> None:
        self._client_factory = client_factory
        self.applied: EventHook[AssignmentAppliedEvent] = EventHook()

    async def assign(
        self,
        intent: AssignmentIntent | str,
        group_ids: Sequence[str],
        *,
        app_id: str | None = None,
        app: Win32LobApp | None = None,
        options: AssignmentOptions | None = None,
    ) -> AssignmentResult:
        """Submit the assignment list, replacing existing assignments.

        Validation problems raise :class:`AssignmentValidationError` (or
        ``TypeError`` for a wrong app object) before any request is sent.
        Graph failures are logged and returned as a failed result.
        """

        target_id = resolve_app_id(app_id, app)
        resolved_intent = _coerce_enum(AssignmentIntent, intent, name="intent")
        assignments = build_assignments(resolved_intent, group_ids, options)
        request = build_assign_request(target_id, assignments)

        self.applied.emit(
            AssignmentAppliedEvent(
                app_id=target_id, intent=resolved_intent, status=MutationStatus.PENDING
            )
        )
        try:
            response = await self._client_factory.execute(request)
        except GraphAPIError as exc:
            logger.error(
                "Failed to assign app",
                app_id=target_id,
                intent=resolved_intent.value,
                groups=len(assignments),
                status_code=exc.status_code,
                error=str(exc),
            )
            self.applied.emit(
                AssignmentAppliedEvent(
                    app_id=target_id,
                    intent=resolved_intent,
                    status=MutationStatus.FAILED,
                    error=exc,
                )
            )
            return AssignmentResult(
                app_id=target_id,
                intent=resolved_intent,
                status=MutationStatus.FAILED,
                assignment_count=len(assignments),
                payload=request.body,
                error=exc,
            )

        logger.info(
            "App assignments replaced",
            app_id=target_id,
            intent=resolved_intent.value,
            groups=len(assignments),
        )
        self.applied.emit(
            AssignmentAppliedEvent(
                app_id=target_id, intent=resolved_intent, status=MutationStatus.SUCCEEDED
            )
        )
        return AssignmentResult(
            app_id=target_id,
            intent=resolved_intent,
            status=MutationStatus.SUCCEEDED,
            assignment_count=len(assignments),
            payload=request.body,
            response=response,
        )

    async def assign_required(
        self, group_ids: Sequence[str], **kwargs: Any
    ) -> AssignmentResult:
        return await self.assign(AssignmentIntent.REQUIRED, group_ids, **kwargs)

    async def assign_available(
        self, group_ids: Sequence[str], **kwargs: Any
    ) -> AssignmentResult:
        return await self.assign(AssignmentIntent.AVAILABLE, group_ids, **kwargs)

    async def assign_uninstall(
        self, group_ids: Sequence[str], **kwargs: Any
    ) -> AssignmentResult:
        return await self.assign(AssignmentIntent.UNINSTALL, group_ids, **kwargs)


__all__ = [
    "AssignmentAppliedEvent",
    "AssignmentOptions",
    "AssignmentResult",
    "AssignmentService",
    "AssignmentValidationError",
    "build_assign_payload",
    "build_assign_request",
    "build_assignment_options",
    "build_assignments",
    "normalize_empty_strings",
    "resolve_app_id",
    "validate_timestamp",
]
