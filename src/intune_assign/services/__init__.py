"""Service layer for assigning Win32 apps and reporting on assignments."""

from .assignments import (
    AssignmentAppliedEvent,
    AssignmentOptions,
    AssignmentResult,
    AssignmentService,
    AssignmentValidationError,
    build_assign_payload,
    build_assign_request,
    build_assignment_options,
    build_assignments,
    resolve_app_id,
)
from .base import EventHook, MutationStatus, ServiceErrorEvent
from .export import ReportExporter
from .groups import GroupNameResolver
from .registry import ServiceRegistry
from .reports import AssignmentReportService

__all__ = [
    "AssignmentAppliedEvent",
    "AssignmentOptions",
    "AssignmentResult",
    "AssignmentService",
    "AssignmentValidationError",
    "AssignmentReportService",
    "EventHook",
    "GroupNameResolver",
    "MutationStatus",
    "ReportExporter",
    "ServiceErrorEvent",
    "ServiceRegistry",
    "build_assign_payload",
    "build_assign_request",
    "build_assignment_options",
    "build_assignments",
    "resolve_app_id",
]
