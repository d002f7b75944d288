from __future__ import annotations

from typing import Any, AsyncIterator, Collection

from intune_assign.data import (
    AppAssignmentReport,
    GraphResponseValidator,
    MobileAppAssignment,
    ResolvedAssignment,
    Win32LobApp,
    is_win32_payload,
)
from intune_assign.graph.client import GraphClientFactory
from intune_assign.graph.errors import GraphAPIError
from intune_assign.graph.requests import (
    mobile_app_assignments_request,
    mobile_apps_request,
)
from intune_assign.services.base import EventHook, ServiceErrorEvent
from intune_assign.services.groups import GroupNameResolver
from intune_assign.utils import get_logger


logger = get_logger(__name__)


class AssignmentReportService:
    """Build the Win32 app assignment report for the whole tenant."""

    def __init__(
        self,
        client_factory: GraphClientFactory,
        resolver: GroupNameResolver | None = None,
    ) -> None:
        self._client_factory = client_factory
        self._resolver = resolver or GroupNameResolver(client_factory)
        self._app_validator = GraphResponseValidator("mobile_apps")
        self._assignment_validator = GraphResponseValidator("mobile_app_assignments")
        self.errors: EventHook[ServiceErrorEvent] = EventHook()

    @property
    def resolver(self) -> GroupNameResolver:
        return self._resolver

    async def _win32_payloads(
        self, app_ids: Collection[str] | None
    ) -> AsyncIterator[dict[str, Any]]:
        request = mobile_apps_request()
        skipped = 0
        async for payload in self._client_factory.iter_collection(
            request.method,
            request.url,
            params=request.params,
            api_version=request.api_version,
        ):
            if not is_win32_payload(payload):
                skipped += 1
                continue
            if app_ids is not None and payload.get("id") not in app_ids:
                continue
            yield payload
        logger.info("Listed mobile apps", other_app_types=skipped)

    async def list_win32_apps(
        self, *, app_ids: Collection[str] | None = None
    ) -> list[Win32LobApp]:
        """List valid Win32 apps in listing order; failures propagate."""

        self._app_validator.reset()
        apps: list[Win32LobApp] = []
        async for payload in self._win32_payloads(app_ids):
            app = self._app_validator.parse(Win32LobApp, payload)
            if app is not None:
                apps.append(app)
        return apps

    async def list_assignments(self, app_id: str) -> list[MobileAppAssignment]:
        request = mobile_app_assignments_request(app_id)
        payloads = [
            item
            async for item in self._client_factory.iter_collection(
                request.method,
                request.url,
                params=request.params,
                api_version=request.api_version,
            )
        ]
        return self._assignment_validator.parse_many(MobileAppAssignment, payloads)

    async def resolve_assignment(
        self, assignment: MobileAppAssignment
    ) -> ResolvedAssignment:
        group_id = assignment.group_id
        group_name = await self._resolver.resolve(group_id)
        settings = assignment.settings
        window = settings.install_time_settings if settings is not None else None
        return ResolvedAssignment(
            intent=assignment.intent,
            group_id=group_id,
            group_name=group_name,
            start_time=window.start_date_time if window is not None else None,
            deadline_time=window.deadline_date_time if window is not None else None,
            notifications=settings.notifications if settings is not None else None,
        )

    def _invalid_app_record(self, payload: dict[str, Any]) -> AppAssignmentReport:
        app_id = str(payload.get("id") or "")
        issue = self._app_validator.issues()[-1]
        fields = ", ".join(issue.fields) or "unknown fields"
        return AppAssignmentReport(
            app_id=app_id,
            display_name=str(payload.get("displayName") or app_id or "(unnamed app)"),
            error=f"App listing entry failed validation ({fields})",
        )

    async def build_report(
        self, *, app_ids: Collection[str] | None = None
    ) -> list[AppAssignmentReport]:
        """Return one record per Win32 app with its resolved assignments.

        A failure listing apps aborts the run. An app whose listing entry does
        not validate, or whose assignments cannot be fetched, gets a record
        with ``error`` set and the run continues.
        """

        self._app_validator.reset()
        report: list[AppAssignmentReport] = []
        async for payload in self._win32_payloads(app_ids):
            app = self._app_validator.parse(Win32LobApp, payload)
            if app is None:
                report.append(self._invalid_app_record(payload))
                continue
            try:
                assignments = await self.list_assignments(app.id)
            except GraphAPIError as exc:
                logger.warning(
                    "Failed to fetch app assignments",
                    app_id=app.id,
                    status_code=exc.status_code,
                    error=str(exc),
                )
                self.errors.emit(ServiceErrorEvent(resource_id=app.id, error=exc))
                report.append(
                    AppAssignmentReport(
                        app_id=app.id,
                        display_name=app.display_name,
                        error=str(exc),
                    )
                )
                continue

            resolved = [
                await self.resolve_assignment(assignment) for assignment in assignments
            ]
            report.append(
                AppAssignmentReport(
                    app_id=app.id,
                    display_name=app.display_name,
                    assignments=resolved,
                )
            )

        logger.info(
            "Assignment report built",
            apps=len(report),
            assignments=sum(len(entry.assignments) for entry in report),
            failed_apps=sum(1 for entry in report if entry.error),
            invalid_apps=len(self._app_validator.issues()),
            resolved_groups=len(self._resolver.cached),
        )
        return report


__all__ = ["AssignmentReportService"]
