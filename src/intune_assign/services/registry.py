from __future__ import annotations

from dataclasses import dataclass, field

from intune_assign.graph.client import GraphClientFactory

from .assignments import AssignmentService
from .export import ReportExporter
from .reports import AssignmentReportService


@dataclass(slots=True)
class ServiceRegistry:
    """Services sharing one authenticated Graph client."""

    client_factory: GraphClientFactory
    assignments: AssignmentService
    reports: AssignmentReportService
    export: ReportExporter = field(default_factory=ReportExporter)

    async def close(self) -> None:
        await self.client_factory.close()


__all__ = ["ServiceRegistry"]
