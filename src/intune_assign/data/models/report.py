from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ResolvedAssignment(BaseModel):
    """An existing assignment decorated with its target group's display name."""

    model_config = ConfigDict(frozen=True)

    intent: str | None = None
    group_id: str | None = None
    group_name: str
    start_time: str | None = None
    deadline_time: str | None = None
    notifications: str | None = None


class AppAssignmentReport(BaseModel):
    """Assignments of one app; ``error`` is set when they could not be fetched."""

    model_config = ConfigDict(frozen=True)

    app_id: str
    display_name: str
    assignments: list[ResolvedAssignment] = Field(default_factory=list)
    error: str | None = None
