from __future__ import annotations

import pytest

from intune_assign.data import AssignmentIntent
from intune_assign.graph.errors import GraphAPIError, GraphErrorCategory, PermissionError
from intune_assign.services import (
    AssignmentService,
    AssignmentValidationError,
    MutationStatus,
    build_assignment_options,
)

from tests.factories import make_win32_app
from tests.stubs import FakeGraphClientFactory


ASSIGN_PATH = "/deviceAppManagement/mobileApps/app-1/assign"


@pytest.mark.asyncio
async def test_assign_posts_full_list_to_beta(fake_graph: FakeGraphClientFactory) -> None:
    service = AssignmentService(fake_graph)

    result = await service.assign("Required", ["g1", "g2"], app_id="app-1")

    assert result.succeeded
    assert result.assignment_count == 2
    (recorded,) = fake_graph.requests_for("POST", ASSIGN_PATH)
    assert recorded["api_version"] == "beta"
    entries = recorded["json"]["mobileAppAssignments"]
    assert [entry["target"]["groupId"] for entry in entries] == ["g1", "g2"]
    assert {entry["intent"] for entry in entries} == {"Required"}
    assert result.payload == recorded["json"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("method", "expected"),
    [
        ("assign_required", "Required"),
        ("assign_available", "Available"),
        ("assign_uninstall", "Uninstall"),
    ],
)
async def test_intent_wrappers(
    fake_graph: FakeGraphClientFactory, method: str, expected: str
) -> None:
    service = AssignmentService(fake_graph)
    options = build_assignment_options(
        deadline_time="2025-07-01T12:00:00.000Z", restart_grace_period=True
    )

    result = await getattr(service, method)(["g1"], app_id="app-1", options=options)

    assert result.intent == AssignmentIntent(expected)
    entry = fake_graph.requests_for("POST", ASSIGN_PATH)[0]["json"]["mobileAppAssignments"][0]
    assert entry["intent"] == expected
    assert entry["settings"]["installTimeSettings"]["deadlineDateTime"] == (
        "2025-07-01T12:00:00.000Z"
    )
    assert entry["settings"]["restartSettings"][
        "restartNotificationSnoozeDurationInMinutes"
    ] is None


@pytest.mark.asyncio
async def test_assign_accepts_app_object(fake_graph: FakeGraphClientFactory) -> None:
    service = AssignmentService(fake_graph)

    result = await service.assign("Available", ["g1"], app=make_win32_app("app-1"))

    assert result.app_id == "app-1"
    assert fake_graph.requests_for("POST", ASSIGN_PATH)


@pytest.mark.asyncio
async def test_assign_rejects_non_win32_app(fake_graph: FakeGraphClientFactory) -> None:
    service = AssignmentService(fake_graph)
    app = make_win32_app("app-1", odata_type="#microsoft.graph.winGetApp")

    with pytest.raises(TypeError):
        await service.assign("Required", ["g1"], app=app)
    with pytest.raises(TypeError):
        await service.assign("Required", ["g1"], app={"id": "app-1"})  # type: ignore[arg-type]
    assert fake_graph.recorded_requests == []


@pytest.mark.asyncio
async def test_assign_requires_exactly_one_app_reference(
    fake_graph: FakeGraphClientFactory,
) -> None:
    service = AssignmentService(fake_graph)

    with pytest.raises(AssignmentValidationError):
        await service.assign("Required", ["g1"])
    with pytest.raises(AssignmentValidationError):
        await service.assign(
            "Required", ["g1"], app_id="app-1", app=make_win32_app("app-1")
        )
    assert fake_graph.recorded_requests == []


@pytest.mark.asyncio
async def test_invalid_groups_fail_before_network(
    fake_graph: FakeGraphClientFactory,
) -> None:
    service = AssignmentService(fake_graph)

    with pytest.raises(AssignmentValidationError):
        await service.assign("Required", [], app_id="app-1")
    assert fake_graph.recorded_requests == []


@pytest.mark.asyncio
async def test_remote_failure_returns_failed_result(
    fake_graph: FakeGraphClientFactory,
) -> None:
    error = PermissionError("Forbidden")
    fake_graph.set_response("POST", ASSIGN_PATH, error)
    service = AssignmentService(fake_graph)
    events = []
    service.applied.subscribe(events.append)

    result = await service.assign("Uninstall", ["g1"], app_id="app-1")

    assert not result.succeeded
    assert result.status is MutationStatus.FAILED
    assert result.error is error
    assert result.error.category is GraphErrorCategory.PERMISSION
    assert [event.status for event in events] == [
        MutationStatus.PENDING,
        MutationStatus.FAILED,
    ]


@pytest.mark.asyncio
async def test_validation_error_from_graph_is_reported_not_raised(
    fake_graph: FakeGraphClientFactory,
) -> None:
    fake_graph.set_response(
        "POST",
        ASSIGN_PATH,
        GraphAPIError(
            message="Invalid groupId",
            category=GraphErrorCategory.VALIDATION,
            status_code=400,
        ),
    )
    service = AssignmentService(fake_graph)

    result = await service.assign("Required", ["missing"], app_id="app-1")

    assert result.status is MutationStatus.FAILED
    assert result.error is not None
    assert result.error.status_code == 400
