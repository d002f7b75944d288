from __future__ import annotations

import json

import httpx
import pytest
import respx

from intune_assign.auth.types import AccessToken
from intune_assign.graph.client import (
    GraphClientConfig,
    GraphClientFactory,
    GraphTelemetryEvent,
    az_rest_command,
)
from intune_assign.graph.errors import (
    AuthenticationError,
    GraphAPIError,
    GraphErrorCategory,
    PermissionError,
    RateLimitError,
)
from intune_assign.graph.requests import (
    group_request,
    mobile_app_assign_request,
    mobile_apps_request,
)
from intune_assign.services import AssignmentReportService

from tests.factories import make_access_token


GRAPH = "https://graph.microsoft.com"


def _token_provider(_scopes: object) -> AccessToken:
    return make_access_token("secret-token")


def _factory(**config: object) -> GraphClientFactory:
    return GraphClientFactory(
        _token_provider, GraphClientConfig(scopes=[".default"], **config)
    )


def test_build_url_prefixes_version_and_keeps_absolute_links() -> None:
    factory = _factory()
    next_link = f"{GRAPH}/v1.0/deviceAppManagement/mobileApps?$skiptoken=abc"

    assert factory.build_url("/groups/g1") == f"{GRAPH}/v1.0/groups/g1"
    assert factory.build_url("groups/g1", "beta") == f"{GRAPH}/beta/groups/g1"
    assert factory.build_url(next_link, "beta") == next_link
    assert _factory(api_version="beta").build_url("/groups") == f"{GRAPH}/beta/groups"


def test_az_rest_command_quotes_body_and_truncates() -> None:
    command = az_rest_command("POST", f"{GRAPH}/beta/x", {"note": "a" * 2000})

    assert command.startswith("az rest --method POST --url")
    assert "--body" in command
    assert command.endswith("...'")
    assert len(command) < 1000


@pytest.mark.asyncio
async def test_execute_sends_bearer_token_and_params() -> None:
    factory = _factory()
    async with respx.mock(assert_all_called=True) as router:
        route = router.get(f"{GRAPH}/v1.0/groups/g1").mock(
            return_value=httpx.Response(200, json={"id": "g1", "displayName": "Ops"})
        )

        payload = await factory.execute(group_request("g1"))

    await factory.close()
    assert payload == {"id": "g1", "displayName": "Ops"}
    sent = route.calls.last.request
    assert sent.headers["Authorization"] == "Bearer secret-token"
    assert sent.url.params["$select"] == "id,displayName"


@pytest.mark.asyncio
async def test_assign_request_targets_beta_and_handles_no_content() -> None:
    factory = _factory()
    async with respx.mock(assert_all_called=True) as router:
        route = router.post(
            f"{GRAPH}/beta/deviceAppManagement/mobileApps/app-1/assign"
        ).mock(return_value=httpx.Response(204))

        payload = await factory.execute(
            mobile_app_assign_request("app-1", [{"intent": "Required"}])
        )

    await factory.close()
    assert payload == {}
    assert json.loads(route.calls.last.request.content) == {
        "mobileAppAssignments": [{"intent": "Required"}]
    }


@pytest.mark.asyncio
async def test_iter_collection_follows_next_link() -> None:
    factory = _factory()
    request = mobile_apps_request()
    next_link = f"{GRAPH}/v1.0/deviceAppManagement/mobileApps?$skiptoken=abc"
    async with respx.mock(assert_all_called=True) as router:
        router.get(next_link).mock(
            return_value=httpx.Response(200, json={"value": [{"id": "app-2"}]})
        )
        first = router.get(f"{GRAPH}/v1.0/deviceAppManagement/mobileApps").mock(
            return_value=httpx.Response(
                200,
                json={"value": [{"id": "app-1"}], "@odata.nextLink": next_link},
            )
        )

        items = [
            item
            async for item in factory.iter_collection(
                request.method,
                request.url,
                params=request.params,
                api_version=request.api_version,
            )
        ]

    await factory.close()
    assert [item["id"] for item in items] == ["app-1", "app-2"]
    assert first.calls[0].request.url.params["$top"] == "999"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("status", "error_type", "category"),
    [
        (400, GraphAPIError, GraphErrorCategory.VALIDATION),
        (401, AuthenticationError, GraphErrorCategory.AUTHENTICATION),
        (403, PermissionError, GraphErrorCategory.PERMISSION),
        (404, GraphAPIError, GraphErrorCategory.VALIDATION),
        (409, GraphAPIError, GraphErrorCategory.CONFLICT),
        (429, RateLimitError, GraphErrorCategory.RATE_LIMIT),
        (500, GraphAPIError, GraphErrorCategory.SERVER),
        (418, GraphAPIError, GraphErrorCategory.UNKNOWN),
    ],
)
async def test_error_statuses_raise_graph_errors(
    status: int, error_type: type[GraphAPIError], category: GraphErrorCategory
) -> None:
    factory = _factory()
    async with respx.mock() as router:
        router.get(f"{GRAPH}/v1.0/groups/g1").mock(
            return_value=httpx.Response(
                status,
                json={"error": {"code": "Boom", "message": f"status {status}"}},
                headers={"Retry-After": "5"},
            )
        )
        with pytest.raises(error_type) as excinfo:
            await factory.execute(group_request("g1"))

    await factory.close()
    error = excinfo.value
    assert error.category is category
    assert str(error) == f"status {status}"
    assert error.request_method == "GET"
    assert error.request_url is not None and "/v1.0/groups/g1" in error.request_url
    assert error.cli_example is not None
    assert "secret-token" not in error.cli_example


@pytest.mark.asyncio
async def test_assign_failure_includes_body_in_cli_example() -> None:
    factory = _factory()
    async with respx.mock() as router:
        router.post(f"{GRAPH}/beta/deviceAppManagement/mobileApps/app-1/assign").mock(
            return_value=httpx.Response(400, json={"error": {"message": "Bad target"}})
        )
        with pytest.raises(GraphAPIError) as excinfo:
            await factory.execute(mobile_app_assign_request("app-1", []))

    await factory.close()
    assert excinfo.value.status_code == 400
    assert "--body" in excinfo.value.cli_example
    assert "mobileAppAssignments" in excinfo.value.cli_example


@pytest.mark.asyncio
async def test_transport_errors_become_network_errors() -> None:
    events: list[GraphTelemetryEvent] = []
    factory = _factory(telemetry_callback=events.append)
    async with respx.mock() as router:
        router.get(f"{GRAPH}/v1.0/groups/g1").mock(
            side_effect=httpx.ConnectError("connection refused")
        )
        with pytest.raises(GraphAPIError) as excinfo:
            await factory.execute(group_request("g1"))

    await factory.close()
    assert excinfo.value.category is GraphErrorCategory.NETWORK
    assert excinfo.value.is_retriable
    assert len(events) == 1
    assert events[0].success is False


@pytest.mark.asyncio
async def test_requests_are_not_retried() -> None:
    factory = _factory()
    async with respx.mock() as router:
        route = router.get(f"{GRAPH}/v1.0/groups/g1").mock(
            return_value=httpx.Response(503, text="unavailable")
        )
        with pytest.raises(GraphAPIError):
            await factory.execute(group_request("g1"))

    await factory.close()
    assert route.call_count == 1


@pytest.mark.asyncio
async def test_assignments_listing_sends_no_query_string() -> None:
    factory = _factory()
    url = f"{GRAPH}/v1.0/deviceAppManagement/mobileApps/app-1/assignments"
    async with respx.mock(assert_all_called=True) as router:
        route = router.get(url).mock(return_value=httpx.Response(200, json={"value": []}))

        assignments = await AssignmentReportService(factory).list_assignments("app-1")

    await factory.close()
    assert assignments == []
    sent = route.calls.last.request
    assert str(sent.url) == url
    assert sent.url.query == b""


@pytest.mark.asyncio
async def test_iter_collection_without_params_adds_no_top() -> None:
    factory = _factory()
    async with respx.mock(assert_all_called=True) as router:
        route = router.get(f"{GRAPH}/v1.0/groups").mock(
            return_value=httpx.Response(200, json={"value": [{"id": "g1"}]})
        )

        items = [item async for item in factory.iter_collection("GET", "/groups")]

    await factory.close()
    assert items == [{"id": "g1"}]
    assert "$top" not in route.calls.last.request.url.params
