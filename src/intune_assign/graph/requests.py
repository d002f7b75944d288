from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, Sequence


GraphMethod = Literal["GET", "POST", "PATCH", "DELETE", "PUT"]
BETA_VERSION = "beta"
V1_VERSION = "v1.0"

# Large enough to return a realistic tenant inventory in a single page.
MOBILE_APPS_PAGE_SIZE = 999


@dataclass(slots=True)
class GraphRequest:
    """Structured representation of a Microsoft Graph request."""

    method: GraphMethod
    url: str
    headers: dict[str, str] | None = None
    body: Any | None = None
    params: dict[str, Any] | None = None
    api_version: str | None = None


def mobile_apps_request(*, page_size: int = MOBILE_APPS_PAGE_SIZE) -> GraphRequest:
    """List the tenant's mobile apps on the stable surface."""

    return GraphRequest(
        method="GET",
        url="/deviceAppManagement/mobileApps",
        params={"$top": page_size},
        api_version=V1_VERSION,
    )


def mobile_app_assignments_request(app_id: str) -> GraphRequest:
    """Fetch the assignments collection for a given mobile app."""

    path = f"/deviceAppManagement/mobileApps/{app_id}/assignments"
    return GraphRequest(method="GET", url=path, api_version=V1_VERSION)


def mobile_app_assign_request(
    app_id: str,
    assignments: Sequence[dict[str, Any]],
) -> GraphRequest:
    """Builds the mobile app assign endpoint request.

    Win32 assignment settings (install time window, restart settings) are only
    exposed on the beta surface.
    """

    path = f"/deviceAppManagement/mobileApps/{app_id}/assign"
    return GraphRequest(
        method="POST",
        url=path,
        body={"mobileAppAssignments": list(assignments)},
        api_version=BETA_VERSION,
    )


def group_request(group_id: str) -> GraphRequest:
    path = f"/groups/{group_id}"
    return GraphRequest(
        method="GET",
        url=path,
        params={"$select": "id,displayName"},
        api_version=V1_VERSION,
    )


__all__ = [
    "BETA_VERSION",
    "V1_VERSION",
    "MOBILE_APPS_PAGE_SIZE",
    "GraphRequest",
    "GraphMethod",
    "mobile_apps_request",
    "mobile_app_assignments_request",
    "mobile_app_assign_request",
    "group_request",
]
