from __future__ import annotations

import time
from typing import Any

import msal
import pytest

from intune_assign.auth.types import AccessToken
from intune_assign.config.settings import Settings
from intune_assign.data import WIN32_LOB_APP_ODATA_TYPE, Win32LobApp


def make_access_token(token: str = "token", expires_in: int = 3600) -> AccessToken:
    """Return a short-lived access token suitable for Graph client tests."""

    return AccessToken(token=token, expires_on=int(time.time()) + expires_in)


def make_settings(**overrides: object) -> Settings:
    """Build Settings populated with safe defaults for auth scenarios."""

    settings = Settings(
        tenant_id="contoso.onmicrosoft.com",
        client_id="00000000-0000-0000-0000-000000000000",
    )
    for key, value in overrides.items():
        setattr(settings, key, value)
    return settings


def make_app_payload(
    app_id: str,
    *,
    display_name: str | None = None,
    odata_type: str = WIN32_LOB_APP_ODATA_TYPE,
    **overrides: object,
) -> dict[str, Any]:
    """Raw ``mobileApps`` listing entry as Graph returns it."""

    payload: dict[str, Any] = {
        "@odata.type": odata_type,
        "id": app_id,
        "displayName": display_name or f"App {app_id}",
        "publisher": "Contoso",
    }
    payload.update(overrides)
    return payload


def make_win32_app(app_id: str = "app-1", **overrides: object) -> Win32LobApp:
    return Win32LobApp.from_graph(make_app_payload(app_id, **overrides))


def make_assignment_payload(
    assignment_id: str,
    *,
    group_id: str | None,
    intent: str = "required",
    target_type: str = "#microsoft.graph.groupAssignmentTarget",
    settings: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Raw ``mobileApps/{id}/assignments`` entry."""

    target: dict[str, Any] = {"@odata.type": target_type}
    if group_id is not None:
        target["groupId"] = group_id
    return {
        "id": assignment_id,
        "intent": intent,
        "target": target,
        "settings": settings,
    }


def configure_auth_manager(
    *,
    settings: Settings,
    stub_app,
    monkeypatch: pytest.MonkeyPatch,
):
    """Configure AuthManager with a stubbed PublicClientApplication."""

    from intune_assign.auth.auth_manager import AuthManager

    def _factory(client_id: str, authority: str, token_cache):
        stub_app.client_id = client_id
        stub_app.authority = authority
        stub_app.token_cache = token_cache
        return stub_app

    monkeypatch.setattr(msal, "PublicClientApplication", _factory)
    manager = AuthManager()
    manager.configure(settings)
    return manager
