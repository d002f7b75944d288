from __future__ import annotations

import msal
import pytest

from intune_assign.bootstrap import initialize_services
from intune_assign.graph.client import GraphClientFactory
from intune_assign.graph.errors import AuthenticationError

from tests.factories import make_settings
from tests.stubs import StubPublicClientApplication


@pytest.mark.asyncio
async def test_initialize_services_signs_in_and_builds_registry(
    monkeypatch: pytest.MonkeyPatch, tmp_path
) -> None:
    stub = StubPublicClientApplication(
        client_id="",
        authority="",
        accounts=[{"name": "Admin", "username": "admin@contoso.com"}],
        silent_results=[{"access_token": "token", "expires_in": 3600}],
    )
    monkeypatch.setattr(msal, "PublicClientApplication", lambda **_kwargs: stub)
    settings = make_settings(token_cache_path=tmp_path / "cache.bin")

    services = await initialize_services(settings)

    assert isinstance(services.client_factory, GraphClientFactory)
    assert services.reports.resolver is not None
    assert len(stub.acquire_token_silent_calls) == 1
    await services.close()


@pytest.mark.asyncio
async def test_initialize_services_requires_client_id(tmp_path) -> None:
    settings = make_settings(client_id=None, token_cache_path=tmp_path / "cache.bin")

    with pytest.raises(AuthenticationError):
        await initialize_services(settings)
