from __future__ import annotations

from intune_assign.auth import AuthManager
from intune_assign.config import Settings
from intune_assign.graph.client import GraphClientConfig, GraphClientFactory
from intune_assign.services import (
    AssignmentReportService,
    AssignmentService,
    ServiceRegistry,
)
from intune_assign.utils import get_logger


logger = get_logger(__name__)


def build_services(client_factory: GraphClientFactory) -> ServiceRegistry:
    return ServiceRegistry(
        client_factory=client_factory,
        assignments=AssignmentService(client_factory),
        reports=AssignmentReportService(client_factory),
    )


async def initialize_services(
    settings: Settings,
    *,
    auth_manager: AuthManager | None = None,
) -> ServiceRegistry:
    """Sign in and build services around an authenticated Graph client.

    Raises:
        AuthenticationError: If the settings lack a client id or sign-in fails.
    """

    auth = auth_manager or AuthManager()
    auth.configure(settings)
    scopes = list(settings.configured_scopes())
    # Prime the token cache so the Graph client can acquire tokens silently.
    await auth.acquire_token(scopes)
    user = auth.current_user()
    logger.info(
        "Signed in to Microsoft Graph",
        tenant_id=settings.tenant_id,
        username=user.username if user else None,
    )

    client_factory = GraphClientFactory(
        auth.token_provider(),
        GraphClientConfig(scopes=scopes),
    )
    return build_services(client_factory)


__all__ = ["build_services", "initialize_services"]
