from __future__ import annotations

from pydantic import ValidationError

from intune_assign.data import DirectoryGroup
from intune_assign.graph.client import GraphClientFactory
from intune_assign.graph.errors import GraphAPIError
from intune_assign.graph.requests import group_request
from intune_assign.utils import get_logger


logger = get_logger(__name__)

ALL_DEVICES_GROUP_ID = "f11a8224-9bf1-4bbc-9340-596104c86781"
ALL_USERS_GROUP_ID = "b2743c69-a4be-4e4b-888f-fa175f6acdf2"

WELL_KNOWN_GROUPS: dict[str, str] = {
    ALL_DEVICES_GROUP_ID: "All Devices",
    ALL_USERS_GROUP_ID: "All Users",
}

NO_GROUP_LABEL = "No Group / Unknown"


def unknown_group_label(group_id: str) -> str:
    return f"Unknown Group ({group_id})"


class GroupNameResolver:
    """Resolve group ids to display names for the lifetime of one report run.

    Lookups are cached per instance, including failed ones, so each distinct
    id costs at most one Graph request.
    """

    def __init__(self, client_factory: GraphClientFactory) -> None:
        self._client_factory = client_factory
        self._cache: dict[str, str] = {}

    @property
    def cached(self) -> dict[str, str]:
        return dict(self._cache)

    async def resolve(self, group_id: str | None) -> str:
        if not group_id:
            return NO_GROUP_LABEL
        well_known = WELL_KNOWN_GROUPS.get(group_id)
        if well_known is not None:
            return well_known
        cached = self._cache.get(group_id)
        if cached is not None:
            return cached

        label = await self._fetch(group_id)
        self._cache[group_id] = label
        return label

    async def _fetch(self, group_id: str) -> str:
        try:
            payload = await self._client_factory.execute(group_request(group_id))
        except GraphAPIError as exc:
            logger.warning(
                "Group lookup failed",
                group_id=group_id,
                status_code=exc.status_code,
                error=str(exc),
            )
            return unknown_group_label(group_id)

        try:
            group = DirectoryGroup.from_graph({"id": group_id, **payload})
        except ValidationError:
            group = DirectoryGroup(id=group_id)
        if not group.display_name:
            logger.warning("Group has no display name", group_id=group_id)
            return unknown_group_label(group_id)
        return group.display_name


__all__ = [
    "ALL_DEVICES_GROUP_ID",
    "ALL_USERS_GROUP_ID",
    "NO_GROUP_LABEL",
    "WELL_KNOWN_GROUPS",
    "GroupNameResolver",
    "unknown_group_label",
]
