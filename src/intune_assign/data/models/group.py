from __future__ import annotations

from pydantic import AliasChoices, Field

from .common import GraphResource


class DirectoryGroup(GraphResource):
    display_name: str | None = Field(
        default=None,
        alias="displayName",
        validation_alias=AliasChoices("displayName", "name"),
    )
    description: str | None = None
