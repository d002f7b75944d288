from __future__ import annotations

from datetime import datetime

from pydantic import AliasChoices, Field

from .common import GraphResource


WIN32_LOB_APP_ODATA_TYPE = "#microsoft.graph.win32LobApp"


class Win32LobApp(GraphResource):
    """A Win32 line-of-business app as listed by ``deviceAppManagement``."""

    odata_type: str = Field(default=WIN32_LOB_APP_ODATA_TYPE, alias="@odata.type")
    display_name: str = Field(
        alias="displayName",
        validation_alias=AliasChoices("displayName", "name"),
    )
    description: str | None = None
    publisher: str | None = None
    display_version: str | None = Field(default=None, alias="displayVersion")
    file_name: str | None = Field(default=None, alias="fileName")
    is_assigned: bool | None = Field(default=None, alias="isAssigned")
    created_date_time: datetime | None = Field(default=None, alias="createdDateTime")
    last_modified_date_time: datetime | None = Field(
        default=None, alias="lastModifiedDateTime"
    )

    @property
    def is_win32(self) -> bool:
        return self.odata_type == WIN32_LOB_APP_ODATA_TYPE


def is_win32_payload(payload: dict) -> bool:
    """True when a raw Graph app payload carries exactly the Win32 tag."""

    return payload.get("@odata.type") == WIN32_LOB_APP_ODATA_TYPE
