from __future__ import annotations

from typing import Any, Mapping, Self

from pydantic import BaseModel, ConfigDict


class GraphBaseModel(BaseModel):
    """Immutable model of a Graph JSON object, keyed by Graph's camelCase names.

    Unknown keys in responses are ignored and enums serialise as their wire
    values.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        use_enum_values=True,
    )

    @classmethod
    def from_graph(cls, payload: Mapping[str, Any]) -> Self:
        return cls.model_validate(dict(payload))

    def to_graph(self, *, keep_nulls: bool = False) -> dict[str, Any]:
        """Request body fragment; unset fields are dropped unless ``keep_nulls``."""

        return self.model_dump(mode="json", by_alias=True, exclude_none=not keep_nulls)


class GraphResource(GraphBaseModel):
    id: str
