"""Shared Pydantic configuration for records stored in the realtime tree."""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class TreeRecord(BaseModel):
    """Base for records persisted as camelCase mappings in the tree."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_tree(self, *, exclude: set[str] | None = None) -> dict[str, Any]:
        """Return the mapping written to the database."""
        return self.model_dump(by_alias=True, exclude=exclude, exclude_none=True, mode="json")


class ErrorResponse(BaseModel):
    """Error body returned for every failed API call."""

    detail: str
    code: str
    retryable: bool
