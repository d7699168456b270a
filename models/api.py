"""
Data models specific to API interactions (envelope, query parameters, health).
"""

from datetime import datetime
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from models.enums import SortOrder

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """
    Uniform result envelope for every remote call.

    Failures are values: callers branch on ``success`` instead of catching.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    success: bool
    data: T | None = None
    message: str | None = None
    error: str | None = None

    @classmethod
    def ok(cls, data: Any = None, message: str | None = None) -> "ApiResponse":
        return cls(success=True, data=data, message=message)

    @classmethod
    def fail(cls, error: str) -> "ApiResponse":
        return cls(success=False, error=error)


class QuerySpec(BaseModel):
    """Search/filter/sort parameters for GET /products."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    search: str = ""
    category: str = "all"
    sort_by: str | None = "name"
    sort_order: SortOrder = SortOrder.ASC
    limit: int | None = Field(default=None, ge=0)
    offset: int | None = Field(default=None, ge=0)

    def to_params(self) -> dict[str, str]:
        """Render as query parameters, omitting empty values and the 'all' category."""
        params: dict[str, str] = {}
        if self.search:
            params["search"] = self.search
        if self.category and self.category != "all":
            params["category"] = self.category
        if self.sort_by:
            params["sortBy"] = self.sort_by
        if self.sort_order:
            params["sortOrder"] = SortOrder(self.sort_order).value
        if self.limit:
            params["limit"] = str(self.limit)
        if self.offset:
            params["offset"] = str(self.offset)
        return params


class HealthStatus(BaseModel):
    status: str
    timestamp: datetime | str | None = None


def validation_message(error: ValidationError) -> str:
    """Flatten a ValidationError into ``field: message; ...`` for notifications."""
    parts = []
    for detail in error.errors():
        location = ".".join(str(part) for part in detail.get("loc", ())) or "input"
        parts.append(f"{location}: {detail.get('msg', 'invalid value')}")
    return "; ".join(parts)
