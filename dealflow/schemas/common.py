"""Common schema module."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for API payloads: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        use_enum_values=True,
    )


class ErrorEnvelope(BaseModel):
    status: str = "error"
    error_code: str
    detail: str


class PageMeta(CamelModel):
    total: int
    page: int
    limit: int
    total_pages: int
