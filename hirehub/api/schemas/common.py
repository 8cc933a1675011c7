from __future__ import annotations

from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

ItemT = TypeVar("ItemT")


class RequestModel(BaseModel):
    """Base for request payloads; accepts ``firstName`` as well as ``first_name``."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class MessageResponse(BaseModel):
    message: str


class PageResponse(BaseModel, Generic[ItemT]):
    items: list[ItemT]
    count: int = Field(..., description="Total matching records")
    page: int
    limit: int
    total_pages: int
