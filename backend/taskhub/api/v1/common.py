"""Schemas and dependencies shared by the v1 routers."""

from datetime import datetime
from typing import Annotated, Generic, TypeVar
from uuid import UUID

from fastapi import Depends, Query
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from taskhub.services.query import PageParams

T = TypeVar("T")


class CamelModel(BaseModel):
    """Base schema: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class MessageResponse(CamelModel):
    message: str


# =========================================================================
# Pagination
# =========================================================================


def get_page_params(
    page: int | None = Query(None, description="Page number, clamped to at least 1"),
    limit: int | None = Query(None, description="Page size, clamped to 1..100"),
) -> PageParams:
    return PageParams.clamp(page, limit)


Pagination = Annotated[PageParams, Depends(get_page_params)]


class PageMetaResponse(CamelModel):
    total: int
    page: int
    limit: int
    total_pages: int


class PageResponse(CamelModel, Generic[T]):
    """Paginated list: the page slice plus its meta."""

    data: list[T]
    meta: PageMetaResponse


# =========================================================================
# Summaries embedded in other resources
# =========================================================================


class UserSummary(CamelModel):
    id: UUID
    email: str
    first_name: str
    last_name: str
    avatar_url: str | None = None
    role: str


class ClientSummary(CamelModel):
    id: UUID
    name: str


class ProjectSummary(CamelModel):
    id: UUID
    name: str
    code: str
    status: str


class UserResponse(UserSummary):
    phone_number: str | None = None
    is_active: bool
    last_login_at: datetime | None = None
    created_at: datetime
    updated_at: datetime
