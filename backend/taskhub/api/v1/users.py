"""User and client directory endpoints."""

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Query, status
from pydantic import EmailStr, Field

from taskhub.api.v1.auth import CurrentUser
from taskhub.api.v1.common import (
    CamelModel,
    PageResponse,
    Pagination,
    UserResponse,
)
from taskhub.db.session import DBSession
from taskhub.services.user import UserService

router = APIRouter()


class ClientCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    email: EmailStr | None = None
    phone: str | None = Field(None, max_length=50)
    address: str | None = Field(None, max_length=500)
    website: str | None = Field(None, max_length=500)


class ClientResponse(CamelModel):
    id: UUID
    name: str
    description: str | None = None
    email: str | None = None
    phone: str | None = None
    address: str | None = None
    website: str | None = None
    created_at: datetime
    updated_at: datetime


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: CurrentUser) -> UserResponse:
    return UserResponse.model_validate(current_user)


@router.get("/all", response_model=PageResponse[UserResponse])
async def list_users(
    current_user: CurrentUser,
    db: DBSession,
    pagination: Pagination,
) -> PageResponse[UserResponse]:
    page = await UserService(db).list_users(pagination)
    return PageResponse[UserResponse].model_validate(page)


@router.get("/clients", response_model=PageResponse[ClientResponse])
async def list_clients(
    current_user: CurrentUser,
    db: DBSession,
    pagination: Pagination,
) -> PageResponse[ClientResponse]:
    page = await UserService(db).list_clients(pagination)
    return PageResponse[ClientResponse].model_validate(page)


@router.get("/clients/search", response_model=PageResponse[ClientResponse])
async def search_clients(
    current_user: CurrentUser,
    db: DBSession,
    pagination: Pagination,
    query: str | None = Query(None, max_length=100),
) -> PageResponse[ClientResponse]:
    """Clients whose name contains the query."""
    page = await UserService(db).search_clients(query, pagination)
    return PageResponse[ClientResponse].model_validate(page)


@router.post("/clients", response_model=ClientResponse, status_code=status.HTTP_201_CREATED)
async def create_client(
    data: ClientCreate,
    current_user: CurrentUser,
    db: DBSession,
) -> ClientResponse:
    """Create a client (admins only)."""
    client = await UserService(db).create_client(current_user, **data.model_dump())
    return ClientResponse.model_validate(client)
