"""Accounts, sign-in, tokens and the client directory."""

from datetime import timedelta
from uuid import uuid4

import pytest

from taskhub.exceptions import AuthenticationError, ConflictError, ForbiddenError, ValidationError
from taskhub.security import create_access_token, decode_access_token
from taskhub.services.query import PageParams
from taskhub.services.user import UserService

from conftest import PASSWORD


async def test_register_hashes_password_and_defaults_role(db):
    user = await UserService(db).register(
        email="New@Example.com", password="pw123456", first_name="New", last_name="User"
    )

    assert user.email == "new@example.com"
    assert user.role == "USER"
    assert user.password_hash != "pw123456"


async def test_register_existing_email_is_rejected(db, users):
    with pytest.raises(ValidationError, match="User already registered."):
        await UserService(db).register(
            email="ALICE@example.com", password="pw123456", first_name="A", last_name="B"
        )


async def test_authenticate_records_login(db, users):
    user = await UserService(db).authenticate("alice@example.com", PASSWORD)
    assert user.id == users["alice"].id
    assert user.last_login_at is not None


@pytest.mark.parametrize(
    ("email", "password"),
    [("alice@example.com", "wrong-password"), ("nobody@example.com", PASSWORD)],
)
async def test_bad_credentials(db, users, email, password):
    with pytest.raises(AuthenticationError, match="Invalid credentials"):
        await UserService(db).authenticate(email, password)


def test_token_round_trip_and_tampering():
    user_id = uuid4()
    token = create_access_token(user_id, "x@example.com")

    assert decode_access_token(token) == user_id
    with pytest.raises(AuthenticationError):
        decode_access_token(token + "x")


def test_expired_token_rejected():
    token = create_access_token(uuid4(), "x@example.com", expires_delta=timedelta(seconds=-1))
    with pytest.raises(AuthenticationError):
        decode_access_token(token)


async def test_only_admins_create_clients(db, users):
    with pytest.raises(ForbiddenError):
        await UserService(db).create_client(users["alice"], name="New Client")


async def test_duplicate_client_name_conflicts(db, users, clients):
    with pytest.raises(ConflictError, match="Client with this name already exists"):
        await UserService(db).create_client(users["admin"], name="EcoWood Ltd")


async def test_search_clients_by_name(db, clients):
    page = await UserService(db).search_clients("forest", PageParams.clamp(1, 10))
    assert [c.name for c in page.data] == ["National Forestry Agency"]
