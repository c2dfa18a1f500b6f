"""User accounts, authentication and clients."""

from datetime import datetime, timezone
from uuid import UUID

import structlog
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.exceptions import (
    AuthenticationError,
    ConflictError,
    ForbiddenError,
    ValidationError,
)
from taskhub.models.client import Client
from taskhub.models.user import User, UserRole
from taskhub.security import hash_password, verify_password
from taskhub.services.permissions import Principal, can_manage_clients
from taskhub.services.query import LIKE_ESCAPE, Page, PageParams, like_pattern, paginate

logger = structlog.get_logger()


class UserService:
    """Service for user accounts and the client directory."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # =========================================================================
    # Accounts
    # =========================================================================

    async def get_user_by_email(self, email: str) -> User | None:
        result = await self.db.execute(
            select(User).where(func.lower(User.email) == email.lower())
        )
        return result.scalar_one_or_none()

    async def register(
        self,
        *,
        email: str,
        password: str,
        first_name: str,
        last_name: str,
        avatar_url: str | None = None,
        phone_number: str | None = None,
        role: UserRole = UserRole.USER,
    ) -> User:
        """Create an account. The email must not be registered yet."""
        if await self.get_user_by_email(email) is not None:
            raise ValidationError("User already registered.")

        user = User(
            email=email.lower(),
            password_hash=hash_password(password),
            first_name=first_name,
            last_name=last_name,
            avatar_url=avatar_url,
            phone_number=phone_number,
            role=UserRole(role).value,
        )
        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ValidationError("User already registered.")

        logger.info("User registered", user_id=str(user.id), role=user.role)
        return user

    async def authenticate(self, email: str, password: str) -> User:
        """Check credentials and record the login."""
        user = await self.get_user_by_email(email)
        if user is None or not verify_password(password, user.password_hash):
            logger.warning("Sign-in rejected", email=email)
            raise AuthenticationError()
        if not user.is_active:
            raise AuthenticationError("User account is disabled")

        user.last_login_at = datetime.now(timezone.utc)
        await self.db.commit()

        logger.info("User signed in", user_id=str(user.id))
        return user

    async def get_user(self, user_id: UUID) -> User | None:
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def list_users(self, params: PageParams) -> Page[User]:
        return await paginate(
            self.db, User, params, order_by=[User.created_at.desc(), User.id]
        )

    # =========================================================================
    # Clients
    # =========================================================================

    async def list_clients(self, params: PageParams) -> Page[Client]:
        return await paginate(
            self.db, Client, params, order_by=[Client.created_at.desc(), Client.id]
        )

    async def search_clients(self, query: str | None, params: PageParams) -> Page[Client]:
        """Clients whose name contains the query, case-insensitively."""
        where = []
        if query:
            where.append(Client.name.ilike(like_pattern(query), escape=LIKE_ESCAPE))
        return await paginate(
            self.db,
            Client,
            params,
            where=where,
            order_by=[Client.name.asc(), Client.id],
        )

    async def create_client(
        self,
        user: Principal,
        *,
        name: str,
        description: str | None = None,
        email: str | None = None,
        phone: str | None = None,
        address: str | None = None,
        website: str | None = None,
    ) -> Client:
        if not can_manage_clients(user):
            raise ForbiddenError("Only admins can create clients")

        existing = await self.db.execute(select(Client.id).where(Client.name == name))
        if existing.first() is not None:
            raise ConflictError("Client with this name already exists")

        client = Client(
            name=name,
            description=description,
            email=email,
            phone=phone,
            address=address,
            website=website,
        )
        self.db.add(client)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError("Client with this name or email already exists")

        logger.info("Client created", client_id=str(client.id), created_by=str(user.id))
        return client
