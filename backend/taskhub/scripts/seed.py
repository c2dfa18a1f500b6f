"""Seed script creating the schema, the reference clients and an admin account.

Idempotent: clients are matched by email and the admin by email, so running
it twice leaves a single copy of each.

Usage:
    python -m taskhub.scripts.seed
"""

import asyncio

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.config import get_settings
from taskhub.db.base import Base
from taskhub.db.session import async_session_factory, engine
from taskhub.models.client import Client
from taskhub.models.user import User, UserRole
from taskhub.security import hash_password

logger = structlog.get_logger()
settings = get_settings()


SEED_CLIENTS = [
    {
        "name": "National Forestry Agency",
        "description": "Government agency overseeing forestry projects.",
        "address": "123 Green Street, Kigali",
        "phone": "+250788123456",
        "email": "contact@nfa.gov.rw",
        "website": "https://nfa.gov.rw",
    },
    {
        "name": "EcoWood Ltd",
        "description": "Private company specializing in sustainable wood products.",
        "address": "45 Industrial Zone, Huye",
        "phone": "+250788654321",
        "email": "info@ecowood.com",
        "website": "https://ecowood.com",
    },
    {
        "name": "GreenFuture NGO",
        "description": "Non-profit promoting environmental conservation.",
        "address": "89 Conservation Ave, Musanze",
        "phone": "+250788999888",
        "email": "hello@greenfuture.org",
        "website": "https://greenfuture.org",
    },
]


async def create_schema() -> None:
    """Create any missing tables."""
    import taskhub.models  # noqa: F401  registers the mappers

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def seed_clients(db: AsyncSession) -> int:
    """Insert or refresh the reference clients. Returns how many were created."""
    created = 0
    for data in SEED_CLIENTS:
        result = await db.execute(select(Client).where(Client.email == data["email"]))
        client = result.scalar_one_or_none()
        if client is None:
            db.add(Client(**data))
            created += 1
        else:
            for key, value in data.items():
                setattr(client, key, value)
    await db.flush()
    return created


async def seed_admin(db: AsyncSession) -> User:
    """Create the admin account unless it already exists."""
    email = settings.seed_admin_email.lower()
    result = await db.execute(select(User).where(User.email == email))
    admin = result.scalar_one_or_none()
    if admin is not None:
        return admin

    admin = User(
        email=email,
        password_hash=hash_password(settings.seed_admin_password.get_secret_value()),
        first_name="Taskhub",
        last_name="Administrator",
        role=UserRole.ADMIN.value,
    )
    db.add(admin)
    await db.flush()
    logger.info("Seeded admin user", user_id=str(admin.id), email=email)
    return admin


async def seed(db: AsyncSession) -> None:
    clients_created = await seed_clients(db)
    await seed_admin(db)
    await db.commit()
    logger.info("Seed complete", clients_created=clients_created)


async def main() -> None:
    """Main entry point."""
    print("Seeding database...")
    print("-" * 50)

    await create_schema()
    async with async_session_factory() as db:
        try:
            await seed(db)
        except Exception as e:
            print(f"Error seeding database: {e}")
            await db.rollback()
            raise

    await engine.dispose()
    print("Clients and admin user seeded successfully")


if __name__ == "__main__":
    asyncio.run(main())
