"""Seed data is idempotent."""

from sqlalchemy import func, select

from taskhub.config import get_settings
from taskhub.models import Client, User
from taskhub.scripts.seed import SEED_CLIENTS, seed
from taskhub.security import verify_password


async def test_seed_twice_keeps_one_copy(db):
    await seed(db)
    await seed(db)

    clients = (await db.execute(select(func.count()).select_from(Client))).scalar()
    admins = (await db.execute(select(User).where(User.role == "ADMIN"))).scalars().all()

    assert clients == len(SEED_CLIENTS)
    assert len(admins) == 1
    settings = get_settings()
    assert admins[0].email == settings.seed_admin_email
    assert verify_password(settings.seed_admin_password.get_secret_value(), admins[0].password_hash)
