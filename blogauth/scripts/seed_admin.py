"""Seed an admin user into the identity tables.

Reads ADMIN_EMAIL, ADMIN_PASSWORD and ADMIN_NAME from environment / .env and
creates user + credential account records so the admin can sign in.

Usage:
    python -m blogauth.scripts.seed_admin

Idempotent: skips if a user with the admin email already exists.
"""

import asyncio

from sqlalchemy import text

from blogauth.config import settings
from blogauth.database import async_session_maker, engine
from blogauth.identity.engine import normalize_email
from blogauth.identity.passwords import hash_password
from blogauth.repositories.auth import CREDENTIAL_PROVIDER, AccountRepository, UserRepository


async def seed_admin() -> None:
    email = normalize_email(settings.admin_email)
    password = settings.admin_password

    if not email or not password:
        print("ERROR: ADMIN_EMAIL and ADMIN_PASSWORD must be set in .env")
        return

    name = settings.admin_name.strip() or "Admin"

    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    print("  Database: connected")

    async with async_session_maker() as session:
        users = UserRepository(session)

        existing = await users.get_by_email(email)
        if existing:
            print(f"  Admin user already exists: {email} (id={existing.id})")
            return

        user = await users.create({"name": name, "email": email, "emailVerified": True})
        await AccountRepository(session).create(
            {
                "accountId": user.id,
                "providerId": CREDENTIAL_PROVIDER,
                "userId": user.id,
                "password": hash_password(password),
            }
        )

        await session.commit()
        print(f"  Admin user created: {email} (id={user.id})")


if __name__ == "__main__":
    asyncio.run(seed_admin())
