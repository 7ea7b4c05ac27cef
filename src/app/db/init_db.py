"""Create the schema and bootstrap an administrator.

Registration only ever creates USER accounts, so the first administrator is
provisioned here:

    python -m app.db.init_db --admin-email admin@example.com --admin-password ...
"""

import argparse
import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from app.config import settings
from app.core.logging import setup_logging
from app.core.security import hash_password
from app.models.base import Base
from app.models.enums import UserRole
from app.models.user import User
from app.repositories.user import UserRepository

logger = logging.getLogger(__name__)


async def create_schema(engine: AsyncEngine) -> None:
    """Create all tables that do not exist yet."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def ensure_admin(
    session: AsyncSession, email: str, password: str, full_name: str = "Administrator"
) -> User:
    """Create an ADMIN user, or promote the existing user with this email."""
    repo = UserRepository(session)
    user = await repo.get_by_email(email)
    if user is None:
        user = await repo.create(
            User(
                email=email,
                password_hash=hash_password(password),
                full_name=full_name,
                role=UserRole.ADMIN,
            )
        )
        logger.info("Created administrator %s", user.id)
        return user

    if user.role != UserRole.ADMIN:
        user = await repo.update(user.id, {"role": UserRole.ADMIN, "is_active": True})
        logger.info("Promoted user %s to administrator", user.id)
    return user


async def main(args: argparse.Namespace) -> None:
    from app.db.session import AsyncSessionLocal, async_engine

    await create_schema(async_engine)
    print("Schema is up to date.")

    if args.admin_email:
        async with AsyncSessionLocal() as session:
            user = await ensure_admin(session, args.admin_email, args.admin_password, args.admin_name)
        print(f"Administrator ready: {user.id}")

    await async_engine.dispose()


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Initialise the card management database")
    parser.add_argument("--admin-email", help="Email of the administrator to create or promote")
    parser.add_argument("--admin-password", help="Password for a newly created administrator")
    parser.add_argument("--admin-name", default="Administrator", help="Full name of the administrator")
    args = parser.parse_args(argv)
    if args.admin_email and not args.admin_password:
        parser.error("--admin-password is required with --admin-email")
    return args


if __name__ == "__main__":
    setup_logging(settings.log_level)
    asyncio.run(main(parse_args()))
