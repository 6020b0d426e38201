"""
Seed a back-office admin account.

Usage:
    python scripts/create_admin.py --username owner --email owner@rebuy.lk --password secret123
"""
import argparse
import asyncio
import logging
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from models import Admin
from routers.auth.helpers import auth_helpers

logger = logging.getLogger("create_admin")


async def create_admin(db: AsyncSession, username: str, email: str, password: str, role: str = "super_admin"):
    """Insert the admin unless the email is already taken. Returns the new admin or None."""
    email = email.lower()
    result = await db.execute(select(Admin).where(Admin.email == email))
    if result.scalar_one_or_none():
        logger.info(f"Admin {email} already exists, skipping")
        return None

    admin = Admin(
        username=username,
        email=email,
        password_hash=auth_helpers.hash_password(password),
        role=role,
        status="active"
    )
    db.add(admin)
    await db.commit()
    await db.refresh(admin)

    logger.info(f"Created {role} {email}")
    return admin


async def main(args):
    from config import AsyncSessionLocal, init_db

    if AsyncSessionLocal is None:
        raise SystemExit("DATABASE_URL is not set")

    if args.create_tables:
        await init_db()

    async with AsyncSessionLocal() as db:
        await create_admin(db, args.username, args.email, args.password, args.role)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")

    parser = argparse.ArgumentParser(description="Create a ReBuy.lk admin account")
    parser.add_argument("--username", required=True)
    parser.add_argument("--email", required=True)
    parser.add_argument("--password", required=True)
    parser.add_argument("--role", choices=["admin", "super_admin"], default="super_admin")
    parser.add_argument("--create-tables", action="store_true", help="create missing tables first")

    asyncio.run(main(parser.parse_args()))
