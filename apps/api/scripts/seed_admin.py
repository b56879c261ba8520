"""
Seed Admin User

Creates the initial super admin account for the SAM dashboard.
Credentials come from the SEED_ADMIN_EMAIL and SEED_ADMIN_PASSWORD
environment variables (SEED_ADMIN_NAME is optional).

Usage:
    cd apps/api
    SEED_ADMIN_EMAIL=registrar@example.edu SEED_ADMIN_PASSWORD=... python scripts/seed_admin.py
"""

import asyncio
import os
import sys
from pathlib import Path

# Add the src directory to the path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from app.core.database import async_session_maker, close_db
from app.core.security import hash_password
from app.modules.admins import AdminRepository, AdminRole


async def seed_admin() -> int:
    """Create the super admin if it doesn't exist. Returns a process exit code."""
    email = os.getenv("SEED_ADMIN_EMAIL")
    password = os.getenv("SEED_ADMIN_PASSWORD")
    name = os.getenv("SEED_ADMIN_NAME", "System Administrator")

    if not email or not password:
        print("SEED_ADMIN_EMAIL and SEED_ADMIN_PASSWORD must be set")
        return 1

    async with async_session_maker() as db:
        existing = await AdminRepository.get_by_email(db, email)
        if existing:
            print(f"Admin already exists: {existing.email}")
            print(f"  ID: {existing.id}")
            print(f"  Role: {existing.role.value}")
            return 0

        admin = await AdminRepository.create(
            db,
            email=email,
            password_hash=hash_password(password),
            name=name,
            role=AdminRole.SUPER_ADMIN,
        )

        print("Admin created successfully!")
        print(f"  Email: {admin.email}")
        print(f"  ID: {admin.id}")
        print(f"  Role: {admin.role.value}")

    return 0


async def main() -> int:
    try:
        return await seed_admin()
    finally:
        await close_db()


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
