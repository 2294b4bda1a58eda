"""
Database initialization script

Creates the users collection indexes and, optionally, an admin tenant:
    python scripts/init_db.py
    ADMIN_EMAIL=ops@example.com ADMIN_PASSWORD=... python scripts/init_db.py

Re-running is safe: indexes are idempotent and an existing admin is left alone.
"""

import asyncio
import os
import sys
from pathlib import Path
from dotenv import load_dotenv

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

# Load environment variables
load_dotenv()

from wcpilot.core.exceptions import ConflictError
from wcpilot.core.logging import setup_logging, get_logger
from wcpilot.core.security import hash_password
from wcpilot.db.indexes import create_indexes, list_indexes
from wcpilot.db.mongo import connect_to_mongo, close_mongo_connection, get_users_collection
from wcpilot.services.tenant_store import TenantStore

logger = get_logger("scripts.init_db")


async def seed_admin(email: str, password: str):
    """Creates an admin tenant on the enterprise plan."""
    users = get_users_collection()
    store = TenantStore(users)

    try:
        tenant = await store.create_tenant(email, hash_password(password), "Admin", "")
    except ConflictError:
        logger.info(f"Admin {email} already exists, skipping")
        return

    await users.update_one(
        {"user_id": tenant.user_id},
        {"$set": {"role": "admin", "subscription.plan": "enterprise"}}
    )
    logger.info(f"✅ Admin tenant created: {email}")


async def main():
    setup_logging()

    await connect_to_mongo()
    try:
        await create_indexes()
        for name, spec in (await list_indexes()).items():
            logger.info(f"  {name}: {spec}")

        admin_email = os.getenv("ADMIN_EMAIL")
        admin_password = os.getenv("ADMIN_PASSWORD")
        if admin_email and admin_password:
            await seed_admin(admin_email, admin_password)
        else:
            logger.info("ADMIN_EMAIL/ADMIN_PASSWORD not set, no admin seeded")
    finally:
        await close_mongo_connection()


if __name__ == "__main__":
    asyncio.run(main())
