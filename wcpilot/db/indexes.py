"""
wcpilot/db/indexes.py

Purpose: Users collection indexes

- user_id and email are unique (email uniqueness backs duplicate registration)
- plan and created_at for reporting queries

create_indexes() is idempotent and runs at every startup.
"""

from pymongo import ASCENDING

from wcpilot.db.mongo import get_users_collection
from wcpilot.core.logging import get_logger

logger = get_logger(__name__)

USER_INDEXES = (
    ("user_id", "user_id_unique", True),
    ("email", "email_unique", True),
    ("subscription.plan", "subscription_plan_idx", False),
    ("created_at", "created_at_idx", False),
)


async def create_indexes():
    users = get_users_collection()

    try:
        for field, name, unique in USER_INDEXES:
            await users.create_index([(field, ASCENDING)], name=name, unique=unique)
            logger.debug(f"Ensured index {name} on users.{field}")
    except Exception as e:
        logger.error(f"Failed to create indexes: {e}", exc_info=True)
        raise

    logger.info(f"✅ {len(USER_INDEXES)} users indexes ensured")


async def list_indexes() -> dict:
    """
    Returns {index name: key spec} for the users collection.
    """
    users = get_users_collection()
    info = await users.index_information()
    return {name: spec["key"] for name, spec in info.items()}
