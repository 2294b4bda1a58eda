"""
wcpilot/db/mongo.py

Purpose: MongoDB client lifecycle

- One Motor client per process, opened at startup and closed at shutdown
- Startup retries with exponential backoff
- Single collection: users (tenants with embedded instance names)
"""

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo.errors import ConnectionFailure, PyMongoError, ServerSelectionTimeoutError
from typing import Optional
import asyncio

from wcpilot.core.config import settings
from wcpilot.core.logging import get_logger

logger = get_logger(__name__)

USERS_COLLECTION = "users"

_client: Optional[AsyncIOMotorClient] = None
_database: Optional[AsyncIOMotorDatabase] = None


def _build_client() -> AsyncIOMotorClient:
    # tz_aware so subscription period ends compare with utc_now()
    return AsyncIOMotorClient(
        settings.MONGODB_URL,
        maxPoolSize=50,
        serverSelectionTimeoutMS=5000,
        connectTimeoutMS=10000,
        retryWrites=True,
        tz_aware=True,
    )


async def connect_to_mongo():
    """
    Opens the client and pings the server, retrying up to
    MONGODB_CONNECT_RETRIES times.

    Raises:
        ConnectionError: If the server never answered
    """
    global _client, _database

    if _client is not None:
        logger.warning("MongoDB client already initialized")
        return

    attempts = settings.MONGODB_CONNECT_RETRIES
    delay = 2

    for attempt in range(1, attempts + 1):
        client = _build_client()
        try:
            await client.admin.command("ping")
        except (ConnectionFailure, ServerSelectionTimeoutError) as e:
            client.close()
            logger.error(f"MongoDB ping failed (attempt {attempt}/{attempts}): {e}")

            if attempt == attempts:
                raise ConnectionError("Could not establish MongoDB connection") from e

            await asyncio.sleep(delay)
            delay *= 2
            continue

        _client = client
        _database = client[settings.MONGODB_DB_NAME]
        logger.info(f"✅ Connected to MongoDB database {settings.MONGODB_DB_NAME}")
        return


async def close_mongo_connection():
    global _client, _database

    if _client is None:
        return

    _client.close()
    _client = None
    _database = None
    logger.info("MongoDB connection closed")


async def check_database_health() -> bool:
    """
    True if the server answers a ping.
    """
    if _client is None:
        logger.error("MongoDB client not initialized")
        return False

    try:
        await _client.admin.command("ping")
    except PyMongoError as e:
        logger.error(f"Database health check failed: {e}")
        return False
    return True


def get_users_collection() -> AsyncIOMotorCollection:
    """
    Returns the users collection, one document per tenant:

    - user_id: str (unique)
    - email: str (unique)
    - credential_hash: str
    - first_name / last_name: str
    - role: "admin" | "user"
    - subscription: {plan, status, current_period_end}
    - provider_api_key: str | None
    - instances: list[str] (owned instance names)
    - message_usage: {"YYYY-MM": count}
    - created_at / updated_at: datetime

    Raises:
        RuntimeError: If called before connect_to_mongo()
    """
    if _database is None:
        raise RuntimeError("Database not initialized. Call connect_to_mongo() during startup.")
    return _database[USERS_COLLECTION]
