"""
wcpilot/services/tenant_store.py

Purpose: Tenant data management

- Create and look up tenant records
- Atomically grow/shrink the owned instance set within a plan limit
- Plan changes guarded against concurrent instance growth
- Profile and provider credential updates
- Monthly message usage counters
"""

from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError
from typing import Optional, Dict, Any
from uuid import uuid4

from wcpilot.core.config import settings
from wcpilot.core.exceptions import ConflictError
from wcpilot.core.logging import get_logger
from wcpilot.models.tenant import Tenant
from wcpilot.utils.constants import DEFAULT_PLAN
from wcpilot.utils.time_utils import utc_now, calculate_period_end

logger = get_logger(__name__)


class TenantStore:
    """
    Durable tenant records in the users collection.
    """

    def __init__(self, collection):
        self.collection = collection

    async def create_tenant(
        self,
        email: str,
        credential_hash: str,
        first_name: str,
        last_name: str,
    ) -> Tenant:
        """
        Creates a tenant on the free plan with no instances.

        Raises:
            ConflictError: If the email is already registered
        """
        now = utc_now()
        document = {
            "user_id": uuid4().hex,
            "email": email.strip().lower(),
            "credential_hash": credential_hash,
            "first_name": first_name,
            "last_name": last_name,
            "role": "user",
            "subscription": {
                "plan": DEFAULT_PLAN,
                "status": "active",
                "current_period_end": calculate_period_end(settings.SUBSCRIPTION_PERIOD_DAYS, now),
            },
            "provider_api_key": None,
            "instances": [],
            "message_usage": {},
            "created_at": now,
            "updated_at": now,
        }

        try:
            await self.collection.insert_one(document)
        except DuplicateKeyError:
            logger.warning("Registration rejected: email already exists")
            raise ConflictError("User already exists with this email")

        logger.info("New tenant created", extra={"user_id": document["user_id"]})
        return Tenant.from_document(document)

    async def get_by_id(self, user_id: str) -> Optional[Tenant]:
        document = await self.collection.find_one({"user_id": user_id})
        return Tenant.from_document(document) if document else None

    async def get_by_email(self, email: str) -> Optional[Tenant]:
        document = await self.collection.find_one({"email": email.strip().lower()})
        return Tenant.from_document(document) if document else None

    async def add_instance(self, user_id: str, instance_name: str, max_instances: int) -> bool:
        """
        Appends an instance name only if it is not already owned and the
        set holds fewer than `max_instances` names. Single atomic update.

        Returns:
            True if the name was added
        """
        if max_instances < 1:
            return False

        result = await self.collection.update_one(
            {
                "user_id": user_id,
                "instances": {"$ne": instance_name},
                # element at index max-1 absent <=> fewer than max names
                f"instances.{max_instances - 1}": {"$exists": False},
            },
            {
                "$push": {"instances": instance_name},
                "$set": {"updated_at": utc_now()},
            }
        )

        added = result.modified_count > 0
        if added:
            logger.info("Instance added to tenant", extra={"user_id": user_id, "instance_name": instance_name})
        else:
            logger.warning(
                "Conditional instance append refused",
                extra={"user_id": user_id, "instance_name": instance_name}
            )
        return added

    async def remove_instance(self, user_id: str, instance_name: str) -> bool:
        result = await self.collection.update_one(
            {"user_id": user_id, "instances": instance_name},
            {
                "$pull": {"instances": instance_name},
                "$set": {"updated_at": utc_now()},
            }
        )

        removed = result.modified_count > 0
        if removed:
            logger.info("Instance removed from tenant", extra={"user_id": user_id, "instance_name": instance_name})
        return removed

    async def update_subscription(
        self,
        user_id: str,
        plan: str,
        status: str,
        current_period_end,
        max_instances: int,
    ) -> Optional[Tenant]:
        """
        Changes the plan only while the tenant owns at most `max_instances`
        names.

        Returns:
            The updated tenant, or None if the tenant is missing or owns too many
        """
        document = await self.collection.find_one_and_update(
            {
                "user_id": user_id,
                f"instances.{max_instances}": {"$exists": False},
            },
            {
                "$set": {
                    "subscription.plan": plan,
                    "subscription.status": status,
                    "subscription.current_period_end": current_period_end,
                    "updated_at": utc_now(),
                }
            },
            return_document=ReturnDocument.AFTER
        )

        if document:
            logger.info("Subscription updated", extra={"user_id": user_id, "plan": plan})
        return Tenant.from_document(document) if document else None

    async def update_profile(self, user_id: str, fields: Dict[str, Any]) -> Optional[Tenant]:
        """
        Sets first_name / last_name / provider_api_key.
        """
        allowed = {"first_name", "last_name", "provider_api_key"}
        updates = {k: v for k, v in fields.items() if k in allowed}
        updates["updated_at"] = utc_now()

        document = await self.collection.find_one_and_update(
            {"user_id": user_id},
            {"$set": updates},
            return_document=ReturnDocument.AFTER
        )

        if document:
            logger.info(
                "Profile updated",
                extra={"user_id": user_id, "fields": sorted(k for k in updates if k != "updated_at")}
            )
        return Tenant.from_document(document) if document else None

    async def increment_message_usage(self, user_id: str, period: str) -> int:
        """
        Atomically counts one sent message for the period.

        Returns:
            The new count
        """
        document = await self.collection.find_one_and_update(
            {"user_id": user_id},
            {"$inc": {f"message_usage.{period}": 1}},
            return_document=ReturnDocument.AFTER
        )

        count = (document or {}).get("message_usage", {}).get(period, 0)
        logger.debug(f"Message usage for {period} is now {count}", extra={"user_id": user_id})
        return count
