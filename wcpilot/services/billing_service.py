"""
wcpilot/services/billing_service.py

Purpose: Subscription plans

- Public plan catalog
- Current subscription with usage
- Plan changes (no payment processing; the new plan is active immediately)
"""

from typing import Any, Dict, List

from wcpilot.core.config import settings
from wcpilot.core.exceptions import QuotaExceededError, ResourceNotFoundError
from wcpilot.core.logging import get_logger
from wcpilot.services.quota_policy import (
    get_plan,
    list_plans,
    check_downgrade,
    max_instances,
)
from wcpilot.services.tenant_store import TenantStore
from wcpilot.utils.time_utils import calculate_period_end, usage_period

logger = get_logger(__name__)


class BillingService:

    def __init__(self, store: TenantStore):
        self.store = store

    def list_plans(self) -> List[Dict[str, Any]]:
        return list_plans()

    async def get_subscription(self, user_id: str) -> Dict[str, Any]:
        tenant = await self.store.get_by_id(user_id)
        if tenant is None:
            raise ResourceNotFoundError("User not found")

        plan = dict(get_plan(tenant.subscription.plan))
        return {
            "plan": plan,
            "status": tenant.subscription.status,
            "currentPeriodEnd": tenant.subscription.current_period_end,
            "usage": {
                "instances": len(tenant.instances),
                "maxInstances": plan["max_instances"],
                "messagesThisMonth": tenant.message_usage.get(usage_period(), 0),
                "maxMessagesPerMonth": plan["max_messages_per_month"],
            },
        }

    async def change_plan(self, user_id: str, plan_id: str) -> Dict[str, Any]:
        """
        Moves the tenant to `plan_id`.

        The store applies the change only while the tenant still owns no
        more instances than the new plan allows, so an instance created
        concurrently cannot slip past a downgrade.

        Raises:
            ValidationError: Unknown plan
            ResourceNotFoundError: Tenant record missing
            QuotaExceededError: Tenant owns more instances than the plan allows
        """
        plan = dict(get_plan(plan_id))

        tenant = await self.store.get_by_id(user_id)
        if tenant is None:
            raise ResourceNotFoundError("User not found")

        self._check_downgrade(user_id, plan_id, len(tenant.instances))

        updated = await self.store.update_subscription(
            user_id,
            plan_id,
            "active",
            calculate_period_end(settings.SUBSCRIPTION_PERIOD_DAYS),
            max_instances(plan_id),
        )

        if updated is None:
            # Lost a race with an instance creation or a tenant deletion
            current = await self.store.get_by_id(user_id)
            if current is None:
                raise ResourceNotFoundError("User not found")
            self._check_downgrade(user_id, plan_id, len(current.instances))
            raise QuotaExceededError(f"Cannot change to {plan_id} plan right now")

        logger.info(
            f"Plan changed from {tenant.subscription.plan} to {plan_id}",
            extra={"user_id": user_id, "plan": plan_id}
        )

        return {
            "plan": plan,
            "status": updated.subscription.status,
            "currentPeriodEnd": updated.subscription.current_period_end,
        }

    @staticmethod
    def _check_downgrade(user_id: str, plan_id: str, instance_count: int) -> None:
        decision = check_downgrade(plan_id, instance_count)
        if not decision.allowed:
            logger.warning(decision.reason, extra={"user_id": user_id, "plan": plan_id})
            raise QuotaExceededError(
                decision.reason,
                details={
                    "plan": plan_id,
                    "maxInstances": max_instances(plan_id),
                    "currentInstances": instance_count,
                }
            )
