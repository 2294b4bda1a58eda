"""
wcpilot/services/quota_policy.py

Purpose: Plan-limit evaluation

- Maps a subscription plan to its limits
- Decides whether a new instance fits the plan
- Decides whether a plan change is compatible with current usage
- Decides whether a message fits the monthly cap (metering mode only)

Pure functions: no I/O, no hidden state. Same inputs, same decision.
"""

from dataclasses import dataclass
from typing import Optional, Dict, Any, List

from wcpilot.core.exceptions import ValidationError
from wcpilot.utils.constants import SUBSCRIPTION_PLANS


@dataclass(frozen=True)
class QuotaDecision:
    allowed: bool
    reason: Optional[str] = None

    @classmethod
    def allow(cls) -> "QuotaDecision":
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: str) -> "QuotaDecision":
        return cls(allowed=False, reason=reason)


def get_plan(plan: str) -> Dict[str, Any]:
    """
    Looks up a plan in the catalog.

    Raises:
        ValidationError: If the plan id is unknown
    """
    try:
        return SUBSCRIPTION_PLANS[plan]
    except (KeyError, TypeError):
        raise ValidationError("Invalid subscription plan", details={"allowed": list(SUBSCRIPTION_PLANS)})


def list_plans() -> List[Dict[str, Any]]:
    return [dict(plan) for plan in SUBSCRIPTION_PLANS.values()]


def max_instances(plan: str) -> int:
    return get_plan(plan)["max_instances"]


def max_messages_per_month(plan: str) -> int:
    return get_plan(plan)["max_messages_per_month"]


def check_instance_quota(plan: str, current_count: int) -> QuotaDecision:
    """
    Can a user on `plan` who owns `current_count` instances create one more?
    """
    limit = max_instances(plan)
    if current_count >= limit:
        return QuotaDecision.deny(
            f"Instance limit reached for {plan} plan. Maximum: {limit}"
        )
    return QuotaDecision.allow()


def check_downgrade(plan: str, current_count: int) -> QuotaDecision:
    """
    Can a user who owns `current_count` instances move to `plan`?
    """
    limit = max_instances(plan)
    if current_count > limit:
        return QuotaDecision.deny(
            f"Cannot downgrade to {plan} plan. You have {current_count} instances, "
            f"but the plan allows only {limit}. Please delete some instances first."
        )
    return QuotaDecision.allow()


def check_message_quota(plan: str, sent_this_month: int) -> QuotaDecision:
    """
    Can a user on `plan` who sent `sent_this_month` messages send one more?
    """
    limit = max_messages_per_month(plan)
    if sent_this_month >= limit:
        return QuotaDecision.deny(
            f"Monthly message limit reached for {plan} plan. Maximum: {limit}"
        )
    return QuotaDecision.allow()
