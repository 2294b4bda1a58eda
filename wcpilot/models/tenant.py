"""
wcpilot/models/tenant.py

Purpose: Tenant (user) document model

- Identity, credential hash and role
- Subscription plan, status and period end
- Optional provider API key
- Owned instance names (embedded, no separate collection)
- Monthly message usage counters
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List, Dict, Any, Literal

PlanId = Literal["free", "basic", "pro", "enterprise"]
PlanStatus = Literal["active", "cancelled", "past_due"]


class Subscription(BaseModel):
    plan: PlanId = "free"
    status: PlanStatus = "active"
    current_period_end: datetime


class Tenant(BaseModel):
    """
    A tenant record as stored in the users collection.
    """
    user_id: str
    email: str
    credential_hash: str = Field(default="", repr=False)
    first_name: str = ""
    last_name: str = ""
    role: Literal["admin", "user"] = "user"
    subscription: Subscription
    provider_api_key: Optional[str] = Field(default=None, repr=False)
    instances: List[str] = Field(default_factory=list)
    message_usage: Dict[str, int] = Field(default_factory=dict)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "Tenant":
        """Build a Tenant from a raw Mongo document (ignores _id)."""
        data = {k: v for k, v in document.items() if k != "_id"}
        return cls.model_validate(data)

    def owns(self, instance_name: str) -> bool:
        return instance_name in self.instances

    def public(self) -> Dict[str, Any]:
        """
        Outward view of the tenant: no credential hash, API key masked.
        """
        return {
            "id": self.user_id,
            "email": self.email,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "role": self.role,
            "subscription": {
                "plan": self.subscription.plan,
                "status": self.subscription.status,
                "currentPeriodEnd": self.subscription.current_period_end,
            },
            "providerApiKey": mask_secret(self.provider_api_key),
            "instances": list(self.instances),
        }


def mask_secret(value: Optional[str]) -> Optional[str]:
    """Keeps the last four characters of a secret."""
    if not value:
        return None
    if len(value) <= 4:
        return "****"
    return f"{'*' * (len(value) - 4)}{value[-4:]}"
