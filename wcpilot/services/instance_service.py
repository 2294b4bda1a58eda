"""
wcpilot/services/instance_service.py

Purpose: Instance lifecycle orchestration

- Create / read / list / pair / update / delete instances for a tenant
- Ownership and quota checks before any provider call
- Instance set mutated only after the provider confirms
- Create and delete serialized per user
- State-change notifications after the durable write

Per (user, instance name): absent -> creating -> present -> deleting -> absent
"""

import asyncio
from contextlib import asynccontextmanager
from pydantic import BaseModel
from typing import Any, Dict, List, Optional

from wcpilot.core.exceptions import (
    ValidationError,
    QuotaExceededError,
    ProviderError,
    ResourceNotFoundError,
)
from wcpilot.core.logging import get_logger
from wcpilot.services.access import TenantScopedService
from wcpilot.services.quota_policy import check_instance_quota, max_instances
from wcpilot.utils.constants import (
    EVENT_INSTANCE_CREATED,
    EVENT_INSTANCE_DELETED,
    EVENT_INSTANCE_UPDATED,
)
from wcpilot.utils.validation_utils import (
    validate_instance_name,
    validate_integration,
    validate_profile_name,
    validate_url,
)

logger = get_logger(__name__)


class InstanceUpdateOutcome(BaseModel):
    """
    Per-field results of an instance update. Sub-updates are independent:
    a failed one never rolls back a successful one.
    """
    success: bool
    results: List[Dict[str, Any]]

    @property
    def failed(self) -> List[Dict[str, Any]]:
        return [r for r in self.results if not r["success"]]


class InstanceService(TenantScopedService):

    def __init__(self, store, providers, relay):
        super().__init__(store, providers, relay)
        # Per-user lock and the number of callers holding or awaiting it
        self._locks: Dict[str, asyncio.Lock] = {}
        self._lock_users: Dict[str, int] = {}

    @asynccontextmanager
    async def _user_lock(self, user_id: str):
        lock = self._locks.setdefault(user_id, asyncio.Lock())
        self._lock_users[user_id] = self._lock_users.get(user_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[user_id] -= 1
            if not self._lock_users[user_id]:
                del self._lock_users[user_id]
                del self._locks[user_id]

    async def create_instance(
        self,
        user_id: str,
        instance_name: str,
        integration: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Creates an instance at the provider and records it for the tenant.

        Raises:
            ValidationError: Bad name/integration, or name already owned
            ResourceNotFoundError: Tenant record missing
            QuotaExceededError: Plan instance limit reached
            ProviderError: Provider refused or was unreachable
        """
        validate_instance_name(instance_name)
        integration = validate_integration(integration)

        async with self._user_lock(user_id):
            tenant = await self.load_tenant(user_id)

            if tenant.owns(instance_name):
                raise ValidationError("Instance name already exists")

            plan = tenant.subscription.plan
            decision = check_instance_quota(plan, len(tenant.instances))
            if not decision.allowed:
                logger.warning(decision.reason, extra={"user_id": user_id, "plan": plan})
                raise QuotaExceededError(
                    decision.reason,
                    details={"plan": plan, "maxInstances": max_instances(plan)}
                )

            provider = self.provider_for(tenant)
            result = await provider.create_instance(instance_name, integration)
            if not result.success:
                logger.warning(
                    f"Provider rejected instance creation: {result.error}",
                    extra={"user_id": user_id, "instance_name": instance_name}
                )
                raise ProviderError(result.error or "Failed to create instance")

            added = await self.store.add_instance(user_id, instance_name, max_instances(plan))
            if not added:
                await self._reconcile_refused_append(user_id, instance_name, provider)

        logger.info("Instance created", extra={"user_id": user_id, "instance_name": instance_name})

        await self.relay.publish(
            user_id,
            EVENT_INSTANCE_CREATED,
            instance_name,
            status="created",
            data=result.data,
        )

        return {
            "instanceName": instance_name,
            "integration": integration,
            "status": "created",
            "details": result.data,
        }

    async def _reconcile_refused_append(self, user_id: str, instance_name: str, provider) -> None:
        """
        The conditional append was refused after the provider created the
        instance: another writer changed the set in between.
        """
        tenant = await self.store.get_by_id(user_id)
        if tenant is not None and tenant.owns(instance_name):
            return

        rollback = await provider.delete_instance(instance_name)
        if not rollback.success:
            logger.error(
                f"Orphaned provider instance after refused append: {rollback.error}",
                extra={"user_id": user_id, "instance_name": instance_name}
            )

        if tenant is None:
            raise ResourceNotFoundError("User not found")

        plan = tenant.subscription.plan
        decision = check_instance_quota(plan, len(tenant.instances))
        raise QuotaExceededError(
            decision.reason or f"Instance limit reached for {plan} plan. Maximum: {max_instances(plan)}",
            details={"plan": plan, "maxInstances": max_instances(plan)}
        )

    async def get_instance(self, user_id: str, instance_name: str) -> Dict[str, Any]:
        tenant = await self.load_owned(user_id, instance_name)

        result = await self.provider_for(tenant).get_instance(instance_name)
        if not result.success:
            raise ProviderError(result.error or "Failed to get instance")

        return _describe(instance_name, result.data)

    async def list_instances(self, user_id: str) -> List[Dict[str, Any]]:
        """
        Live state of every owned instance. Instances whose state cannot be
        fetched are left out instead of failing the whole listing.
        """
        tenant = await self.load_tenant(user_id)
        provider = self.provider_for(tenant)

        instances = []
        for instance_name in tenant.instances:
            result = await provider.get_instance(instance_name)
            if result.success:
                instances.append(_describe(instance_name, result.data))
            else:
                logger.info(
                    f"Omitting instance from listing: {result.error}",
                    extra={"user_id": user_id, "instance_name": instance_name}
                )

        return instances

    async def get_pairing_code(self, user_id: str, instance_name: str) -> Any:
        """
        Returns the provider's connect/QR payload unchanged.
        """
        tenant = await self.load_owned(user_id, instance_name)

        result = await self.provider_for(tenant).get_pairing_code(instance_name)
        if not result.success:
            raise ProviderError(result.error or "Failed to get QR code")

        return result.data

    async def update_instance(
        self,
        user_id: str,
        instance_name: str,
        profile_name: Optional[str] = None,
        profile_picture_url: Optional[str] = None,
    ) -> InstanceUpdateOutcome:
        if profile_name is None and profile_picture_url is None:
            raise ValidationError("Provide profileName and/or profilePictureUrl")
        if profile_name is not None:
            validate_profile_name(profile_name)
        if profile_picture_url is not None:
            profile_picture_url = validate_url(profile_picture_url, "Profile picture")

        tenant = await self.load_owned(user_id, instance_name)
        provider = self.provider_for(tenant)

        results = []
        if profile_name is not None:
            outcome = await provider.update_profile_name(instance_name, profile_name)
            results.append(_field_result("profileName", outcome))

        if profile_picture_url is not None:
            outcome = await provider.update_profile_picture(instance_name, profile_picture_url)
            results.append(_field_result("profilePicture", outcome))

        update = InstanceUpdateOutcome(
            success=all(r["success"] for r in results),
            results=results,
        )

        if not update.success:
            logger.warning(
                f"Instance update partially failed: {[r['type'] for r in update.failed]}",
                extra={"user_id": user_id, "instance_name": instance_name}
            )
            return update

        await self.relay.publish(
            user_id,
            EVENT_INSTANCE_UPDATED,
            instance_name,
            updates=[{"type": r["type"], "success": True} for r in results],
        )
        return update

    async def delete_instance(self, user_id: str, instance_name: str) -> Dict[str, Any]:
        """
        Deletes an owned instance at the provider, then forgets it.

        Raises:
            ResourceNotFoundError: Tenant record missing
            AccessDeniedError: Name not in the caller's set (owned elsewhere or nonexistent)
            ProviderError: Provider refused; the set is left untouched
        """
        async with self._user_lock(user_id):
            tenant = await self.load_owned(user_id, instance_name)

            result = await self.provider_for(tenant).delete_instance(instance_name)
            if not result.success:
                logger.warning(
                    f"Provider rejected instance deletion: {result.error}",
                    extra={"user_id": user_id, "instance_name": instance_name}
                )
                raise ProviderError(result.error or "Failed to delete instance")

            await self.store.remove_instance(user_id, instance_name)

        logger.info("Instance deleted", extra={"user_id": user_id, "instance_name": instance_name})

        await self.relay.publish(user_id, EVENT_INSTANCE_DELETED, instance_name, status="deleted")

        return {"instanceName": instance_name, "status": "deleted"}


def _describe(instance_name: str, data: Any) -> Dict[str, Any]:
    if isinstance(data, dict):
        return {"name": instance_name, **data}
    return {"name": instance_name, "state": data}


def _field_result(field: str, outcome) -> Dict[str, Any]:
    return {
        "type": field,
        "success": outcome.success,
        "data": outcome.data,
        "error": outcome.error,
    }
