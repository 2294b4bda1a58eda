"""
wcpilot/services/access.py

Purpose: Tenant-scoped access checks shared by the instance and messaging services

- Tenant lookup (missing record -> not found, checked first)
- Ownership check (name not in the caller's set -> access denied)
- Provider client for the tenant's credential
"""

from wcpilot.core.exceptions import ResourceNotFoundError, AccessDeniedError
from wcpilot.core.logging import get_logger
from wcpilot.models.tenant import Tenant
from wcpilot.services.evolution_service import EvolutionService, EvolutionServiceFactory
from wcpilot.services.event_relay import EventRelay
from wcpilot.services.tenant_store import TenantStore

logger = get_logger(__name__)


class TenantScopedService:

    def __init__(self, store: TenantStore, providers: EvolutionServiceFactory, relay: EventRelay):
        self.store = store
        self.providers = providers
        self.relay = relay

    async def load_tenant(self, user_id: str) -> Tenant:
        tenant = await self.store.get_by_id(user_id)
        if tenant is None:
            logger.warning("Tenant record not found", extra={"user_id": user_id})
            raise ResourceNotFoundError("User not found")
        return tenant

    def require_ownership(self, tenant: Tenant, instance_name: str) -> None:
        # Unknown names are reported exactly like foreign ones.
        if not tenant.owns(instance_name):
            logger.warning(
                "Access denied to instance",
                extra={"user_id": tenant.user_id, "instance_name": instance_name}
            )
            raise AccessDeniedError("Access denied to this instance")

    async def load_owned(self, user_id: str, instance_name: str) -> Tenant:
        tenant = await self.load_tenant(user_id)
        self.require_ownership(tenant, instance_name)
        return tenant

    def provider_for(self, tenant: Tenant) -> EvolutionService:
        return self.providers.for_tenant(tenant.provider_api_key)
