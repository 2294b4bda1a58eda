"""
wcpilot/api/deps.py

Purpose: FastAPI dependencies

- Authenticated identity from the bearer token
- Service instances wired to the users collection, the provider gateway
  and the event relay
"""

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from typing import Optional

from wcpilot.core.config import settings
from wcpilot.core.security import Identity, verify_token
from wcpilot.db.mongo import get_users_collection
from wcpilot.services.auth_service import AuthService
from wcpilot.services.billing_service import BillingService
from wcpilot.services.event_relay import event_relay
from wcpilot.services.evolution_service import get_evolution_factory
from wcpilot.services.instance_service import InstanceService
from wcpilot.services.messaging_service import MessagingService
from wcpilot.services.tenant_store import TenantStore

bearer_scheme = HTTPBearer(auto_error=False)

# Holds the per-user create/delete locks, so it must outlive a request
_instance_service: Optional[InstanceService] = None


async def get_current_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Identity:
    return verify_token(credentials.credentials if credentials else None)


def get_tenant_store() -> TenantStore:
    return TenantStore(get_users_collection())


def get_instance_service() -> InstanceService:
    global _instance_service
    if _instance_service is None:
        _instance_service = InstanceService(get_tenant_store(), get_evolution_factory(), event_relay)
    return _instance_service


def get_messaging_service(store: TenantStore = Depends(get_tenant_store)) -> MessagingService:
    return MessagingService(
        store,
        get_evolution_factory(),
        event_relay,
        metering_enabled=settings.MESSAGE_METERING_ENABLED,
    )


def get_billing_service(store: TenantStore = Depends(get_tenant_store)) -> BillingService:
    return BillingService(store)


def get_auth_service(store: TenantStore = Depends(get_tenant_store)) -> AuthService:
    return AuthService(store)
