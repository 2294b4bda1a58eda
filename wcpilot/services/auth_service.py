"""
wcpilot/services/auth_service.py

Purpose: Account registration, login and profile

- New tenants start on the free plan with no instances
- Login returns an access token and the tenant's public view
- Profile and provider credential updates
"""

from typing import Any, Dict, Optional

from wcpilot.core.exceptions import AuthenticationError, ValidationError, ResourceNotFoundError
from wcpilot.core.logging import get_logger
from wcpilot.core.security import Identity, hash_password, verify_password, issue_token
from wcpilot.models.tenant import Tenant
from wcpilot.services.tenant_store import TenantStore
from wcpilot.utils.validation_utils import validate_email, validate_profile_name

logger = get_logger(__name__)

PASSWORD_MIN_LENGTH = 8
# bcrypt refuses longer input
PASSWORD_MAX_BYTES = 72


class AuthService:

    def __init__(self, store: TenantStore):
        self.store = store

    async def register(self, email: str, password: str, first_name: str, last_name: str) -> Dict[str, Any]:
        """
        Raises:
            ValidationError: Bad email, or password too short or too long
            ConflictError: Email already registered
        """
        email = validate_email(email)
        if not password or len(password) < PASSWORD_MIN_LENGTH:
            raise ValidationError(f"Password must be at least {PASSWORD_MIN_LENGTH} characters")
        if len(password.encode("utf-8")) > PASSWORD_MAX_BYTES:
            raise ValidationError(f"Password must be at most {PASSWORD_MAX_BYTES} bytes")

        tenant = await self.store.create_tenant(
            email=email,
            credential_hash=hash_password(password),
            first_name=(first_name or "").strip(),
            last_name=(last_name or "").strip(),
        )
        return _session(tenant)

    async def login(self, email: str, password: str) -> Dict[str, Any]:
        tenant = await self.store.get_by_email(email or "")
        if tenant is None or not verify_password(password, tenant.credential_hash):
            logger.info("Login rejected")
            raise AuthenticationError("Invalid credentials")

        logger.info("Login succeeded", extra={"user_id": tenant.user_id})
        return _session(tenant)

    async def get_profile(self, user_id: str) -> Dict[str, Any]:
        tenant = await self.store.get_by_id(user_id)
        if tenant is None:
            raise ResourceNotFoundError("User not found")
        return tenant.public()

    async def update_profile(
        self,
        user_id: str,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        provider_api_key: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Updates the given fields. An empty provider key clears it.
        """
        fields = {}
        if first_name is not None:
            fields["first_name"] = validate_profile_name(first_name.strip())
        if last_name is not None:
            fields["last_name"] = validate_profile_name(last_name.strip())
        if provider_api_key is not None:
            fields["provider_api_key"] = provider_api_key.strip() or None

        if not fields:
            raise ValidationError("No profile fields to update")

        tenant = await self.store.update_profile(user_id, fields)
        if tenant is None:
            raise ResourceNotFoundError("User not found")
        return tenant.public()


def _session(tenant: Tenant) -> Dict[str, Any]:
    identity = Identity(user_id=tenant.user_id, email=tenant.email, role=tenant.role)
    return {"token": issue_token(identity), "user": tenant.public()}
