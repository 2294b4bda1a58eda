"""
wcpilot/services/evolution_service.py

Purpose: Messaging provider (Evolution API) gateway

- One outbound HTTP call per operation, fixed timeout, no retries
- Per-tenant credential sent as `apikey` and bearer token headers
- Every call returns a uniform ProviderResult
- Non-2xx, timeouts and network errors are normalized into failures,
  preferring the provider's own error message
"""

import httpx
from pydantic import BaseModel
from typing import Any, Dict, List, Optional

from wcpilot.core.config import settings
from wcpilot.core.logging import get_logger
from wcpilot.utils.constants import DEFAULT_INTEGRATION, DEFAULT_PAGE, DEFAULT_CHATS_LIMIT
from wcpilot.utils.time_utils import epoch_millis

logger = get_logger(__name__)

MISSING_CREDENTIAL_ERROR = "No messaging provider API key configured for this account"


class ProviderResult(BaseModel):
    """
    Uniform result of a provider call.
    """
    success: bool
    data: Optional[Any] = None
    error: Optional[str] = None
    message: Optional[str] = None


def _flatten_message(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, str):
        return value or None
    if isinstance(value, (list, tuple)):
        parts = [_flatten_message(item) for item in value]
        joined = "; ".join(p for p in parts if p)
        return joined or None
    return str(value)


def extract_error_message(response: httpx.Response) -> Optional[str]:
    """
    Pulls the provider's error message out of a failed response.

    Handles `{"message": ...}`, `{"response": {"message": [...]}}` and
    `{"error": ...}` bodies. Returns None for non-JSON bodies.
    """
    try:
        body = response.json()
    except ValueError:
        return None

    if not isinstance(body, dict):
        return _flatten_message(body) if isinstance(body, str) else None

    message = _flatten_message(body.get("message"))
    if message:
        return message

    nested = body.get("response")
    if isinstance(nested, dict):
        message = _flatten_message(nested.get("message"))
        if message:
            return message

    return _flatten_message(body.get("error"))


class EvolutionService:
    """
    Stateless client for one tenant's credential.
    """

    def __init__(
        self,
        api_key: Optional[str],
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.base_url = (base_url or settings.EVOLUTION_API_URL).rstrip("/")
        self.timeout = timeout or settings.EVOLUTION_TIMEOUT_SECONDS
        self._transport = transport

    def _headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "apikey": self.api_key or "",
            "Authorization": f"Bearer {self.api_key or ''}",
        }

    async def _request(
        self,
        method: str,
        path: str,
        fallback_error: str,
        json: Optional[Any] = None,
        params: Optional[Dict[str, Any]] = None,
        success_message: Optional[str] = None,
    ) -> ProviderResult:
        if not self.api_key:
            logger.warning(f"Refusing provider call {method} {path}: no credential")
            return ProviderResult(success=False, error=MISSING_CREDENTIAL_ERROR)

        logger.info(f"🚀 Evolution API Request: {method} {path}")

        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                headers=self._headers(),
                timeout=self.timeout,
                transport=self._transport,
            ) as client:
                response = await client.request(method, path, json=json, params=params)

        except httpx.TimeoutException as e:
            logger.error(f"Evolution API timeout: {method} {path}")
            return ProviderResult(
                success=False,
                error=str(e) or f"timeout of {int(self.timeout * 1000)}ms exceeded"
            )
        except httpx.RequestError as e:
            logger.error(f"Evolution API network error: {method} {path}: {e}")
            return ProviderResult(success=False, error=str(e) or fallback_error)

        if response.is_success:
            logger.info(f"✅ Evolution API Response: {response.status_code} {path}")
            return ProviderResult(
                success=True,
                data=self._parse_body(response),
                message=success_message
            )

        provider_message = extract_error_message(response)
        logger.error(
            f"❌ Evolution API error: {response.status_code} {path}: "
            f"{provider_message or response.reason_phrase}"
        )
        return ProviderResult(
            success=False,
            error=provider_message or f"Request failed with status code {response.status_code}"
        )

    @staticmethod
    def _parse_body(response: httpx.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text

    # ------------------------------------------------------------------
    # Instances
    # ------------------------------------------------------------------

    async def create_instance(self, instance_name: str, integration: str = DEFAULT_INTEGRATION) -> ProviderResult:
        return await self._request(
            "POST",
            "/instance/create",
            "Failed to create instance",
            json={
                "instanceName": instance_name,
                "integration": integration,
                "token": f"{instance_name}_token_{epoch_millis()}",
            },
            success_message="Instance created successfully",
        )

    async def get_instance(self, instance_name: str) -> ProviderResult:
        return await self._request(
            "GET", f"/instance/connectionState/{instance_name}", "Failed to get instance"
        )

    async def get_pairing_code(self, instance_name: str) -> ProviderResult:
        return await self._request(
            "GET", f"/instance/connect/{instance_name}", "Failed to get QR code"
        )

    async def delete_instance(self, instance_name: str) -> ProviderResult:
        return await self._request(
            "DELETE",
            f"/instance/delete/{instance_name}",
            "Failed to delete instance",
            success_message="Instance deleted successfully",
        )

    # ------------------------------------------------------------------
    # Messaging
    # ------------------------------------------------------------------

    async def send_text(self, instance_name: str, number: str, text: str) -> ProviderResult:
        return await self._request(
            "POST",
            f"/message/sendText/{instance_name}",
            "Failed to send message",
            json={"number": number, "textMessage": {"text": text}},
            success_message="Message sent successfully",
        )

    async def send_media(
        self,
        instance_name: str,
        number: str,
        media: str,
        media_type: str,
        caption: Optional[str] = None,
    ) -> ProviderResult:
        return await self._request(
            "POST",
            f"/message/sendMedia/{instance_name}",
            "Failed to send media message",
            json={
                "number": number,
                "mediaMessage": {"media": media, "type": media_type, "caption": caption},
            },
            success_message="Media message sent successfully",
        )

    async def send_template(self, instance_name: str, template_data: Dict[str, Any]) -> ProviderResult:
        return await self._request(
            "POST",
            f"/message/sendTemplate/{instance_name}",
            "Failed to send template message",
            json=template_data,
            success_message="Template message sent successfully",
        )

    # ------------------------------------------------------------------
    # Webhooks
    # ------------------------------------------------------------------

    async def set_webhook(self, instance_name: str, webhook_data: Dict[str, Any]) -> ProviderResult:
        return await self._request(
            "POST",
            f"/webhook/set/{instance_name}",
            "Failed to set webhook",
            json=webhook_data,
            success_message="Webhook set successfully",
        )

    async def get_webhook(self, instance_name: str) -> ProviderResult:
        return await self._request("GET", f"/webhook/find/{instance_name}", "Failed to get webhook")

    # ------------------------------------------------------------------
    # Chats and groups
    # ------------------------------------------------------------------

    async def get_chats(
        self, instance_name: str, page: int = DEFAULT_PAGE, limit: int = DEFAULT_CHATS_LIMIT
    ) -> ProviderResult:
        return await self._request(
            "GET",
            f"/chat/findChats/{instance_name}",
            "Failed to get chats",
            params={"page": page, "limit": limit},
        )

    async def get_messages(
        self, instance_name: str, jid: str, page: int = DEFAULT_PAGE, limit: int = DEFAULT_CHATS_LIMIT
    ) -> ProviderResult:
        return await self._request(
            "GET",
            f"/chat/findMessages/{instance_name}",
            "Failed to get messages",
            params={"jid": jid, "page": page, "limit": limit},
        )

    async def create_group(self, instance_name: str, group_data: Dict[str, Any]) -> ProviderResult:
        return await self._request(
            "POST",
            f"/group/create/{instance_name}",
            "Failed to create group",
            json=group_data,
            success_message="Group created successfully",
        )

    async def get_groups(self, instance_name: str) -> ProviderResult:
        return await self._request("GET", f"/group/findGroups/{instance_name}", "Failed to get groups")

    # ------------------------------------------------------------------
    # Profile
    # ------------------------------------------------------------------

    async def update_profile_name(self, instance_name: str, profile_name: str) -> ProviderResult:
        return await self._request(
            "PUT",
            f"/chat/updateProfileName/{instance_name}",
            "Failed to update profile",
            json={"name": profile_name},
            success_message="Profile updated successfully",
        )

    async def update_profile_picture(self, instance_name: str, image_url: str) -> ProviderResult:
        return await self._request(
            "PUT",
            f"/chat/updateProfilePicture/{instance_name}",
            "Failed to update profile picture",
            json={"url": image_url},
            success_message="Profile picture updated successfully",
        )


class EvolutionServiceFactory:
    """
    Builds an EvolutionService for a tenant's credential.

    `shared_api_key` is only set in shared-credential (single-tenant demo)
    mode; otherwise tenants without a key get a client that refuses to call out.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        shared_api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url or settings.EVOLUTION_API_URL
        self.shared_api_key = shared_api_key
        self.timeout = timeout or settings.EVOLUTION_TIMEOUT_SECONDS
        self._transport = transport

    @property
    def shared_mode(self) -> bool:
        return bool(self.shared_api_key)

    def for_tenant(self, api_key: Optional[str]) -> EvolutionService:
        return EvolutionService(
            api_key=api_key or self.shared_api_key,
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self._transport,
        )


_factory: Optional[EvolutionServiceFactory] = None


def get_evolution_factory() -> EvolutionServiceFactory:
    """
    Returns the process-wide factory configured from settings.
    """
    global _factory
    if _factory is None:
        _factory = EvolutionServiceFactory(
            base_url=settings.EVOLUTION_API_URL,
            shared_api_key=settings.shared_provider_api_key,
            timeout=settings.EVOLUTION_TIMEOUT_SECONDS,
        )
        if _factory.shared_mode:
            logger.warning("Shared provider credential mode enabled: tenants without a key share one credential")
    return _factory
