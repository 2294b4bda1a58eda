"""
wcpilot/services/messaging_service.py

Purpose: Messages, chats, groups and webhooks through an owned instance

- Input validation first, before any tenant lookup or provider call
- Same ownership check as the instance service
- Thin pass-through to the provider gateway
- message-sent / group-created notifications on success
- Optional monthly message metering (off by default: plan caps are advisory)
"""

from typing import Any, Dict, List, Optional

from wcpilot.core.exceptions import ValidationError, ProviderError, QuotaExceededError
from wcpilot.core.logging import get_logger
from wcpilot.models.tenant import Tenant
from wcpilot.services.access import TenantScopedService
from wcpilot.services.evolution_service import ProviderResult
from wcpilot.services.quota_policy import check_message_quota, max_messages_per_month
from wcpilot.utils.constants import (
    EVENT_MESSAGE_SENT,
    EVENT_GROUP_CREATED,
    DEFAULT_PAGE,
    DEFAULT_CHATS_LIMIT,
    DEFAULT_MESSAGES_LIMIT,
)
from wcpilot.utils.time_utils import usage_period
from wcpilot.utils.validation_utils import (
    validate_phone_number,
    validate_text,
    validate_url,
    validate_media_type,
    validate_caption,
    validate_pagination,
    validate_participants,
    validate_webhook_events,
    require_mapping,
)

logger = get_logger(__name__)


def extract_message_id(data: Any) -> Optional[str]:
    """
    Message id from a send response: `messageId`, else `key.id`.
    """
    if not isinstance(data, dict):
        return None
    if data.get("messageId"):
        return data["messageId"]
    key = data.get("key")
    if isinstance(key, dict):
        return key.get("id")
    return None


def extract_group_id(data: Any) -> Optional[str]:
    if not isinstance(data, dict):
        return None
    return data.get("groupId") or data.get("id")


class MessagingService(TenantScopedService):

    def __init__(self, store, providers, relay, metering_enabled: bool = False):
        super().__init__(store, providers, relay)
        self.metering_enabled = metering_enabled

    # ------------------------------------------------------------------
    # Sending
    # ------------------------------------------------------------------

    async def send_text(self, user_id: str, instance_name: str, number: str, text: str) -> Any:
        number = validate_phone_number(number)
        validate_text(text)

        tenant = await self.load_owned(user_id, instance_name)
        self._check_message_quota(tenant)

        result = await self.provider_for(tenant).send_text(instance_name, number, text)
        return await self._after_send(tenant, instance_name, result, "text", "Failed to send message")

    async def send_media(
        self,
        user_id: str,
        instance_name: str,
        number: str,
        media_url: str,
        media_type: str,
        caption: Optional[str] = None,
    ) -> Any:
        number = validate_phone_number(number)
        media_url = validate_url(media_url, "Media URL")
        validate_media_type(media_type)
        validate_caption(caption)

        tenant = await self.load_owned(user_id, instance_name)
        self._check_message_quota(tenant)

        result = await self.provider_for(tenant).send_media(
            instance_name, number, media_url, media_type, caption
        )
        return await self._after_send(tenant, instance_name, result, "media", "Failed to send media message")

    async def send_template(self, user_id: str, instance_name: str, template_data: Dict[str, Any]) -> Any:
        require_mapping(template_data, "Template data is required")

        tenant = await self.load_owned(user_id, instance_name)
        self._check_message_quota(tenant)

        result = await self.provider_for(tenant).send_template(instance_name, template_data)
        return await self._after_send(tenant, instance_name, result, "template", "Failed to send template message")

    def _check_message_quota(self, tenant: Tenant) -> None:
        if not self.metering_enabled:
            return

        plan = tenant.subscription.plan
        sent = tenant.message_usage.get(usage_period(), 0)
        decision = check_message_quota(plan, sent)
        if not decision.allowed:
            logger.warning(decision.reason, extra={"user_id": tenant.user_id, "plan": plan})
            raise QuotaExceededError(
                decision.reason,
                details={"plan": plan, "maxMessagesPerMonth": max_messages_per_month(plan)}
            )

    async def _after_send(
        self,
        tenant: Tenant,
        instance_name: str,
        result: ProviderResult,
        message_type: str,
        fallback_error: str,
    ) -> Any:
        if not result.success:
            raise ProviderError(result.error or fallback_error)

        if self.metering_enabled:
            await self.store.increment_message_usage(tenant.user_id, usage_period())

        message_id = extract_message_id(result.data)
        logger.info(
            f"{message_type} message sent",
            extra={"user_id": tenant.user_id, "instance_name": instance_name}
        )

        await self.relay.publish(
            tenant.user_id,
            EVENT_MESSAGE_SENT,
            instance_name,
            messageId=message_id,
            status="sent",
            messageType=message_type,
        )
        return result.data

    # ------------------------------------------------------------------
    # Chats and groups
    # ------------------------------------------------------------------

    async def list_chats(
        self,
        user_id: str,
        instance_name: str,
        page: int = DEFAULT_PAGE,
        limit: int = DEFAULT_CHATS_LIMIT,
    ) -> Any:
        page, limit = validate_pagination(page, limit)

        tenant = await self.load_owned(user_id, instance_name)
        result = await self.provider_for(tenant).get_chats(instance_name, page, limit)
        return _unwrap(result, "Failed to get chats")

    async def list_messages(
        self,
        user_id: str,
        instance_name: str,
        jid: str,
        page: int = DEFAULT_PAGE,
        limit: int = DEFAULT_MESSAGES_LIMIT,
    ) -> Any:
        if not jid:
            raise ValidationError("Chat id is required")
        page, limit = validate_pagination(page, limit)

        tenant = await self.load_owned(user_id, instance_name)
        result = await self.provider_for(tenant).get_messages(instance_name, jid, page, limit)
        return _unwrap(result, "Failed to get messages")

    async def list_groups(self, user_id: str, instance_name: str) -> Any:
        tenant = await self.load_owned(user_id, instance_name)
        result = await self.provider_for(tenant).get_groups(instance_name)
        return _unwrap(result, "Failed to get groups")

    async def create_group(
        self,
        user_id: str,
        instance_name: str,
        subject: str,
        participants: List[str],
        description: Optional[str] = None,
    ) -> Any:
        if not subject or not isinstance(subject, str) or not subject.strip():
            raise ValidationError("Group subject is required")
        participants = validate_participants(participants)

        group_data = {"subject": subject.strip(), "participants": participants}
        if description:
            group_data["description"] = description

        tenant = await self.load_owned(user_id, instance_name)
        result = await self.provider_for(tenant).create_group(instance_name, group_data)
        data = _unwrap(result, "Failed to create group")

        logger.info("Group created", extra={"user_id": user_id, "instance_name": instance_name})

        await self.relay.publish(
            user_id,
            EVENT_GROUP_CREATED,
            instance_name,
            groupId=extract_group_id(data),
            status="created",
        )
        return data

    # ------------------------------------------------------------------
    # Webhooks
    # ------------------------------------------------------------------

    async def set_webhook(
        self,
        user_id: str,
        instance_name: str,
        url: str,
        enabled: bool,
        events: List[str],
    ) -> Any:
        url = validate_url(url, "Webhook URL")
        if not isinstance(enabled, bool):
            raise ValidationError("Enabled must be a boolean")
        events = validate_webhook_events(events)

        tenant = await self.load_owned(user_id, instance_name)
        result = await self.provider_for(tenant).set_webhook(
            instance_name,
            {"url": url, "enabled": enabled, "events": events, "webhook_by_events": True},
        )
        return _unwrap(result, "Failed to set webhook")

    async def get_webhook(self, user_id: str, instance_name: str) -> Any:
        tenant = await self.load_owned(user_id, instance_name)
        result = await self.provider_for(tenant).get_webhook(instance_name)
        return _unwrap(result, "Failed to get webhook")

    async def delete_webhook(self, user_id: str, instance_name: str) -> Any:
        tenant = await self.load_owned(user_id, instance_name)
        result = await self.provider_for(tenant).set_webhook(
            instance_name,
            {"url": "", "enabled": False, "events": []},
        )
        return _unwrap(result, "Failed to delete webhook")


def _unwrap(result: ProviderResult, fallback_error: str) -> Any:
    if not result.success:
        raise ProviderError(result.error or fallback_error)
    return result.data
