"""
wcpilot/api/webhooks.py

Purpose: Provider webhook configuration per instance
"""

from fastapi import APIRouter, Depends

from wcpilot.api.deps import get_current_identity, get_messaging_service
from wcpilot.core.security import Identity
from wcpilot.schemas.message import WebhookRequest
from wcpilot.schemas.response import SuccessResponse
from wcpilot.services.messaging_service import MessagingService

router = APIRouter(prefix="/webhooks")


@router.post("/{instance_name}", response_model=SuccessResponse)
async def set_webhook(
    instance_name: str,
    body: WebhookRequest,
    identity: Identity = Depends(get_current_identity),
    messaging: MessagingService = Depends(get_messaging_service),
):
    data = await messaging.set_webhook(
        identity.user_id, instance_name, body.url, body.enabled, body.events
    )
    return SuccessResponse(data=data, message="Webhook set successfully")


@router.get("/{instance_name}", response_model=SuccessResponse)
async def get_webhook(
    instance_name: str,
    identity: Identity = Depends(get_current_identity),
    messaging: MessagingService = Depends(get_messaging_service),
):
    return SuccessResponse(data=await messaging.get_webhook(identity.user_id, instance_name))


@router.delete("/{instance_name}", response_model=SuccessResponse)
async def delete_webhook(
    instance_name: str,
    identity: Identity = Depends(get_current_identity),
    messaging: MessagingService = Depends(get_messaging_service),
):
    data = await messaging.delete_webhook(identity.user_id, instance_name)
    return SuccessResponse(data=data, message="Webhook deleted successfully")
