"""
wcpilot/api/messages.py

Purpose: Messaging, chat and group endpoints
"""

from fastapi import APIRouter, Depends

from wcpilot.api.deps import get_current_identity, get_messaging_service
from wcpilot.core.security import Identity
from wcpilot.schemas.message import (
    SendTextRequest,
    SendMediaRequest,
    SendTemplateRequest,
    CreateGroupRequest,
)
from wcpilot.schemas.response import SuccessResponse
from wcpilot.services.messaging_service import MessagingService
from wcpilot.utils.constants import DEFAULT_PAGE, DEFAULT_CHATS_LIMIT, DEFAULT_MESSAGES_LIMIT

router = APIRouter(prefix="/messages")


@router.post("/send-text", response_model=SuccessResponse)
async def send_text(
    body: SendTextRequest,
    identity: Identity = Depends(get_current_identity),
    messaging: MessagingService = Depends(get_messaging_service),
):
    data = await messaging.send_text(identity.user_id, body.instance_name, body.number, body.text)
    return SuccessResponse(data=data, message="Message sent successfully")


@router.post("/send-media", response_model=SuccessResponse)
async def send_media(
    body: SendMediaRequest,
    identity: Identity = Depends(get_current_identity),
    messaging: MessagingService = Depends(get_messaging_service),
):
    data = await messaging.send_media(
        identity.user_id,
        body.instance_name,
        body.number,
        body.media_url,
        body.media_type,
        body.caption,
    )
    return SuccessResponse(data=data, message="Media message sent successfully")


@router.post("/send-template", response_model=SuccessResponse)
async def send_template(
    body: SendTemplateRequest,
    identity: Identity = Depends(get_current_identity),
    messaging: MessagingService = Depends(get_messaging_service),
):
    data = await messaging.send_template(identity.user_id, body.instance_name, body.template_data)
    return SuccessResponse(data=data, message="Template message sent successfully")


@router.get("/{instance_name}/chats", response_model=SuccessResponse)
async def list_chats(
    instance_name: str,
    page: int = DEFAULT_PAGE,
    limit: int = DEFAULT_CHATS_LIMIT,
    identity: Identity = Depends(get_current_identity),
    messaging: MessagingService = Depends(get_messaging_service),
):
    return SuccessResponse(data=await messaging.list_chats(identity.user_id, instance_name, page, limit))


@router.get("/{instance_name}/chat/{jid}", response_model=SuccessResponse)
async def list_messages(
    instance_name: str,
    jid: str,
    page: int = DEFAULT_PAGE,
    limit: int = DEFAULT_MESSAGES_LIMIT,
    identity: Identity = Depends(get_current_identity),
    messaging: MessagingService = Depends(get_messaging_service),
):
    data = await messaging.list_messages(identity.user_id, instance_name, jid, page, limit)
    return SuccessResponse(data=data)


@router.get("/{instance_name}/groups", response_model=SuccessResponse)
async def list_groups(
    instance_name: str,
    identity: Identity = Depends(get_current_identity),
    messaging: MessagingService = Depends(get_messaging_service),
):
    return SuccessResponse(data=await messaging.list_groups(identity.user_id, instance_name))


@router.post("/{instance_name}/groups", response_model=SuccessResponse)
async def create_group(
    instance_name: str,
    body: CreateGroupRequest,
    identity: Identity = Depends(get_current_identity),
    messaging: MessagingService = Depends(get_messaging_service),
):
    data = await messaging.create_group(
        identity.user_id,
        instance_name,
        body.subject,
        body.participants,
        body.description,
    )
    return SuccessResponse(data=data, message="Group created successfully")
