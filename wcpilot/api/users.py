"""
wcpilot/api/users.py

Purpose: Profile and usage endpoints
"""

from fastapi import APIRouter, Depends

from wcpilot.api.deps import get_auth_service, get_billing_service, get_current_identity
from wcpilot.core.security import Identity
from wcpilot.schemas.account import UpdateProfileRequest
from wcpilot.schemas.response import SuccessResponse
from wcpilot.services.auth_service import AuthService
from wcpilot.services.billing_service import BillingService

router = APIRouter(prefix="/user")


@router.put("/profile", response_model=SuccessResponse)
async def update_profile(
    body: UpdateProfileRequest,
    identity: Identity = Depends(get_current_identity),
    auth: AuthService = Depends(get_auth_service),
):
    profile = await auth.update_profile(
        identity.user_id,
        first_name=body.first_name,
        last_name=body.last_name,
        provider_api_key=body.provider_api_key,
    )
    return SuccessResponse(data=profile, message="Profile updated successfully")


@router.get("/stats", response_model=SuccessResponse)
async def get_stats(
    identity: Identity = Depends(get_current_identity),
    billing: BillingService = Depends(get_billing_service),
):
    subscription = await billing.get_subscription(identity.user_id)
    usage = subscription["usage"]
    return SuccessResponse(data={
        "plan": subscription["plan"]["id"],
        "status": subscription["status"],
        "totalInstances": usage["instances"],
        "maxInstances": usage["maxInstances"],
        "messagesThisMonth": usage["messagesThisMonth"],
        "maxMessagesPerMonth": usage["maxMessagesPerMonth"],
    })
