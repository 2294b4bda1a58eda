"""
wcpilot/api/billing.py

Purpose: Plan catalog and subscription endpoints
"""

from fastapi import APIRouter, Depends

from wcpilot.api.deps import get_billing_service, get_current_identity
from wcpilot.core.security import Identity
from wcpilot.schemas.account import ChangePlanRequest
from wcpilot.schemas.response import SuccessResponse
from wcpilot.services.billing_service import BillingService

router = APIRouter(prefix="/billing")


@router.get("/plans", response_model=SuccessResponse)
async def list_plans(billing: BillingService = Depends(get_billing_service)):
    return SuccessResponse(data=billing.list_plans())


@router.get("/subscription", response_model=SuccessResponse)
async def get_subscription(
    identity: Identity = Depends(get_current_identity),
    billing: BillingService = Depends(get_billing_service),
):
    return SuccessResponse(data=await billing.get_subscription(identity.user_id))


@router.put("/subscription", response_model=SuccessResponse)
async def change_plan(
    body: ChangePlanRequest,
    identity: Identity = Depends(get_current_identity),
    billing: BillingService = Depends(get_billing_service),
):
    data = await billing.change_plan(identity.user_id, body.plan)
    return SuccessResponse(data=data, message="Subscription updated successfully")
