"""
wcpilot/api/auth.py

Purpose: Registration, login and current account
"""

from fastapi import APIRouter, Depends, status

from wcpilot.api.deps import get_auth_service, get_current_identity
from wcpilot.core.security import Identity
from wcpilot.schemas.account import RegisterRequest, LoginRequest
from wcpilot.schemas.response import SuccessResponse
from wcpilot.services.auth_service import AuthService

router = APIRouter(prefix="/auth")


@router.post("/register", status_code=status.HTTP_201_CREATED, response_model=SuccessResponse)
async def register(body: RegisterRequest, auth: AuthService = Depends(get_auth_service)):
    session = await auth.register(body.email, body.password, body.first_name, body.last_name)
    return SuccessResponse(data=session, message="User registered successfully")


@router.post("/login", response_model=SuccessResponse)
async def login(body: LoginRequest, auth: AuthService = Depends(get_auth_service)):
    session = await auth.login(body.email, body.password)
    return SuccessResponse(data=session, message="Login successful")


@router.get("/me", response_model=SuccessResponse)
async def me(
    identity: Identity = Depends(get_current_identity),
    auth: AuthService = Depends(get_auth_service),
):
    return SuccessResponse(data=await auth.get_profile(identity.user_id))
