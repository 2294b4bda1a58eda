"""
wcpilot/schemas/account.py

Purpose: Auth, profile and billing request bodies
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class RegisterRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: str
    password: str
    first_name: str = Field("", alias="firstName")
    last_name: str = Field("", alias="lastName")


class LoginRequest(BaseModel):
    email: str
    password: str


class UpdateProfileRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    first_name: Optional[str] = Field(None, alias="firstName")
    last_name: Optional[str] = Field(None, alias="lastName")
    provider_api_key: Optional[str] = Field(None, alias="providerApiKey")


class ChangePlanRequest(BaseModel):
    plan: str
