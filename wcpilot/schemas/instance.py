"""
wcpilot/schemas/instance.py

Purpose: Instance request bodies

Field shapes are loose on purpose: the services own validation and its
error messages.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class CreateInstanceRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    instance_name: str = Field(..., alias="instanceName")
    integration: Optional[str] = None


class UpdateInstanceRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    profile_name: Optional[str] = Field(None, alias="profileName")
    profile_picture_url: Optional[str] = Field(None, alias="profilePictureUrl")
