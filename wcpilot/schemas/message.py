"""
wcpilot/schemas/message.py

Purpose: Message, group and webhook request bodies
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Optional


class SendTextRequest(BaseModel):
    instance_name: str = Field(..., alias="instanceName")
    number: str
    text: str

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "instanceName": "support-bot",
                "number": "+5511999999999",
                "text": "Hello from WCPilot"
            }
        }
    )


class SendMediaRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    instance_name: str = Field(..., alias="instanceName")
    number: str
    media_url: str = Field(..., alias="mediaUrl")
    media_type: str = Field(..., alias="mediaType")
    caption: Optional[str] = None


class SendTemplateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    instance_name: str = Field(..., alias="instanceName")
    template_data: Dict[str, Any] = Field(..., alias="templateData")


class CreateGroupRequest(BaseModel):
    subject: str
    participants: List[str]
    description: Optional[str] = None


class WebhookRequest(BaseModel):
    url: str
    enabled: bool = True
    events: List[str] = Field(default_factory=list)
