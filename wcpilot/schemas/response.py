from pydantic import BaseModel
from typing import Optional, Any


class ErrorResponse(BaseModel):
    """
    Standard error response structure.
    """
    success: bool = False
    error: str
    code: str
    details: Optional[Any] = None


class SuccessResponse(BaseModel):
    """
    Standard success response structure.
    """
    success: bool = True
    data: Optional[Any] = None
    message: Optional[str] = None
