from typing import Any, Dict, Optional
from pydantic import BaseModel


class PreferencesResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None
    preferences: Dict[str, Any]


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
    fields: Optional[Dict[str, str]] = None


ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid request"},
    401: {"model": ErrorResponse, "description": "Missing or invalid token"},
    404: {"model": ErrorResponse, "description": "User profile not found"},
    503: {"model": ErrorResponse, "description": "Storage temporarily unavailable"},
}
