from typing import Any, Dict, Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class UserProfileOut(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    tier: str = "free"
    credits: int = 0
    has_completed_setup: bool = False
    writing_style: Optional[str] = None
    preferences: Dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class UserProfileResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None
    user: UserProfileOut


class UserProfileUpdate(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)
    writing_style: Optional[str] = Field(default=None, max_length=20000)


class DeleteAccountResponse(BaseModel):
    success: bool = True
    message: str
