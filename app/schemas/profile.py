"""
Profile schemas
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ProfileUpdate(BaseModel):
    """Only the fields present in the body are written"""
    full_name: Optional[str] = Field(default=None, max_length=200)
    avatar_url: Optional[str] = Field(default=None, max_length=2048)
    phone: Optional[str] = Field(default=None, max_length=32)


class ProfileOut(BaseModel):
    id: str
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    phone: Optional[str] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ProfileResponse(BaseModel):
    profile: ProfileOut


class ProfileListResponse(BaseModel):
    profiles: List[ProfileOut]
