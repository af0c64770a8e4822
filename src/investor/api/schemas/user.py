"""Pydantic schemas for user profile endpoints."""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class UserResponse(BaseModel):
    model_config = {"from_attributes": True}

    user_id: str
    email: str
    first_name: str
    last_name: str
    cash: Decimal


class UserUpdateRequest(BaseModel):
    first_name: Optional[str] = Field(default=None, min_length=1, max_length=50)
    last_name: Optional[str] = Field(default=None, min_length=1, max_length=50)
