from pydantic import Field
from typing import Literal, Optional
from datetime import datetime

from app.models.common import CamelModel


class Subscription(CamelModel):
    is_active: bool = False
    trial_start: Optional[datetime] = None
    trial_end: Optional[datetime] = None
    plan: Literal["trial", "basic", "premium"] = "trial"


class UserProfileUpdateRequest(CamelModel):
    name: Optional[str] = None


class UserProfileResponse(CamelModel):
    id: str = Field(alias="_id")
    firebase_uid: str
    email: Optional[str] = None
    name: Optional[str] = None
    subscription: Subscription = Subscription()
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
