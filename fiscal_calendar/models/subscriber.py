"""Subscriber model for e-mail reminders."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class Subscriber(BaseModel):
    """An e-mail address opted in for reminders, keyed by the address itself."""
    email: str
    subscribed_at: Optional[datetime] = Field(None, alias="subscribedAt")

    class Config:
        populate_by_name = True


class SubscriptionResult(BaseModel):
    success: bool
    message: str
