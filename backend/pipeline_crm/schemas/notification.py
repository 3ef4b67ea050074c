"""
Notification and tenant usage schemas.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel


class NotificationResponse(BaseModel):
    id: UUID
    title: str
    message: str
    link: Optional[str] = None
    is_read: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class EmailUsageResponse(BaseModel):
    usage: int
    max: Optional[int] = None
    reset_date: Optional[datetime] = None
    percentage: Optional[float] = None
