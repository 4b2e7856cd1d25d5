"""
Notification Models

A notification is a short, non-blocking toast shown to the user.
All user-facing text is Indonesian, matching the rest of the dashboard.
"""

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field


class NotificationVariant(str, Enum):
    """Visual style of a toast."""
    DEFAULT = "default"
    DESTRUCTIVE = "destructive"


class Notification(BaseModel):
    """A single toast message."""

    title: str = Field(..., min_length=1)
    description: str = Field(default="")
    variant: NotificationVariant = Field(default=NotificationVariant.DEFAULT)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_error(self) -> bool:
        return self.variant is NotificationVariant.DESTRUCTIVE

    def to_log_dict(self) -> dict:
        """Convert to a flat dictionary for structured logging."""
        return {
            "title": self.title,
            "description": self.description,
            "variant": self.variant.value,
            "created_at": self.created_at.isoformat(),
        }
