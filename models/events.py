"""
Data models for local state-change events.
"""

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from .enums import ComponentType, InventoryEventType


class InventoryEvent(BaseModel):
    """Published after the local working set changes on a confirmed result."""

    event_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    event_type: InventoryEventType
    payload: dict[str, Any] = Field(default_factory=dict)
    source: ComponentType
    timestamp: datetime = Field(default_factory=datetime.now)
