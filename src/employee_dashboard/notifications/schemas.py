from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


class MarkNotificationsRequest(BaseModel):
    notification_ids: Optional[List[int]] = Field(default=None, alias="notificationIds")
    mark_as_read: bool = Field(default=True, alias="markAsRead")
