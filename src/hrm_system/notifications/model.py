from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class Notification:
    notification_id: int
    user_id: int
    title: str
    message: Optional[str]
    type: Optional[str]
    link: Optional[str]
    created_at: datetime
    read_at: Optional[datetime] = None
