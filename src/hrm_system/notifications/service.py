from __future__ import annotations

import logging
from typing import Iterable, Optional, Sequence

from ..core.constants import NOTIFICATION_LIST_LIMIT
from ..core.exceptions import ForbiddenError, NotFoundError
from .model import Notification
from .repository import NotificationRepository

logger = logging.getLogger(__name__)


class NotificationService:
    """Notification sink for the engines plus the user's inbox use cases."""

    def __init__(self, notifications: NotificationRepository):
        self._notifications = notifications

    def notify(
        self,
        *,
        user_id: Optional[int],
        title: str,
        message: Optional[str] = None,
        type: Optional[str] = None,
        link: Optional[str] = None,
    ) -> bool:
        """Best-effort: a failed notification never fails the caller's operation."""
        if not user_id:
            return False
        try:
            self._notifications.create(
                user_id=int(user_id),
                title=title or "Notification",
                message=message,
                type=type,
                link=link,
            )
            return True
        except Exception:
            logger.warning("Failed to deliver notification %r to user %s", title, user_id, exc_info=True)
            return False

    def notify_many(self, user_ids: Iterable[int], **kwargs) -> int:
        sent = 0
        for user_id in dict.fromkeys(user_ids):
            if self.notify(user_id=user_id, **kwargs):
                sent += 1
        return sent

    def list_for_user(self, *, user_id: int, only_unread: bool = False) -> Sequence[Notification]:
        return self._notifications.list_for_user(
            user_id=int(user_id),
            only_unread=bool(only_unread),
            limit=NOTIFICATION_LIST_LIMIT,
        )

    def mark_read(self, *, notification_id: int, user_id: int) -> Notification:
        existing = self._notifications.get(notification_id=int(notification_id))
        if not existing:
            raise NotFoundError("Notification not found")
        if existing.user_id != int(user_id):
            raise ForbiddenError("Cannot update this notification")

        self._notifications.mark_read(notification_id=existing.notification_id)
        return self._notifications.get(notification_id=existing.notification_id) or existing

    def mark_all_read(self, *, user_id: int) -> int:
        return self._notifications.mark_all_read(user_id=int(user_id))
