from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Notification


class NotificationRepository(Protocol):
    def create(
        self,
        *,
        user_id: int,
        title: str,
        message: Optional[str],
        type: Optional[str],
        link: Optional[str],
    ) -> int:
        raise NotImplementedError

    def get(self, *, notification_id: int) -> Optional[Notification]:
        raise NotImplementedError

    def list_for_user(self, *, user_id: int, only_unread: bool, limit: int) -> Sequence[Notification]:
        """Newest first."""

        raise NotImplementedError

    def mark_read(self, *, notification_id: int) -> bool:
        raise NotImplementedError

    def mark_all_read(self, *, user_id: int) -> int:
        raise NotImplementedError
