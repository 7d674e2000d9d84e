from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Notification
from .repository import NotificationRepository


def _row_to_notification(r: dict) -> Notification:
    return Notification(
        notification_id=int(r["notification_id"]),
        user_id=int(r["user_id"]),
        title=r["title"],
        message=r.get("message"),
        type=r.get("type"),
        link=r.get("link"),
        created_at=r["created_at"],
        read_at=r.get("read_at"),
    )


class MySQLNotificationRepository(NotificationRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, *, user_id: int, title: str, message: Optional[str], type: Optional[str], link: Optional[str]) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO notifications(user_id, title, message, type, link) VALUES(%s,%s,%s,%s,%s)",
                (int(user_id), title, message, type, link),
            )
            return int(cur.lastrowid)

    def get(self, *, notification_id: int) -> Optional[Notification]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT notification_id, user_id, title, message, type, link, created_at, read_at
                FROM notifications WHERE notification_id=%s
                """,
                (int(notification_id),),
            )
            r = fetchone(cur)
            return _row_to_notification(r) if r else None

    def list_for_user(self, *, user_id: int, only_unread: bool, limit: int) -> Sequence[Notification]:
        unread = "AND read_at IS NULL" if only_unread else ""
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT notification_id, user_id, title, message, type, link, created_at, read_at
                FROM notifications
                WHERE user_id=%s {unread}
                ORDER BY created_at DESC, notification_id DESC
                LIMIT %s
                """,
                (int(user_id), int(limit)),
            )
            return [_row_to_notification(r) for r in fetchall(cur)]

    def mark_read(self, *, notification_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE notifications SET read_at=NOW() WHERE notification_id=%s AND read_at IS NULL",
                (int(notification_id),),
            )
            return cur.rowcount > 0

    def mark_all_read(self, *, user_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE notifications SET read_at=NOW() WHERE user_id=%s AND read_at IS NULL", (int(user_id),))
            return int(cur.rowcount)
