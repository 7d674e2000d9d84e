from __future__ import annotations

from datetime import date

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone, to_decimal
from .model import AttendanceSummary
from .repository import AttendanceRepository


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def summarize_period(self, *, employee_id: int, start_date: date, end_date: date) -> AttendanceSummary:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT COUNT(*) AS days_worked, COALESCE(SUM(overtime_hours), 0) AS total_overtime
                FROM attendance
                WHERE employee_id=%s AND check_in >= %s AND check_in < %s
                """,
                (int(employee_id), start_date, end_date),
            )
            r = fetchone(cur) or {}
            return AttendanceSummary(
                days_worked=int(r.get("days_worked") or 0),
                total_overtime=to_decimal(r.get("total_overtime")),
            )
