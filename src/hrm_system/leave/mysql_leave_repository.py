from __future__ import annotations

from datetime import date
from typing import ContextManager, Mapping, Optional, Sequence

from ..core.enums import LeaveStatus, LeaveType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import LeaveRequest
from .repository import LeaveRequestRepository

_SELECT = """
    SELECT l.request_id, l.employee_id, l.leave_type, l.start_date, l.end_date, l.days_requested,
           l.reason, l.status, l.approver_id, l.decided_at, l.decision_note, l.cancelled_by,
           l.created_at, l.updated_at
    FROM leave_requests l
"""


def _row_to_request(r: dict) -> LeaveRequest:
    return LeaveRequest(
        request_id=int(r["request_id"]),
        employee_id=int(r["employee_id"]),
        leave_type=LeaveType(r["leave_type"]),
        start_date=r["start_date"],
        end_date=r["end_date"],
        days_requested=int(r["days_requested"]),
        reason=r["reason"],
        status=LeaveStatus(r["status"]),
        approver_id=r.get("approver_id"),
        decided_at=r.get("decided_at"),
        decision_note=r.get("decision_note"),
        cancelled_by=r.get("cancelled_by"),
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
    )


def _filters(
    organization_id: int,
    status: Optional[LeaveStatus],
    employee_id: Optional[int],
    leave_type: Optional[LeaveType],
    start_date: Optional[date],
    end_date: Optional[date],
) -> tuple[str, list]:
    where = ["e.organization_id=%s"]
    params: list = [int(organization_id)]
    if status:
        where.append("l.status=%s")
        params.append(status.value)
    if employee_id:
        where.append("l.employee_id=%s")
        params.append(int(employee_id))
    if leave_type:
        where.append("l.leave_type=%s")
        params.append(leave_type.value)
    if start_date:
        where.append("l.end_date >= %s")
        params.append(start_date)
    if end_date:
        where.append("l.start_date <= %s")
        params.append(end_date)
    return " AND ".join(where), params


class MySQLLeaveRequestRepository(LeaveRequestRepository):
    def __init__(self, conn_factory: DatabaseConnection, *, lock_timeout_seconds: int = 10):
        self._conn_factory = conn_factory
        self._lock_timeout_seconds = int(lock_timeout_seconds)

    def create(
        self,
        *,
        employee_id: int,
        leave_type: LeaveType,
        start_date: date,
        end_date: date,
        days_requested: int,
        reason: str,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO leave_requests(employee_id, leave_type, start_date, end_date, days_requested, reason, status)
                VALUES(%s,%s,%s,%s,%s,%s,'pending')
                """,
                (int(employee_id), leave_type.value, start_date, end_date, int(days_requested), reason),
            )
            return int(cur.lastrowid)

    def get(self, *, request_id: int) -> Optional[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE l.request_id=%s", (int(request_id),))
            r = fetchone(cur)
            return _row_to_request(r) if r else None

    def list_requests(
        self,
        *,
        organization_id: int,
        status: Optional[LeaveStatus] = None,
        employee_id: Optional[int] = None,
        leave_type: Optional[LeaveType] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        offset: int = 0,
        limit: int = 10,
    ) -> Sequence[LeaveRequest]:
        where, params = _filters(organization_id, status, employee_id, leave_type, start_date, end_date)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT
                + f"""
                JOIN employees e ON e.employee_id = l.employee_id
                WHERE {where}
                ORDER BY l.created_at DESC, l.request_id DESC
                LIMIT %s OFFSET %s
                """,
                (*params, int(limit), int(offset)),
            )
            return [_row_to_request(r) for r in fetchall(cur)]

    def count_requests(
        self,
        *,
        organization_id: int,
        status: Optional[LeaveStatus] = None,
        employee_id: Optional[int] = None,
        leave_type: Optional[LeaveType] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> int:
        where, params = _filters(organization_id, status, employee_id, leave_type, start_date, end_date)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT COUNT(*) AS total
                FROM leave_requests l JOIN employees e ON e.employee_id = l.employee_id
                WHERE {where}
                """,
                tuple(params),
            )
            r = fetchone(cur) or {}
            return int(r.get("total") or 0)

    def find_overlapping(
        self,
        *,
        employee_id: int,
        start_date: date,
        end_date: date,
        exclude_request_id: Optional[int] = None,
    ) -> Sequence[LeaveRequest]:
        sql = _SELECT + """
            WHERE l.employee_id=%s
              AND l.status IN ('pending', 'approved')
              AND l.start_date <= %s AND l.end_date >= %s
        """
        params: list = [int(employee_id), end_date, start_date]
        if exclude_request_id:
            sql += " AND l.request_id <> %s"
            params.append(int(exclude_request_id))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql + " ORDER BY l.start_date", tuple(params))
            return [_row_to_request(r) for r in fetchall(cur)]

    def update_details(
        self,
        *,
        request_id: int,
        leave_type: LeaveType,
        start_date: date,
        end_date: date,
        days_requested: int,
        reason: str,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE leave_requests
                SET leave_type=%s, start_date=%s, end_date=%s, days_requested=%s, reason=%s
                WHERE request_id=%s AND status='pending'
                """,
                (leave_type.value, start_date, end_date, int(days_requested), reason, int(request_id)),
            )
            return cur.rowcount > 0

    def set_status(
        self,
        *,
        request_id: int,
        expected: LeaveStatus,
        status: LeaveStatus,
        approver_id: Optional[int] = None,
        decision_note: Optional[str] = None,
        cancelled_by: Optional[int] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            if status == LeaveStatus.CANCELLED:
                cur.execute(
                    """
                    UPDATE leave_requests
                    SET status=%s, cancelled_by=%s, approver_id=NULL
                    WHERE request_id=%s AND status=%s
                    """,
                    (status.value, cancelled_by, int(request_id), expected.value),
                )
            else:
                cur.execute(
                    """
                    UPDATE leave_requests
                    SET status=%s, approver_id=%s, decision_note=%s, decided_at=NOW()
                    WHERE request_id=%s AND status=%s
                    """,
                    (status.value, approver_id, decision_note, int(request_id), expected.value),
                )
            return cur.rowcount > 0

    def used_days_by_type(self, *, employee_id: int, year: int) -> Mapping[LeaveType, float]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT leave_type, COALESCE(SUM(days_requested), 0) AS used
                FROM leave_requests
                WHERE employee_id=%s AND status='approved' AND YEAR(start_date)=%s
                GROUP BY leave_type
                """,
                (int(employee_id), int(year)),
            )
            return {LeaveType(r["leave_type"]): float(r["used"]) for r in fetchall(cur)}

    def employee_lock(self, employee_id: int) -> ContextManager[None]:
        return self._conn_factory.advisory_lock(
            f"hrm_leave_employee_{int(employee_id)}",
            timeout_seconds=self._lock_timeout_seconds,
            busy_message="Leave request is being modified concurrently, please retry",
        )
