from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import EmployeeStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause, to_decimal
from .model import Employee, UserAccount
from .repository import EmployeeRepository

_EMPLOYEE_COLUMNS = """
    e.employee_id, e.organization_id, e.first_name, e.last_name,
    e.user_id, e.manager_id, e.hire_date, e.salary, e.status
"""


def _row_to_employee(r: dict) -> Employee:
    return Employee(
        employee_id=int(r["employee_id"]),
        organization_id=int(r["organization_id"]),
        first_name=r["first_name"],
        last_name=r["last_name"],
        user_id=int(r["user_id"]) if r.get("user_id") is not None else None,
        manager_id=int(r["manager_id"]) if r.get("manager_id") is not None else None,
        hire_date=r.get("hire_date"),
        salary=to_decimal(r.get("salary")),
        status=EmployeeStatus(r["status"]),
    )


class MySQLEmployeeRepository(EmployeeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, employee_id: int) -> Optional[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_EMPLOYEE_COLUMNS} FROM employees e WHERE e.employee_id=%s", (int(employee_id),))
            r = fetchone(cur)
            return _row_to_employee(r) if r else None

    def get_by_user_id(self, user_id: int) -> Optional[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_EMPLOYEE_COLUMNS} FROM employees e WHERE e.user_id=%s", (int(user_id),))
            r = fetchone(cur)
            return _row_to_employee(r) if r else None

    def get_user(self, user_id: int) -> Optional[UserAccount]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT u.user_id, u.is_active, r.role_name
                FROM users u
                JOIN roles r ON r.role_id = u.role_id
                WHERE u.user_id=%s
                """,
                (int(user_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            cur.execute(
                """
                SELECT rp.permission
                FROM role_permissions rp
                JOIN users u ON u.role_id = rp.role_id
                WHERE u.user_id=%s
                """,
                (int(user_id),),
            )
            permissions = frozenset(p["permission"] for p in fetchall(cur))
            return UserAccount(
                user_id=int(r["user_id"]),
                role_name=r["role_name"],
                permissions=permissions,
                is_active=bool(r["is_active"]),
            )

    def list_user_ids_with_permission(self, *, permission: str, organization_id: int, limit: int) -> Sequence[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT DISTINCT u.user_id
                FROM users u
                JOIN role_permissions rp ON rp.role_id = u.role_id
                WHERE rp.permission=%s AND u.organization_id=%s AND u.is_active=1
                ORDER BY u.user_id
                LIMIT %s
                """,
                (permission, int(organization_id), int(limit)),
            )
            return [int(r["user_id"]) for r in fetchall(cur)]

    def list_active(self, *, organization_id: int, employee_ids: Optional[Sequence[int]] = None) -> Sequence[Employee]:
        clauses = ["e.organization_id=%s", "e.status=%s"]
        params: list[object] = [int(organization_id), EmployeeStatus.ACTIVE.value]
        if employee_ids:
            clauses.append(f"e.employee_id IN ({in_clause(employee_ids)})")
            params.extend(int(i) for i in employee_ids)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_EMPLOYEE_COLUMNS} FROM employees e WHERE {' AND '.join(clauses)} ORDER BY e.employee_id",
                tuple(params),
            )
            return [_row_to_employee(r) for r in fetchall(cur)]
