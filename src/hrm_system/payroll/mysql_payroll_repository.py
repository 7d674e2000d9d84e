from __future__ import annotations

from datetime import datetime
from typing import Any, Optional, Sequence

from ..attendance.model import AttendanceSummary
from ..core.enums import PayrollStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import (
    db_cursor,
    dump_json_column,
    fetchall,
    fetchone,
    load_json_column,
    to_decimal,
)
from .model import BreakdownLine, PaymentDetails, PayrollCalculation, PayrollRecord
from .repository import PayrollRepository

_SELECT = """
    SELECT p.payroll_id, p.employee_id, p.pay_period, p.base_salary, p.allowances, p.deductions,
           p.net_salary, p.allowances_breakdown, p.deductions_breakdown, p.attendance_summary,
           p.status, p.created_at, p.processed_at, p.paid_at, p.payment_method,
           p.payment_reference, p.paid_by_user_id
    FROM payroll_records p
    JOIN employees e ON e.employee_id = p.employee_id
"""


def _lines(raw: Any) -> tuple[BreakdownLine, ...]:
    items = load_json_column(raw) or []
    return tuple(BreakdownLine(name=str(i.get("name")), amount=to_decimal(i.get("amount"))) for i in items)


def _lines_json(lines) -> Optional[str]:
    return dump_json_column([{"name": line.name, "amount": float(line.amount)} for line in lines])


def _row_to_record(r: dict) -> PayrollRecord:
    summary = load_json_column(r.get("attendance_summary")) or {}
    return PayrollRecord(
        payroll_id=int(r["payroll_id"]),
        employee_id=int(r["employee_id"]),
        pay_period=str(r["pay_period"]),
        base_salary=to_decimal(r["base_salary"]),
        allowances=to_decimal(r["allowances"]),
        deductions=to_decimal(r["deductions"]),
        net_salary=to_decimal(r["net_salary"]),
        allowances_breakdown=_lines(r.get("allowances_breakdown")),
        deductions_breakdown=_lines(r.get("deductions_breakdown")),
        attendance_summary=AttendanceSummary(
            days_worked=int(summary.get("daysWorked", 0)),
            total_overtime=to_decimal(summary.get("totalOvertime", 0)),
        ),
        status=PayrollStatus(r["status"]),
        created_at=r.get("created_at"),
        processed_at=r.get("processed_at"),
        paid_at=r.get("paid_at"),
        payment_method=r.get("payment_method"),
        payment_reference=r.get("payment_reference"),
        paid_by_user_id=r.get("paid_by_user_id"),
    )


def _filters(
    organization_id: int,
    pay_period: Optional[str],
    status: Optional[PayrollStatus],
    employee_id: Optional[int],
) -> tuple[str, list]:
    where = ["e.organization_id=%s"]
    params: list = [int(organization_id)]
    if pay_period:
        where.append("p.pay_period=%s")
        params.append(pay_period)
    if status:
        where.append("p.status=%s")
        params.append(status.value)
    if employee_id:
        where.append("p.employee_id=%s")
        params.append(int(employee_id))
    return " AND ".join(where), params


class MySQLPayrollRepository(PayrollRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, *, payroll_id: int) -> Optional[PayrollRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE p.payroll_id=%s", (int(payroll_id),))
            r = fetchone(cur)
            return _row_to_record(r) if r else None

    def get_for_period(self, *, employee_id: int, pay_period: str) -> Optional[PayrollRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE p.employee_id=%s AND p.pay_period=%s", (int(employee_id), pay_period))
            r = fetchone(cur)
            return _row_to_record(r) if r else None

    def list_records(
        self,
        *,
        organization_id: int,
        pay_period: Optional[str] = None,
        status: Optional[PayrollStatus] = None,
        employee_id: Optional[int] = None,
        offset: int = 0,
        limit: int = 10,
    ) -> Sequence[PayrollRecord]:
        where, params = _filters(organization_id, pay_period, status, employee_id)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT + f" WHERE {where} ORDER BY p.pay_period DESC, p.payroll_id DESC LIMIT %s OFFSET %s",
                (*params, int(limit), int(offset)),
            )
            return [_row_to_record(r) for r in fetchall(cur)]

    def count_records(
        self,
        *,
        organization_id: int,
        pay_period: Optional[str] = None,
        status: Optional[PayrollStatus] = None,
        employee_id: Optional[int] = None,
    ) -> int:
        where, params = _filters(organization_id, pay_period, status, employee_id)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT COUNT(*) AS total
                FROM payroll_records p JOIN employees e ON e.employee_id = p.employee_id
                WHERE {where}
                """,
                tuple(params),
            )
            r = fetchone(cur) or {}
            return int(r.get("total") or 0)

    def list_for_period(self, *, organization_id: int, pay_period: str) -> Sequence[PayrollRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT + " WHERE e.organization_id=%s AND p.pay_period=%s ORDER BY p.employee_id",
                (int(organization_id), pay_period),
            )
            return [_row_to_record(r) for r in fetchall(cur)]

    def list_for_employee(self, *, employee_id: int) -> Sequence[PayrollRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE p.employee_id=%s ORDER BY p.pay_period DESC", (int(employee_id),))
            return [_row_to_record(r) for r in fetchall(cur)]

    def upsert_draft(self, *, employee_id: int, pay_period: str, calculation: PayrollCalculation) -> int:
        summary = {
            "daysWorked": calculation.attendance_summary.days_worked,
            "totalOvertime": float(calculation.attendance_summary.total_overtime),
        }
        with db_cursor(self._conn_factory) as (_, cur):
            # Only drafts are recomputed; processed/paid rows keep their figures.
            cur.execute(
                """
                INSERT INTO payroll_records(
                    employee_id, pay_period, base_salary, allowances, deductions, net_salary,
                    allowances_breakdown, deductions_breakdown, attendance_summary, status
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,'draft')
                ON DUPLICATE KEY UPDATE
                    payroll_id = LAST_INSERT_ID(payroll_id),
                    base_salary = IF(status='draft', VALUES(base_salary), base_salary),
                    allowances = IF(status='draft', VALUES(allowances), allowances),
                    deductions = IF(status='draft', VALUES(deductions), deductions),
                    net_salary = IF(status='draft', VALUES(net_salary), net_salary),
                    allowances_breakdown = IF(status='draft', VALUES(allowances_breakdown), allowances_breakdown),
                    deductions_breakdown = IF(status='draft', VALUES(deductions_breakdown), deductions_breakdown),
                    attendance_summary = IF(status='draft', VALUES(attendance_summary), attendance_summary)
                """,
                (
                    int(employee_id),
                    pay_period,
                    calculation.base_salary,
                    calculation.allowances,
                    calculation.deductions,
                    calculation.net_salary,
                    _lines_json(calculation.allowances_breakdown),
                    _lines_json(calculation.deductions_breakdown),
                    dump_json_column(summary),
                ),
            )
            return int(cur.lastrowid)

    def update_status(
        self,
        *,
        payroll_id: int,
        expected: PayrollStatus,
        status: PayrollStatus,
        processed_at: Optional[datetime] = None,
        payment: Optional[PaymentDetails] = None,
    ) -> bool:
        sets = ["status=%s"]
        params: list = [status.value]
        if processed_at is not None:
            sets.append("processed_at=%s")
            params.append(processed_at)
        if payment is not None:
            sets.extend(["paid_at=%s", "payment_method=%s", "payment_reference=%s", "paid_by_user_id=%s"])
            params.extend([payment.paid_at, payment.payment_method, payment.payment_reference, payment.paid_by_user_id])

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE payroll_records SET {', '.join(sets)} WHERE payroll_id=%s AND status=%s",
                (*params, int(payroll_id), expected.value),
            )
            return cur.rowcount > 0

    def get_override(self, *, employee_id: int, pay_period: str) -> Optional[Any]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT config FROM payroll_overrides WHERE employee_id=%s AND pay_period=%s",
                (int(employee_id), pay_period),
            )
            r = fetchone(cur)
            if not r:
                return None
            try:
                return load_json_column(r.get("config"))
            except ValueError:
                return None

    def upsert_override(self, *, employee_id: int, pay_period: str, config: dict) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO payroll_overrides(employee_id, pay_period, config) VALUES(%s,%s,%s)
                ON DUPLICATE KEY UPDATE config=VALUES(config)
                """,
                (int(employee_id), pay_period, dump_json_column(config)),
            )

    def delete_override(self, *, employee_id: int, pay_period: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM payroll_overrides WHERE employee_id=%s AND pay_period=%s",
                (int(employee_id), pay_period),
            )
            return cur.rowcount > 0
