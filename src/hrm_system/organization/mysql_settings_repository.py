from __future__ import annotations

from typing import Any, Optional

from ..core.exceptions import NotFoundError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json_column, fetchone, load_json_column
from .repository import OrganizationSettingsRepository

_COLUMNS = {"leave_policy", "payroll_config"}


class MySQLOrganizationSettingsRepository(OrganizationSettingsRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _read(self, organization_id: int, column: str) -> Optional[Any]:
        assert column in _COLUMNS
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {column} AS data FROM organizations WHERE organization_id=%s", (int(organization_id),))
            r = fetchone(cur)
            if not r:
                return None
            try:
                return load_json_column(r.get("data"))
            except ValueError:
                # Malformed JSON degrades to defaults in the resolver.
                return None

    def _write(self, organization_id: int, column: str, data: dict) -> None:
        assert column in _COLUMNS
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE organizations SET {column}=%s WHERE organization_id=%s",
                (dump_json_column(data), int(organization_id)),
            )
            if cur.rowcount == 0:
                cur.execute("SELECT 1 FROM organizations WHERE organization_id=%s", (int(organization_id),))
                if not fetchone(cur):
                    raise NotFoundError("Organization not found")

    def get_leave_policy_json(self, organization_id: int) -> Optional[Any]:
        return self._read(organization_id, "leave_policy")

    def save_leave_policy_json(self, organization_id: int, data: dict) -> None:
        self._write(organization_id, "leave_policy", data)

    def get_payroll_config_json(self, organization_id: int) -> Optional[Any]:
        return self._read(organization_id, "payroll_config")

    def save_payroll_config_json(self, organization_id: int, data: dict) -> None:
        self._write(organization_id, "payroll_config", data)
