import pytest

from hrm_system.core.exceptions import ConflictError
from hrm_system.database.connection import DatabaseConnection, DBConfig


class FakeCursor:
    def __init__(self, granted):
        self._granted = granted
        self.executed = []
        self.closed = False

    def execute(self, sql, params=()):
        self.executed.append((sql, params))

    def fetchone(self):
        sql = self.executed[-1][0]
        if sql.startswith("SELECT GET_LOCK"):
            return (1 if self._granted else 0,)
        return (1,)

    def close(self):
        self.closed = True


class FakeConnection:
    def __init__(self, granted):
        self.cur = FakeCursor(granted)
        self.closed = False

    def cursor(self):
        return self.cur

    def close(self):
        self.closed = True


def _db_with(conn):
    db = DatabaseConnection(DBConfig("localhost", 3306, "root", "", "hrm_test_db"))
    db.connect = lambda: conn
    return db


def test_lock_is_released_after_the_block():
    conn = FakeConnection(granted=True)
    ran = []

    with _db_with(conn).advisory_lock("hrm_leave_employee_30", timeout_seconds=3):
        ran.append(True)

    assert ran == [True]
    assert [sql for sql, _ in conn.cur.executed] == ["SELECT GET_LOCK(%s, %s)", "SELECT RELEASE_LOCK(%s)"]
    assert conn.cur.executed[0][1] == ("hrm_leave_employee_30", 3)
    assert conn.closed


def test_contended_lock_raises_conflict_and_never_runs_the_block():
    conn = FakeConnection(granted=False)
    ran = []

    with pytest.raises(ConflictError, match="being modified concurrently"):
        with _db_with(conn).advisory_lock(
            "hrm_leave_employee_30",
            busy_message="Leave request is being modified concurrently, please retry",
        ):
            ran.append(True)

    assert ran == []
    assert len(conn.cur.executed) == 1
    assert conn.cur.closed and conn.closed
