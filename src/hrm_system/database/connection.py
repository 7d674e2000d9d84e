from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Mapping, Optional

import mysql.connector

from ..core.exceptions import ConflictError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DBConfig:
    host: str
    port: int
    user: str
    password: str
    database: str

    @classmethod
    def from_mapping(cls, db_config: Mapping) -> "DBConfig":
        return cls(
            host=str(db_config.get("host", "localhost")),
            port=int(db_config.get("port", 3306)),
            user=str(db_config.get("user", "root")),
            password=str(db_config.get("password", "")),
            database=str(db_config.get("database", "hrm_db")),
        )


class DatabaseConnection:
    """Singleton-like DB connection factory.

    Note: connections are short-lived, one per repository operation.
    """

    _instance: Optional["DatabaseConnection"] = None

    def __init__(self, config: DBConfig):
        self._config = config

    @classmethod
    def get_instance(cls, config: DBConfig) -> "DatabaseConnection":
        if cls._instance is None:
            cls._instance = DatabaseConnection(config)
        return cls._instance

    @property
    def config(self) -> DBConfig:
        return self._config

    def connect(self):
        return mysql.connector.connect(
            host=self._config.host,
            port=int(self._config.port),
            user=self._config.user,
            password=self._config.password,
            database=self._config.database,
        )

    @contextmanager
    def advisory_lock(
        self,
        name: str,
        *,
        timeout_seconds: int = 10,
        busy_message: str = "Resource is busy, please retry",
    ) -> Iterator[None]:
        """Hold a MySQL named lock (GET_LOCK) for the duration of the block.

        The lock belongs to a dedicated connection, so it is released even if
        the block fails and the connection is closed. A lock still held
        elsewhere after ``timeout_seconds`` raises ConflictError.
        """
        conn = self.connect()
        try:
            cur = conn.cursor()
            try:
                cur.execute("SELECT GET_LOCK(%s, %s)", (name, int(timeout_seconds)))
                row = cur.fetchone()
                if not row or row[0] != 1:
                    logger.warning("Could not acquire lock %r within %ss", name, timeout_seconds)
                    raise ConflictError(busy_message)
                try:
                    yield
                finally:
                    cur.execute("SELECT RELEASE_LOCK(%s)", (name,))
                    cur.fetchone()
            finally:
                cur.close()
        finally:
            conn.close()
