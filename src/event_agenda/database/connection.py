from __future__ import annotations

from dataclasses import dataclass

import mysql.connector

from ..core.constants import (
    DEFAULT_CONNECT_TIMEOUT_SECONDS,
    DEFAULT_LOCK_WAIT_TIMEOUT_SECONDS,
    DEFAULT_STATEMENT_TIMEOUT_MS,
)


@dataclass(frozen=True)
class DBConfig:
    host: str
    port: int
    user: str
    password: str
    database: str
    connect_timeout: int = DEFAULT_CONNECT_TIMEOUT_SECONDS
    lock_wait_timeout: int = DEFAULT_LOCK_WAIT_TIMEOUT_SECONDS
    statement_timeout_ms: int = DEFAULT_STATEMENT_TIMEOUT_MS

    @classmethod
    def from_dict(cls, db_config: dict) -> "DBConfig":
        return cls(
            host=str(db_config.get("host", "localhost")),
            port=int(db_config.get("port", 3306)),
            user=str(db_config.get("user", "root")),
            password=str(db_config.get("password", "")),
            database=str(db_config.get("database", "event_agenda")),
            connect_timeout=int(db_config.get("connect_timeout", DEFAULT_CONNECT_TIMEOUT_SECONDS)),
            lock_wait_timeout=int(db_config.get("lock_wait_timeout", DEFAULT_LOCK_WAIT_TIMEOUT_SECONDS)),
            statement_timeout_ms=int(db_config.get("statement_timeout_ms", DEFAULT_STATEMENT_TIMEOUT_MS)),
        )


class DatabaseConnection:
    """Connection factory handed to every repository.

    Each call to :meth:`connect` opens a short-lived connection whose session
    timeouts bound lock waits and statement run time, so no storage call can
    block indefinitely.
    """

    def __init__(self, config: DBConfig):
        self._config = config

    @property
    def config(self) -> DBConfig:
        return self._config

    def connect(self):
        conn = mysql.connector.connect(
            host=self._config.host,
            port=int(self._config.port),
            user=self._config.user,
            password=self._config.password,
            database=self._config.database,
            connection_timeout=int(self._config.connect_timeout),
            autocommit=False,
        )
        cur = conn.cursor()
        try:
            cur.execute("SET SESSION innodb_lock_wait_timeout = %s", (int(self._config.lock_wait_timeout),))
            cur.execute("SET SESSION max_execution_time = %s", (int(self._config.statement_timeout_ms),))
        except mysql.connector.Error:
            conn.close()
            raise
        finally:
            cur.close()
        return conn
