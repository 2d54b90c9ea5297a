from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Dict, List, Optional

import mysql.connector
from mysql.connector import errorcode

from ..core.constants import ER_LOCK_DEADLOCK, ER_LOCK_WAIT_TIMEOUT, ER_QUERY_TIMEOUT
from ..core.exceptions import StorageUnavailableError
from .connection import DatabaseConnection

logger = logging.getLogger(__name__)

_TRANSIENT_ERRNOS = frozenset({ER_LOCK_WAIT_TIMEOUT, ER_LOCK_DEADLOCK, ER_QUERY_TIMEOUT})


def is_duplicate_key(exc: BaseException) -> bool:
    return isinstance(exc, mysql.connector.IntegrityError) and exc.errno == errorcode.ER_DUP_ENTRY


def is_transient(exc: BaseException) -> bool:
    if isinstance(exc, (mysql.connector.OperationalError, mysql.connector.InterfaceError)):
        return True
    return isinstance(exc, mysql.connector.Error) and exc.errno in _TRANSIENT_ERRNOS


def _rollback_quietly(conn) -> None:
    try:
        conn.rollback()
    except mysql.connector.Error as exc:
        # The connection is usually gone already; the original error is what matters.
        logger.debug("rollback failed: %s", exc)


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    """Scope one unit of work: connect, yield (conn, cursor), commit, close.

    Any exception rolls the transaction back. Transient MySQL failures are
    re-raised as :class:`StorageUnavailableError`; everything else propagates
    unchanged.
    """

    try:
        conn = conn_factory.connect()
    except mysql.connector.Error as exc:
        if is_transient(exc):
            raise StorageUnavailableError(f"database unavailable: {exc}") from exc
        raise

    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except mysql.connector.Error as exc:
        _rollback_quietly(conn)
        if is_transient(exc):
            raise StorageUnavailableError(f"database call failed: {exc}") from exc
        raise
    except Exception:
        _rollback_quietly(conn)
        raise
    finally:
        conn.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def as_bool(value: Any) -> bool:
    """MySQL TINYINT(1) comes back as int; normalize to bool."""
    return bool(int(value)) if value is not None else False
