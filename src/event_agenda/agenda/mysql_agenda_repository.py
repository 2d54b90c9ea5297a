from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

import mysql.connector

from ..core.exceptions import DuplicateSlotError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_bool, db_cursor, fetchall, fetchone, is_duplicate_key
from .model import AgendaItem, NewAgendaItem, SlotKey
from .repository import AgendaRepository

_COLUMNS = """
    id, day, item_index, is_parallel, time_slot, title,
    requires_check_in, check_in_limit, is_active, created_at, updated_at
"""


def row_to_agenda_item(r: Dict[str, Any]) -> AgendaItem:
    limit = r.get("check_in_limit")
    return AgendaItem(
        item_id=str(r["id"]),
        day=r["day"],
        item_index=int(r["item_index"]),
        is_parallel=as_bool(r["is_parallel"]),
        time=r["time_slot"],
        title=r["title"],
        requires_check_in=as_bool(r["requires_check_in"]),
        is_active=as_bool(r["is_active"]),
        check_in_limit=int(limit) if limit is not None else None,
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
    )


class MySQLAgendaRepository(AgendaRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_slot(self, slot: SlotKey) -> Optional[AgendaItem]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM agenda
                WHERE day=%s AND item_index=%s AND is_parallel=%s
                """,
                (slot.day, int(slot.item_index), int(slot.is_parallel)),
            )
            r = fetchone(cur)
            return row_to_agenda_item(r) if r else None

    def get_by_id(self, item_id: str) -> Optional[AgendaItem]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM agenda WHERE id=%s", (str(item_id),))
            r = fetchone(cur)
            return row_to_agenda_item(r) if r else None

    def list_for_day(self, day: str, *, active_only: bool) -> Sequence[AgendaItem]:
        clauses = ["day=%s"]
        params: list[object] = [day]
        if active_only:
            clauses.append("is_active=1")

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM agenda
                WHERE {where}
                ORDER BY item_index ASC, is_parallel ASC
                """,
                tuple(params),
            )
            return [row_to_agenda_item(r) for r in fetchall(cur)]

    def create(self, *, item_id: str, item: NewAgendaItem) -> AgendaItem:
        with db_cursor(self._conn_factory) as (_, cur):
            try:
                cur.execute(
                    """
                    INSERT INTO agenda(
                        id, day, item_index, is_parallel, time_slot, title,
                        requires_check_in, check_in_limit, is_active
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        item_id,
                        item.day,
                        int(item.item_index),
                        int(item.is_parallel),
                        item.time,
                        item.title,
                        int(item.requires_check_in),
                        item.check_in_limit,
                        int(item.is_active),
                    ),
                )
            except mysql.connector.IntegrityError as exc:
                if is_duplicate_key(exc):
                    raise DuplicateSlotError(
                        f"Agenda slot {SlotKey(item.day, item.item_index, item.is_parallel)} already exists"
                    ) from exc
                raise

            cur.execute(f"SELECT {_COLUMNS} FROM agenda WHERE id=%s", (item_id,))
            return row_to_agenda_item(fetchone(cur))

    def update(self, *, item_id: str, item: NewAgendaItem) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            try:
                cur.execute(
                    """
                    UPDATE agenda
                    SET day=%s, item_index=%s, is_parallel=%s, time_slot=%s, title=%s,
                        requires_check_in=%s, check_in_limit=%s, is_active=%s
                    WHERE id=%s
                    """,
                    (
                        item.day,
                        int(item.item_index),
                        int(item.is_parallel),
                        item.time,
                        item.title,
                        int(item.requires_check_in),
                        item.check_in_limit,
                        int(item.is_active),
                        str(item_id),
                    ),
                )
            except mysql.connector.IntegrityError as exc:
                if is_duplicate_key(exc):
                    raise DuplicateSlotError(
                        f"Agenda slot {SlotKey(item.day, item.item_index, item.is_parallel)} already exists"
                    ) from exc
                raise
            # rowcount is 0 when nothing changed, so confirm the row exists.
            if cur.rowcount > 0:
                return True
            cur.execute("SELECT id FROM agenda WHERE id=%s", (str(item_id),))
            return fetchone(cur) is not None

    def set_active(self, *, item_id: str, active: bool) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE agenda SET is_active=%s WHERE id=%s", (int(active), str(item_id)))
            if cur.rowcount > 0:
                return True
            cur.execute("SELECT id FROM agenda WHERE id=%s", (str(item_id),))
            return fetchone(cur) is not None
