from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

import mysql.connector

from ..agenda.model import AgendaItem, SlotKey
from ..core.exceptions import CapacityReachedError, DuplicateCheckInError, ItemNotCheckableError, NotFoundError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_bool, db_cursor, fetchall, fetchone, is_duplicate_key
from .model import CheckInRecord, CheckInSummary, SlotCheckInCount
from .repository import CheckInRepository

_COLUMNS = "id, user_id, day, item_index, is_parallel, time_slot, title, checked_in_at"


def row_to_record(r: Dict[str, Any]) -> CheckInRecord:
    return CheckInRecord(
        record_id=str(r["id"]),
        user_id=str(r["user_id"]),
        day=r["day"],
        item_index=int(r["item_index"]),
        is_parallel=as_bool(r["is_parallel"]),
        time=r["time_slot"],
        title=r["title"],
        checked_in_at=r["checked_in_at"],
    )


def _slot_params(slot: SlotKey) -> tuple:
    return (slot.day, int(slot.item_index), int(slot.is_parallel))


class MySQLCheckInRepository(CheckInRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def insert(self, *, record_id: str, user_id: str, item: AgendaItem) -> CheckInRecord:
        slot = item.slot
        with db_cursor(self._conn_factory) as (_, cur):
            self._admit(cur, user_id=user_id, item=item)

            try:
                cur.execute(
                    """
                    INSERT INTO agenda_checkins(id, user_id, day, item_index, is_parallel, time_slot, title)
                    VALUES(%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (record_id, user_id, *_slot_params(slot), item.time, item.title),
                )
            except mysql.connector.IntegrityError as exc:
                if is_duplicate_key(exc):
                    raise DuplicateCheckInError(f"User {user_id} already checked in to {slot}") from exc
                raise

            # checked_in_at is defaulted by the server; read back what was stored.
            cur.execute(f"SELECT {_COLUMNS} FROM agenda_checkins WHERE id=%s", (record_id,))
            return row_to_record(fetchone(cur))

    @staticmethod
    def _lock_agenda_row(cur, item: AgendaItem, *, exclusive: bool) -> Dict[str, Any]:
        cur.execute(
            f"""
            SELECT requires_check_in, is_active, check_in_limit
            FROM agenda
            WHERE id=%s
            {"FOR UPDATE" if exclusive else "FOR SHARE"}
            """,
            (item.item_id,),
        )
        locked = fetchone(cur)
        if not locked:
            raise NotFoundError(f"Agenda item {item.slot} not found")
        if not (as_bool(locked["requires_check_in"]) and as_bool(locked["is_active"])):
            raise ItemNotCheckableError(f"Agenda item {item.slot} is not open for check-in")
        return locked

    def _admit(self, cur, *, user_id: str, item: AgendaItem) -> None:
        """Re-check the agenda row inside the insert transaction.

        Uncapped items take a shared lock: concurrent check-ins do not block
        each other, but a deactivation (exclusive row lock) cannot commit
        until the insert does. Capped items take the exclusive lock so the
        count below cannot be raced by another writer. ``item`` is the
        snapshot read during validation; the locked row is what counts.
        """

        locked = self._lock_agenda_row(cur, item, exclusive=item.check_in_limit is not None)
        limit = locked.get("check_in_limit")
        if limit is None:
            return
        if item.check_in_limit is None:
            # A limit was set after validation; serialize like any capped item.
            locked = self._lock_agenda_row(cur, item, exclusive=True)
            limit = locked.get("check_in_limit")
            if limit is None:
                return

        cur.execute(
            "SELECT id FROM agenda_checkins WHERE user_id=%s AND day=%s AND item_index=%s AND is_parallel=%s",
            (user_id, *_slot_params(item.slot)),
        )
        if fetchone(cur):
            raise DuplicateCheckInError(f"User {user_id} already checked in to {item.slot}")

        cur.execute(
            "SELECT COUNT(*) AS n FROM agenda_checkins WHERE day=%s AND item_index=%s AND is_parallel=%s",
            _slot_params(item.slot),
        )
        if int(fetchone(cur)["n"]) >= int(limit):
            raise CapacityReachedError(f"Agenda item {item.slot} is full ({int(limit)} check-ins)")

    def get_for_user_and_slot(self, *, user_id: str, slot: SlotKey) -> Optional[CheckInRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM agenda_checkins
                WHERE user_id=%s AND day=%s AND item_index=%s AND is_parallel=%s
                """,
                (user_id, *_slot_params(slot)),
            )
            r = fetchone(cur)
            return row_to_record(r) if r else None

    def list_for_user(self, user_id: str) -> Sequence[CheckInRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM agenda_checkins
                WHERE user_id=%s
                ORDER BY checked_in_at ASC, day ASC, item_index ASC
                """,
                (user_id,),
            )
            return [row_to_record(r) for r in fetchall(cur)]

    def count_for_slot(self, slot: SlotKey) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT COUNT(*) AS n FROM agenda_checkins WHERE day=%s AND item_index=%s AND is_parallel=%s",
                _slot_params(slot),
            )
            r = fetchone(cur)
            return int(r["n"]) if r else 0

    def slot_counts(self, *, day: Optional[str] = None) -> Sequence[SlotCheckInCount]:
        clauses: list[str] = []
        params: list[object] = []
        if day is not None:
            clauses.append("day=%s")
            params.append(day)

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT
                    day, item_index, is_parallel,
                    MAX(time_slot) AS time_slot, MAX(title) AS title,
                    COUNT(*) AS n
                FROM agenda_checkins
                {where}
                GROUP BY day, item_index, is_parallel
                ORDER BY day ASC, item_index ASC, is_parallel ASC
                """,
                tuple(params),
            )
            return [
                SlotCheckInCount(
                    day=r["day"],
                    item_index=int(r["item_index"]),
                    is_parallel=as_bool(r["is_parallel"]),
                    time=r["time_slot"],
                    title=r["title"],
                    count=int(r["n"]),
                )
                for r in fetchall(cur)
            ]

    @staticmethod
    def _filters(day: Optional[str], slot: Optional[SlotKey]) -> tuple[str, list[object]]:
        clauses: list[str] = []
        params: list[object] = []
        if slot is not None:
            clauses.append("day=%s AND item_index=%s AND is_parallel=%s")
            params.extend(_slot_params(slot))
        elif day is not None:
            clauses.append("day=%s")
            params.append(day)
        return (f"WHERE {' AND '.join(clauses)}" if clauses else ""), params

    def list_checkins(
        self,
        *,
        day: Optional[str] = None,
        slot: Optional[SlotKey] = None,
        limit: int,
        offset: int = 0,
    ) -> Sequence[CheckInRecord]:
        where, params = self._filters(day, slot)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM agenda_checkins
                {where}
                ORDER BY checked_in_at DESC, id DESC
                LIMIT %s OFFSET %s
                """,
                tuple(params) + (int(limit), int(offset)),
            )
            return [row_to_record(r) for r in fetchall(cur)]

    def count_checkins(self, *, day: Optional[str] = None, slot: Optional[SlotKey] = None) -> int:
        where, params = self._filters(day, slot)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS n FROM agenda_checkins {where}", tuple(params))
            r = fetchone(cur)
            return int(r["n"]) if r else 0

    def summary(self) -> CheckInSummary:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT
                    COUNT(*) AS total,
                    COUNT(DISTINCT user_id) AS users,
                    COUNT(DISTINCT day, item_index, is_parallel) AS slots
                FROM agenda_checkins
                """
            )
            r = fetchone(cur) or {}
            return CheckInSummary(
                total_check_ins=int(r.get("total") or 0),
                unique_users=int(r.get("users") or 0),
                slots_with_check_ins=int(r.get("slots") or 0),
            )
