from __future__ import annotations

import itertools
import threading
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Optional

import pytest

from event_agenda.agenda.model import AgendaItem, NewAgendaItem, SlotKey
from event_agenda.agenda.service import AgendaCatalog
from event_agenda.checkins.model import CheckInRecord, CheckInSummary, SlotCheckInCount
from event_agenda.checkins.service import CheckInLedger
from event_agenda.core.exceptions import (
    CapacityReachedError,
    DuplicateCheckInError,
    DuplicateSlotError,
    ItemNotCheckableError,
    NotFoundError,
)


class FakeClock:
    """Strictly increasing timestamps, safe across threads."""

    def __init__(self, start: datetime = datetime(2025, 9, 26, 9, 0, 0)):
        self._ticks = itertools.count()
        self._start = start
        self._lock = threading.Lock()

    def __call__(self) -> datetime:
        with self._lock:
            return self._start + timedelta(milliseconds=next(self._ticks))


class InMemoryAgenda:
    """Agenda table with the (day, item_index, is_parallel) unique index."""

    def __init__(self, clock: FakeClock):
        self._clock = clock
        self._lock = threading.RLock()
        self.by_id: dict[str, AgendaItem] = {}

    def _slot_taken(self, slot: SlotKey, *, except_id: Optional[str] = None) -> bool:
        return any(i.slot == slot and i.item_id != except_id for i in self.by_id.values())

    def get_by_slot(self, slot: SlotKey) -> Optional[AgendaItem]:
        with self._lock:
            return next((i for i in self.by_id.values() if i.slot == slot), None)

    def get_by_id(self, item_id: str) -> Optional[AgendaItem]:
        with self._lock:
            return self.by_id.get(item_id)

    def list_for_day(self, day: str, *, active_only: bool):
        with self._lock:
            items = [i for i in self.by_id.values() if i.day == day and (i.is_active or not active_only)]
        return sorted(items, key=lambda i: (i.item_index, i.is_parallel))

    def create(self, *, item_id: str, item: NewAgendaItem) -> AgendaItem:
        with self._lock:
            slot = SlotKey(item.day, item.item_index, item.is_parallel)
            if self._slot_taken(slot):
                raise DuplicateSlotError(f"Agenda slot {slot} already exists")
            now = self._clock()
            created = AgendaItem(item_id=item_id, created_at=now, updated_at=now, **vars(item))
            self.by_id[item_id] = created
            return created

    def update(self, *, item_id: str, item: NewAgendaItem) -> bool:
        with self._lock:
            current = self.by_id.get(item_id)
            if not current:
                return False
            slot = SlotKey(item.day, item.item_index, item.is_parallel)
            if self._slot_taken(slot, except_id=item_id):
                raise DuplicateSlotError(f"Agenda slot {slot} already exists")
            self.by_id[item_id] = replace(current, updated_at=self._clock(), **vars(item))
            return True

    def set_active(self, *, item_id: str, active: bool) -> bool:
        with self._lock:
            current = self.by_id.get(item_id)
            if not current:
                return False
            self.by_id[item_id] = replace(current, is_active=active, updated_at=self._clock())
            return True


class InMemoryCheckIns:
    """agenda_checkins table; the lock stands in for the storage unique index."""

    def __init__(self, agenda: InMemoryAgenda, clock: FakeClock):
        self._agenda = agenda
        self._clock = clock
        self._lock = threading.Lock()
        self.rows: dict[tuple[str, SlotKey], CheckInRecord] = {}
        self.insert_attempts = 0

    def insert(self, *, record_id: str, user_id: str, item: AgendaItem) -> CheckInRecord:
        with self._lock:
            self.insert_attempts += 1
            key = (user_id, item.slot)
            # Same transaction as the write: the current row decides, not the snapshot.
            locked = self._agenda.get_by_id(item.item_id)
            if not locked:
                raise NotFoundError(f"Agenda item {item.slot} not found")
            if not locked.is_checkable:
                raise ItemNotCheckableError(f"Agenda item {item.slot} is not open for check-in")
            if key in self.rows:
                raise DuplicateCheckInError(f"User {user_id} already checked in to {item.slot}")
            taken = sum(1 for (_, slot) in self.rows if slot == item.slot)
            if locked.check_in_limit is not None and taken >= locked.check_in_limit:
                raise CapacityReachedError(f"Agenda item {item.slot} is full")
            record = CheckInRecord(
                record_id=record_id,
                user_id=user_id,
                day=item.day,
                item_index=item.item_index,
                is_parallel=item.is_parallel,
                time=item.time,
                title=item.title,
                checked_in_at=self._clock(),
            )
            self.rows[key] = record
            return record

    def get_for_user_and_slot(self, *, user_id: str, slot: SlotKey) -> Optional[CheckInRecord]:
        with self._lock:
            return self.rows.get((user_id, slot))

    def list_for_user(self, user_id: str):
        with self._lock:
            records = [r for (uid, _), r in self.rows.items() if uid == user_id]
        return sorted(records, key=lambda r: r.checked_in_at)

    def count_for_slot(self, slot: SlotKey) -> int:
        with self._lock:
            return sum(1 for (_, s) in self.rows if s == slot)

    def slot_counts(self, *, day: Optional[str] = None):
        with self._lock:
            records = [r for r in self.rows.values() if day is None or r.day == day]
        grouped: dict[SlotKey, list[CheckInRecord]] = {}
        for r in records:
            grouped.setdefault(r.slot, []).append(r)
        return [
            SlotCheckInCount(
                day=slot.day,
                item_index=slot.item_index,
                is_parallel=slot.is_parallel,
                time=rs[0].time,
                title=rs[0].title,
                count=len(rs),
            )
            for slot, rs in sorted(grouped.items())
        ]

    def _matching(self, day: Optional[str], slot: Optional[SlotKey]) -> list[CheckInRecord]:
        with self._lock:
            records = list(self.rows.values())
        if slot is not None:
            return [r for r in records if r.slot == slot]
        return [r for r in records if day is None or r.day == day]

    def list_checkins(self, *, day=None, slot=None, limit: int, offset: int = 0):
        ordered = sorted(self._matching(day, slot), key=lambda r: (r.checked_in_at, r.record_id), reverse=True)
        return ordered[offset:offset + limit]

    def count_checkins(self, *, day=None, slot=None) -> int:
        return len(self._matching(day, slot))

    def summary(self) -> CheckInSummary:
        with self._lock:
            keys = list(self.rows)
        return CheckInSummary(
            total_check_ins=len(keys),
            unique_users=len({uid for uid, _ in keys}),
            slots_with_check_ins=len({slot for _, slot in keys}),
        )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def agenda_repo(clock):
    return InMemoryAgenda(clock)


@pytest.fixture
def checkins_repo(agenda_repo, clock):
    return InMemoryCheckIns(agenda_repo, clock)


@pytest.fixture
def catalog(agenda_repo):
    return AgendaCatalog(agenda_repo)


@pytest.fixture
def ledger(checkins_repo, catalog):
    return CheckInLedger(checkins_repo, catalog)


@pytest.fixture
def add_item(catalog):
    """Create catalog items with check-in enabled unless told otherwise."""

    def _add(day="Day 1", item_index=0, is_parallel=False, **overrides):
        fields = dict(time="10:00-11:00", title=f"{day} #{item_index}", requires_check_in=True)
        fields.update(overrides)
        return catalog.create_item(day=day, item_index=item_index, is_parallel=is_parallel, **fields)

    return _add


class ScriptedCursor:
    """Cursor double: records SQL, answers fetchone() from a queue, raises on matching SQL."""

    def __init__(self, rows=(), *, fail_on=None, error=None, rowcount=1):
        self.executed: list[tuple[str, tuple]] = []
        self._rows = list(rows)
        self._fail_on = fail_on
        self._error = error
        self.rowcount = rowcount
        self.closed = False

    def execute(self, sql, params=()):
        self.executed.append((" ".join(sql.split()), tuple(params)))
        if self._fail_on and self._fail_on in sql:
            raise self._error

    def fetchone(self):
        return self._rows.pop(0) if self._rows else None

    def fetchall(self):
        rows, self._rows = self._rows, []
        return rows

    def close(self):
        self.closed = True


class ScriptedConnection:
    def __init__(self, cursor: ScriptedCursor):
        self._cursor = cursor
        self.committed = False
        self.rolled_back = False
        self.closed = False

    def cursor(self, dictionary=False):
        return self._cursor

    def commit(self):
        self.committed = True

    def rollback(self):
        self.rolled_back = True

    def close(self):
        self.closed = True


class ScriptedFactory:
    def __init__(self, cursor: ScriptedCursor):
        self.cursor = cursor
        self.conn = ScriptedConnection(cursor)

    def connect(self):
        return self.conn


@pytest.fixture
def scripted_db():
    """Build a connection factory whose cursor replays ``rows`` for fetchone()/fetchall()."""

    def _make(rows=(), *, fail_on=None, error=None, rowcount=1) -> ScriptedFactory:
        return ScriptedFactory(ScriptedCursor(rows, fail_on=fail_on, error=error, rowcount=rowcount))

    return _make
