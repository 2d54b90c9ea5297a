from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Sequence

from ..agenda.model import SlotKey
from ..core.enums import CheckInOutcome


@dataclass(frozen=True)
class CheckInRecord:
    """Domain entity: one attendee's check-in to one agenda slot.

    The slot key, time and title are copied from the agenda item when the
    record is written, so the record stays accurate if the item is edited.
    """

    record_id: str
    user_id: str
    day: str
    item_index: int
    is_parallel: bool
    time: str
    title: str
    checked_in_at: datetime

    @property
    def slot(self) -> SlotKey:
        return SlotKey(self.day, self.item_index, self.is_parallel)


@dataclass(frozen=True)
class CheckInResult:
    outcome: CheckInOutcome
    record: Optional[CheckInRecord] = None
    message: str = ""

    @property
    def accepted(self) -> bool:
        return self.outcome == CheckInOutcome.ACCEPTED

    @property
    def is_checked_in(self) -> bool:
        """True when the attendee holds a record for the slot after this call."""
        return self.outcome in (CheckInOutcome.ACCEPTED, CheckInOutcome.ALREADY_CHECKED_IN)


@dataclass(frozen=True)
class SlotCheckInCount:
    """Read-model: number of check-ins recorded against one slot."""

    day: str
    item_index: int
    is_parallel: bool
    time: str
    title: str
    count: int

    @property
    def slot(self) -> SlotKey:
        return SlotKey(self.day, self.item_index, self.is_parallel)


@dataclass(frozen=True)
class CheckInPage:
    """One page of check-ins, newest first, plus the size of the whole listing."""

    records: Sequence[CheckInRecord]
    total: int
    limit: int
    offset: int

    @property
    def total_pages(self) -> int:
        return -(-self.total // self.limit) if self.limit else 0

    @property
    def has_more(self) -> bool:
        return self.offset + len(self.records) < self.total


@dataclass(frozen=True)
class CheckInSummary:
    total_check_ins: int
    unique_users: int
    slots_with_check_ins: int
