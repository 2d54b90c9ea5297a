from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..agenda.model import AgendaItem, SlotKey
from .model import CheckInRecord, CheckInSummary, SlotCheckInCount


class CheckInRepository(Protocol):
    def insert(self, *, record_id: str, user_id: str, item: AgendaItem) -> CheckInRecord:
        """Write a check-in for ``item``'s slot and return it as stored.

        The unique (user_id, day, item_index, is_parallel) index decides
        races: the losing writer gets DuplicateCheckInError. The agenda row
        is re-read under a lock in the same transaction, so an item closed
        after validation raises ItemNotCheckableError (NotFoundError if it is
        gone). For items with a check_in_limit the write is serialized on the
        agenda row and raises CapacityReachedError when the slot is full.
        """

        raise NotImplementedError

    def get_for_user_and_slot(self, *, user_id: str, slot: SlotKey) -> Optional[CheckInRecord]:
        raise NotImplementedError

    def list_for_user(self, user_id: str) -> Sequence[CheckInRecord]:
        raise NotImplementedError

    def count_for_slot(self, slot: SlotKey) -> int:
        raise NotImplementedError

    def slot_counts(self, *, day: Optional[str] = None) -> Sequence[SlotCheckInCount]:
        raise NotImplementedError

    def list_checkins(
        self,
        *,
        day: Optional[str] = None,
        slot: Optional[SlotKey] = None,
        limit: int,
        offset: int = 0,
    ) -> Sequence[CheckInRecord]:
        """Check-ins newest first, filtered by slot, else by day, else none."""

        raise NotImplementedError

    def count_checkins(self, *, day: Optional[str] = None, slot: Optional[SlotKey] = None) -> int:
        raise NotImplementedError

    def summary(self) -> CheckInSummary:
        raise NotImplementedError
