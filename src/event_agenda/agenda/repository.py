from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import AgendaItem, NewAgendaItem, SlotKey


class AgendaRepository(Protocol):
    def get_by_slot(self, slot: SlotKey) -> Optional[AgendaItem]:
        raise NotImplementedError

    def get_by_id(self, item_id: str) -> Optional[AgendaItem]:
        raise NotImplementedError

    def list_for_day(self, day: str, *, active_only: bool) -> Sequence[AgendaItem]:
        """Items of a day ordered by item_index, then non-parallel before parallel."""

        raise NotImplementedError

    def create(self, *, item_id: str, item: NewAgendaItem) -> AgendaItem:
        """Insert an item.

        Raises DuplicateSlotError when (day, item_index, is_parallel) is taken.
        """

        raise NotImplementedError

    def update(self, *, item_id: str, item: NewAgendaItem) -> bool:
        """Overwrite all editable fields. Raises DuplicateSlotError on slot collision."""

        raise NotImplementedError

    def set_active(self, *, item_id: str, active: bool) -> bool:
        raise NotImplementedError
