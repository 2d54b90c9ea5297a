from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True, order=True)
class SlotKey:
    """A schedulable moment: (day, item_index, is_parallel)."""

    day: str
    item_index: int
    is_parallel: bool = False

    def __str__(self) -> str:
        return f"{self.day}-{self.item_index}-{str(self.is_parallel).lower()}"


@dataclass(frozen=True)
class AgendaItem:
    """Domain entity: one entry of the event agenda."""

    item_id: str
    day: str
    item_index: int
    is_parallel: bool
    time: str
    title: str
    requires_check_in: bool = False
    is_active: bool = True
    check_in_limit: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def slot(self) -> SlotKey:
        return SlotKey(self.day, self.item_index, self.is_parallel)

    @property
    def is_checkable(self) -> bool:
        return self.requires_check_in and self.is_active


@dataclass(frozen=True)
class NewAgendaItem:
    day: str
    item_index: int
    is_parallel: bool
    time: str
    title: str
    requires_check_in: bool = False
    is_active: bool = True
    check_in_limit: Optional[int] = None
