from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from typing import Callable, Iterator, Optional, Sequence

from ..common.validators import (
    require_bool,
    require_non_empty,
    require_non_negative_int,
    require_optional_limit,
)
from ..core.constants import MAX_DAY_LENGTH, MAX_TIME_LENGTH, MAX_TITLE_LENGTH
from ..core.exceptions import ItemNotCheckableError, NotFoundError
from .model import AgendaItem, NewAgendaItem, SlotKey
from .repository import AgendaRepository

logger = logging.getLogger(__name__)

_EDITABLE_FIELDS = frozenset(NewAgendaItem.__dataclass_fields__)


def make_slot(day: str, item_index: int, is_parallel: bool = False) -> SlotKey:
    return SlotKey(
        day=require_non_empty(day, "day", max_len=MAX_DAY_LENGTH),
        item_index=require_non_negative_int(item_index, "item_index"),
        is_parallel=require_bool(is_parallel, "is_parallel"),
    )


class AgendaView:
    """Lazy view over one day's active agenda.

    Every iteration queries storage again, so a view kept around always
    reflects the current catalog rather than a snapshot.
    """

    def __init__(self, day: str, loader: Callable[[], Sequence[AgendaItem]]):
        self.day = day
        self._loader = loader

    def __iter__(self) -> Iterator[AgendaItem]:
        return iter(self._loader())

    def __repr__(self) -> str:
        return f"AgendaView(day={self.day!r})"


class AgendaCatalog:
    """Source of truth for which slots exist and which are open for check-in.

    Reads always hit the repository; nothing is cached, so a deactivation is
    visible to the very next validation.
    """

    def __init__(self, agenda: AgendaRepository, *, id_factory: Callable[[], str] | None = None):
        self._agenda = agenda
        self._new_id = id_factory or (lambda: str(uuid.uuid4()))

    def find_item(self, day: str, item_index: int, is_parallel: bool = False) -> Optional[AgendaItem]:
        return self._agenda.get_by_slot(make_slot(day, item_index, is_parallel))

    def get_item(self, day: str, item_index: int, is_parallel: bool = False) -> AgendaItem:
        slot = make_slot(day, item_index, is_parallel)
        item = self._agenda.get_by_slot(slot)
        if not item:
            raise NotFoundError(f"Agenda item {slot} not found")
        return item

    def get_item_by_id(self, item_id: str) -> AgendaItem:
        item = self._agenda.get_by_id(require_non_empty(item_id, "item_id"))
        if not item:
            raise NotFoundError(f"Agenda item {item_id} not found")
        return item

    def get_checkable_item(self, slot: SlotKey) -> AgendaItem:
        item = self._agenda.get_by_slot(slot)
        if not item:
            raise NotFoundError(f"Agenda item {slot} not found")
        if not item.requires_check_in:
            raise ItemNotCheckableError(f"Agenda item {slot} does not take check-ins")
        if not item.is_active:
            raise ItemNotCheckableError(f"Agenda item {slot} is not active")
        return item

    def list_active(self, day: str) -> AgendaView:
        day = require_non_empty(day, "day", max_len=MAX_DAY_LENGTH)
        return AgendaView(day, lambda: self._agenda.list_for_day(day, active_only=True))

    def list_day(self, day: str, *, include_inactive: bool = True) -> Sequence[AgendaItem]:
        day = require_non_empty(day, "day", max_len=MAX_DAY_LENGTH)
        return self._agenda.list_for_day(day, active_only=not include_inactive)

    def create_item(
        self,
        *,
        day: str,
        item_index: int,
        is_parallel: bool = False,
        time: str,
        title: str,
        requires_check_in: bool = False,
        is_active: bool = True,
        check_in_limit: Optional[int] = None,
    ) -> AgendaItem:
        new = self._validated(
            NewAgendaItem(
                day=day,
                item_index=item_index,
                is_parallel=is_parallel,
                time=time,
                title=title,
                requires_check_in=requires_check_in,
                is_active=is_active,
                check_in_limit=check_in_limit,
            )
        )
        item = self._agenda.create(item_id=self._new_id(), item=new)
        logger.info("agenda item created: %s (%s)", item.slot, item.item_id)
        return item

    def update_item(self, item_id: str, **changes) -> AgendaItem:
        unknown = set(changes) - _EDITABLE_FIELDS
        if unknown:
            raise TypeError(f"update_item() got unexpected fields: {', '.join(sorted(unknown))}")

        current = self.get_item_by_id(item_id)
        new = self._validated(
            replace(
                NewAgendaItem(
                    day=current.day,
                    item_index=current.item_index,
                    is_parallel=current.is_parallel,
                    time=current.time,
                    title=current.title,
                    requires_check_in=current.requires_check_in,
                    is_active=current.is_active,
                    check_in_limit=current.check_in_limit,
                ),
                **changes,
            )
        )
        if not self._agenda.update(item_id=current.item_id, item=new):
            raise NotFoundError(f"Agenda item {item_id} not found")

        logger.info("agenda item updated: %s (%s)", current.item_id, ", ".join(sorted(changes)) or "no changes")
        return self.get_item_by_id(current.item_id)

    def set_active(self, item_id: str, active: bool) -> AgendaItem:
        item_id = require_non_empty(item_id, "item_id")
        if not self._agenda.set_active(item_id=item_id, active=require_bool(active, "active")):
            raise NotFoundError(f"Agenda item {item_id} not found")

        logger.info("agenda item %s %s", item_id, "activated" if active else "deactivated")
        return self.get_item_by_id(item_id)

    @staticmethod
    def _validated(item: NewAgendaItem) -> NewAgendaItem:
        slot = make_slot(item.day, item.item_index, item.is_parallel)
        return NewAgendaItem(
            day=slot.day,
            item_index=slot.item_index,
            is_parallel=slot.is_parallel,
            time=require_non_empty(item.time, "time", max_len=MAX_TIME_LENGTH),
            title=require_non_empty(item.title, "title", max_len=MAX_TITLE_LENGTH),
            requires_check_in=require_bool(item.requires_check_in, "requires_check_in"),
            is_active=require_bool(item.is_active, "is_active"),
            check_in_limit=require_optional_limit(item.check_in_limit, "check_in_limit"),
        )
