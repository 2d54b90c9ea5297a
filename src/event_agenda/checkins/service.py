from __future__ import annotations

import logging
import uuid
from typing import Callable, Optional, Sequence

from ..agenda.model import SlotKey
from ..agenda.service import AgendaCatalog, make_slot
from ..common.validators import require_non_empty, require_non_negative_int, require_page_size
from ..core.constants import DEFAULT_PAGE_SIZE, MAX_DAY_LENGTH, MAX_PAGE_SIZE, MAX_USER_ID_LENGTH
from ..core.enums import CheckInOutcome
from ..core.exceptions import (
    CapacityReachedError,
    DuplicateCheckInError,
    ItemNotCheckableError,
    NotFoundError,
    StorageUnavailableError,
)
from .model import CheckInPage, CheckInRecord, CheckInResult, CheckInSummary, SlotCheckInCount
from .repository import CheckInRepository

logger = logging.getLogger(__name__)


class CheckInLedger:
    """Admits or rejects check-in attempts and persists accepted ones once.

    The repository's unique index is the only arbiter of "first writer wins";
    there is no read-before-write guard and no locking here. A duplicate
    insert is reported back as ALREADY_CHECKED_IN together with the stored
    record, which makes retries after a timeout safe.
    """

    def __init__(
        self,
        checkins: CheckInRepository,
        catalog: AgendaCatalog,
        *,
        id_factory: Callable[[], str] | None = None,
    ):
        self._checkins = checkins
        self._catalog = catalog
        self._new_id = id_factory or (lambda: str(uuid.uuid4()))

    def check_in(self, user_id: str, day: str, item_index: int, is_parallel: bool = False) -> CheckInResult:
        user_id = require_non_empty(user_id, "user_id", max_len=MAX_USER_ID_LENGTH)
        slot = make_slot(day, item_index, is_parallel)

        try:
            item = self._catalog.get_checkable_item(slot)
        except NotFoundError as exc:
            logger.debug("check-in rejected, %s", exc)
            return CheckInResult(CheckInOutcome.ITEM_NOT_FOUND, message=str(exc))
        except ItemNotCheckableError as exc:
            logger.debug("check-in rejected, %s", exc)
            return CheckInResult(CheckInOutcome.ITEM_NOT_CHECKABLE, message=str(exc))

        try:
            record = self._checkins.insert(record_id=self._new_id(), user_id=user_id, item=item)
        except DuplicateCheckInError:
            return self._already_checked_in(user_id, item.slot)
        except CapacityReachedError as exc:
            logger.debug("check-in rejected for %s, %s", user_id, exc)
            return CheckInResult(CheckInOutcome.CAPACITY_REACHED, message=str(exc))
        except NotFoundError as exc:
            return CheckInResult(CheckInOutcome.ITEM_NOT_FOUND, message=str(exc))
        except ItemNotCheckableError as exc:
            return CheckInResult(CheckInOutcome.ITEM_NOT_CHECKABLE, message=str(exc))
        except StorageUnavailableError as exc:
            logger.warning("check-in for %s at %s failed, caller may retry: %s", user_id, slot, exc)
            raise

        logger.info("user %s checked in to %s (%s)", user_id, record.slot, item.title)
        return CheckInResult(CheckInOutcome.ACCEPTED, record=record, message="Successfully checked in")

    def _already_checked_in(self, user_id: str, slot: SlotKey) -> CheckInResult:
        existing = self._checkins.get_for_user_and_slot(user_id=user_id, slot=slot)
        if existing is None:
            # The winning row disappeared between the conflict and this read
            # (administrative delete). Nothing is stored now; let the caller retry.
            raise StorageUnavailableError(f"check-in for {user_id} at {slot} conflicted but is no longer stored")

        logger.debug("user %s already checked in to %s", user_id, slot)
        return CheckInResult(
            CheckInOutcome.ALREADY_CHECKED_IN,
            record=existing,
            message="Already checked in to this agenda item",
        )

    def get_record(self, user_id: str, day: str, item_index: int, is_parallel: bool = False) -> Optional[CheckInRecord]:
        user_id = require_non_empty(user_id, "user_id", max_len=MAX_USER_ID_LENGTH)
        return self._checkins.get_for_user_and_slot(user_id=user_id, slot=make_slot(day, item_index, is_parallel))

    def user_check_ins(self, user_id: str) -> Sequence[CheckInRecord]:
        user_id = require_non_empty(user_id, "user_id", max_len=MAX_USER_ID_LENGTH)
        return self._checkins.list_for_user(user_id)

    def count_for_slot(self, day: str, item_index: int, is_parallel: bool = False) -> int:
        return self._checkins.count_for_slot(make_slot(day, item_index, is_parallel))

    def slot_counts(self, day: Optional[str] = None) -> Sequence[SlotCheckInCount]:
        if day is not None:
            day = require_non_empty(day, "day", max_len=MAX_DAY_LENGTH)
        return self._checkins.slot_counts(day=day)

    def list_checkins(
        self,
        day: Optional[str] = None,
        *,
        limit: int = DEFAULT_PAGE_SIZE,
        offset: int = 0,
    ) -> CheckInPage:
        """Roster of check-ins, newest first, optionally limited to one day."""
        if day is not None:
            day = require_non_empty(day, "day", max_len=MAX_DAY_LENGTH)
        return self._page(day=day, slot=None, limit=limit, offset=offset)

    def list_for_slot(
        self,
        day: str,
        item_index: int,
        is_parallel: bool = False,
        *,
        limit: int = DEFAULT_PAGE_SIZE,
        offset: int = 0,
    ) -> CheckInPage:
        return self._page(day=None, slot=make_slot(day, item_index, is_parallel), limit=limit, offset=offset)

    def _page(self, *, day: Optional[str], slot: Optional[SlotKey], limit: int, offset: int) -> CheckInPage:
        limit = require_page_size(limit, "limit", max_size=MAX_PAGE_SIZE)
        offset = require_non_negative_int(offset, "offset")
        records = self._checkins.list_checkins(day=day, slot=slot, limit=limit, offset=offset)
        total = self._checkins.count_checkins(day=day, slot=slot)
        return CheckInPage(records=list(records), total=total, limit=limit, offset=offset)

    def summary(self) -> CheckInSummary:
        return self._checkins.summary()
