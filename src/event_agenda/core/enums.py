from __future__ import annotations

from enum import Enum


class CheckInOutcome(str, Enum):
    """Result of a check-in attempt."""

    ACCEPTED = "ACCEPTED"
    ALREADY_CHECKED_IN = "ALREADY_CHECKED_IN"
    ITEM_NOT_FOUND = "ITEM_NOT_FOUND"
    ITEM_NOT_CHECKABLE = "ITEM_NOT_CHECKABLE"
    CAPACITY_REACHED = "CAPACITY_REACHED"
