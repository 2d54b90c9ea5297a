class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class NotFoundError(DomainError):
    """Raised when an agenda item does not exist for the given slot or id."""


class DuplicateSlotError(DomainError):
    """Raised when a catalog write would reuse an existing (day, index, parallel) slot."""


class ItemNotCheckableError(DomainError):
    """Raised when an agenda item is inactive or does not take check-ins."""


class DuplicateCheckInError(DomainError):
    """Raised by check-in repositories when the attendee already holds a record for the slot."""


class CapacityReachedError(DomainError):
    """Raised when a slot already holds its maximum number of check-ins."""


class StorageError(Exception):
    """Base exception for persistence failures that are not business rules."""

    retryable = False


class StorageUnavailableError(StorageError):
    """Transient failure (connection loss, lock wait or statement timeout).

    Safe to retry: check-in writes are idempotent per slot key.
    """

    retryable = True
