"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_CONNECT_TIMEOUT_SECONDS = 10
DEFAULT_LOCK_WAIT_TIMEOUT_SECONDS = 5
DEFAULT_STATEMENT_TIMEOUT_MS = 5000

MAX_DAY_LENGTH = 64
MAX_TIME_LENGTH = 64
MAX_TITLE_LENGTH = 255
MAX_USER_ID_LENGTH = 64

# MySQL server error numbers treated as transient (retryable).
ER_LOCK_WAIT_TIMEOUT = 1205
ER_LOCK_DEADLOCK = 1213
ER_QUERY_TIMEOUT = 3024

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100
