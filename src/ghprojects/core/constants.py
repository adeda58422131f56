"""Global constants for ghprojects.

Centralizes magic numbers used throughout the codebase,
making them discoverable, consistent, and easy to modify.
"""

# =============================================================================
# Retry / Backoff
# =============================================================================

DEFAULT_RATE_LIMIT_WAIT_SECONDS = 60.0
"""Wait applied to a rate-limited call when the failure names no delay."""

JITTER_FRACTION = 0.1
"""Upper bound of random extra delay, as a fraction of the backoff delay."""

DEFAULT_MAX_ATTEMPTS = 5
DEFAULT_BASE_DELAY_SECONDS = 1.0
DEFAULT_MAX_DELAY_SECONDS = 16.0

# =============================================================================
# Remote API paging and search
# =============================================================================

DEFAULT_PAGE_SIZE = 100
"""Projects/items/repositories fetched per list call."""

DEFAULT_SEARCH_LIMIT = 5
"""Maximum assignee suggestions requested per search."""

MIN_SEARCH_CHARS = 2
"""Characters typed in the assignee field before a search is dispatched."""

# =============================================================================
# Text limits
# =============================================================================

TITLE_MAX_CHARS = 256
BODY_MAX_CHARS = 2000
ASSIGNEE_MAX_CHARS = 100

TRUNCATE_ERROR_MESSAGE_CHARS = 200
"""Maximum characters of a raw error message kept in logs."""

# =============================================================================
# Persistence
# =============================================================================

CONFIG_DIR_NAME = "ghprojects"
PREFERENCES_FILE_NAME = "config.json"
CONFIG_ENV_VAR = "GHPROJECTS_CONFIG"
