"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MIN_LIMIT = 1
MAX_LIMIT = 100

DEFAULT_SORT_ORDER = "desc"

# Company working hours used when no settings row exists yet
DEFAULT_WORKING_HOURS_START = "08:00"
DEFAULT_WORKING_HOURS_END = "17:00"
DEFAULT_LATE_GRACE_MINUTES = 2
DEFAULT_EARLY_DEPARTURE_GRACE_MINUTES = 0
DEFAULT_OVERTIME_THRESHOLD_HOURS = 8

# Task due dates may not be scheduled further out than this
MAX_TASK_DUE_DAYS = 365

MIN_PASSWORD_LENGTH = 8
DEFAULT_NOTIFICATION_LIMIT = 50
TOP_PERFORMERS_LIMIT = 10
RECENT_ACTIVITY_LIMIT = 10

# Efficiency compares logged hours against this many hours per present day
STANDARD_WORKDAY_HOURS = 8

# Cache TTLs (seconds)
CACHE_TTL_SHORT = 60
CACHE_TTL_MEDIUM = 300
CACHE_TTL_LONG = 1800
CACHE_TTL_VERY_LONG = 3600

NO_MANAGER = "no-manager"
UNASSIGNED = "unassigned"
CEO_TITLE = "Chief Executive Officer"
