"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from datetime import timedelta

# Business calendar is a fixed UTC+5 civil day (no DST).
BUSINESS_UTC_OFFSET = timedelta(hours=5)

DEFAULT_PAGE_SIZE = 10
EMPLOYEE_SEARCH_LIMIT = 10

RATING_MIN = 0.0
RATING_MAX = 5.0

DISCIPLINARY_ACTIVE_DAYS = 90

MIN_YEAR = 1900
MAX_YEAR = 9999

UNLIMITED = "unlimited"
DEFAULT_EMPLOYEE_CODE_PREFIX = "TAJ"
