"""Ledger constants shared across services.


- Limits come from settings so deployments can tune them; the rest are fixed rules.
- PERIOD_DAYS maps the stats period keys to a day window (None = no date filter).
"""

from django.conf import settings


def max_transaction_amount() -> int:
    return getattr(settings, "MEDALBANK_MAX_TRANSACTION_AMOUNT", 100000)


def max_batch_size() -> int:
    return getattr(settings, "MEDALBANK_MAX_BATCH_SIZE", 50)


def max_bulk_count() -> int:
    return getattr(settings, "MEDALBANK_MAX_BULK_COUNT", 20)


def max_list_limit() -> int:
    return getattr(settings, "MEDALBANK_MAX_LIST_LIMIT", 100)


def default_list_limit() -> int:
    return getattr(settings, "MEDALBANK_DEFAULT_LIST_LIMIT", 10)


DESCRIPTION_MAX_LENGTH = 255
# Rejected in free-text descriptions (rendered by the frontend)
DESCRIPTION_FORBIDDEN_CHARS = ("<", ">", "&", '"', "'")

PERIOD_DAYS = {"7d": 7, "30d": 30, "90d": 90, "all": None}
DEFAULT_PERIOD = "30d"

DEFAULT_TREND_DAYS = 30
MAX_TREND_DAYS = 365
# Mean daily net change above/below these marks the trend as increasing/decreasing
TREND_UP_THRESHOLD = 10
TREND_DOWN_THRESHOLD = -10

# Projection warning for batch pre-validation
LOW_BALANCE_WARNING = 100

MAX_LOGIN_HISTORY_LIMIT = 50
DEFAULT_STORE_COLOR = "#3B82F6"
