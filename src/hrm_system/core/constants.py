"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_PAGE = 1
DEFAULT_PAGE_LIMIT = 10
MAX_PAGE_LIMIT = 100

APPROVER_FALLBACK_LIMIT = 25
NOTIFICATION_LIST_LIMIT = 50

PAY_PERIOD_PATTERN = r"^\d{4}-(0[1-9]|1[0-2])$"
MONEY_PLACES = 2

DEFAULT_ALLOWANCE_NAME = "Standard Allowance"
DEFAULT_ALLOWANCE_PERCENT = 10
DEFAULT_DEDUCTION_NAME = "Tax"
DEFAULT_DEDUCTION_PERCENT = 5
