"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_LOW_RISK_DAYS = 14
DEFAULT_MEDIUM_RISK_DAYS = 30
DEFAULT_HIGH_RISK_DAYS = 60
DEFAULT_TRACKING_ENABLED = True

DEFAULT_LIST_LIMIT = 500

MYSQL_DUPLICATE_KEY = 1062
