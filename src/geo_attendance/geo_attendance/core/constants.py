"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_SESSION_DAYS = 7
DEFAULT_HISTORY_LIMIT = 30

EARTH_RADIUS_METERS = 6_371_000.0

# Default office boundary (head office, Patna).
DEFAULT_OFFICE_LATITUDE = 25.6146835780726
DEFAULT_OFFICE_LONGITUDE = 85.1126174983296
DEFAULT_OFFICE_RADIUS_METERS = 50.0
DEFAULT_OFFICE_NAME = "Office Location"

# Location request budgets (milliseconds).
PRIMARY_TIMEOUT_MS = 15_000
PRIMARY_MAXIMUM_AGE_MS = 300_000
FALLBACK_TIMEOUT_MS = 5_000
FALLBACK_MAXIMUM_AGE_MS = 60_000

# Follow-up status reads after a recorded check-in/out (seconds).
DEFAULT_REFRESH_DELAYS = (0.5, 1.5)

DEFAULT_LABEL_LOOKUP_TIMEOUT = 3.0
DEFAULT_GEOCODER_TIMEOUT = 5.0

LABEL_DECIMALS = 4
ADDRESS_DECIMALS = 6
