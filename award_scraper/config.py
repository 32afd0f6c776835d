"""Configuration constants for the award scraper"""

from pathlib import Path

# Browser session
DEFAULT_TIMEOUT = 90  # Seconds, bounds any single navigation/network wait
DEFAULT_WAIT_UNTIL = "networkidle"
VIEWPORT_WIDTH_RANGE = (1200, 1280)
VIEWPORT_HEIGHT_RANGE = (1400, 1440)

# Login state machine
LOGIN_RETRIES = 4

# Retry configuration (Searcher.retry / retry_with_backoff)
MAX_RETRIES = 3
INITIAL_BACKOFF = 1.0
MAX_BACKOFF = 60.0
BACKOFF_MULTIPLIER = 2.0
JITTER_RANGE = (0.8, 1.2)

# Polling defaults (seconds)
DEFAULT_POLL_INTERVAL = 1.0
MONITOR_APPEAR_TIMEOUT = 2.0
MONITOR_SETTLE_TIMEOUT = 300.0

# Search date window defaults (days from today)
DEFAULT_MIN_DAYS = 0
DEFAULT_MAX_DAYS = 365

# Throttling profiles: inter-request delay, requests/hour, rest period.
# Durations are "[[[d:]h:]m:]s[.ms]" strings, a single value or a (min, max) pair.
THROTTLE_PROFILES = {
    "slow": {
        "delay_between_requests": ("00:30", "00:45"),
        "requests_per_hour": 45,
        "rest_period": ("10:00", "25:00"),
    },
    "normal": {
        "delay_between_requests": ("00:20", "00:30"),
        "requests_per_hour": 60,
        "rest_period": ("15:00", "30:00"),
    },
    "fast": {
        "delay_between_requests": ("00:05", "00:20"),
        "requests_per_hour": 90,
        "rest_period": ("20:00", "40:00"),
    },
}
DEFAULT_THROTTLE_PROFILE = "normal"

# Query generation defaults (CLI)
DEFAULT_TRIP_MIN_DAYS = 3
DEFAULT_CABIN = "economy"

# Files
DEFAULT_OUTPUT_DIR = Path("./data")
DEFAULT_CREDENTIALS_FILE = Path("./config/accounts.txt")
DEFAULT_LOG_FILE = Path("./logs/award_scraper.log")
