"""Shared constants for plant health calculation."""

DEFAULT_TIMEZONE = "UTC"
DEFAULT_STATE_DIR = ".gitplant"
STATE_FILE_NAME = "state.json"
USERNAME_FILE_NAME = "username.json"

# Activity window
HISTORY_WINDOW_DAYS = 30
TREND_WINDOW_DAYS = 7
PUSH_EVENT_TYPE = "PushEvent"

# Health scoring
STARTING_HEALTH = 50
HEALTH_MIN = 10
HEALTH_MAX = 100
ACTIVE_DAY_BONUS = 10
FIRST_MISS_PENALTY = 2
PROLONGED_MISS_PENALTY = 5
PROLONGED_MISS_THRESHOLD = 5

# Lower bounds of each plant state, checked highest first.
STATE_THRESHOLDS = (
    (76, "thriving"),
    (51, "okay"),
    (26, "sad"),
)
LOWEST_STATE = "dying"

# GitHub API
GITHUB_EVENTS_PER_PAGE = 100
DEFAULT_EVENT_LIMIT = 100
GITHUB_REQUEST_TIMEOUT_SECONDS = 15
USERNAME_PATTERN = r"^[a-z\d](?:[a-z\d]|-(?=[a-z\d])){0,38}$"

# Speech bubble streak threshold
MESSAGE_STREAK_THRESHOLD = 7
