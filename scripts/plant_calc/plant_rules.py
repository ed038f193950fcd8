"""Plant health score, state, and trend rules."""

from datetime import datetime, timedelta
from typing import Iterable

from .constants import (
    ACTIVE_DAY_BONUS,
    FIRST_MISS_PENALTY,
    HEALTH_MAX,
    HEALTH_MIN,
    HISTORY_WINDOW_DAYS,
    LOWEST_STATE,
    PROLONGED_MISS_PENALTY,
    PROLONGED_MISS_THRESHOLD,
    STARTING_HEALTH,
    STATE_THRESHOLDS,
    TREND_WINDOW_DAYS,
)
from .time_utils import get_current_time, get_timezone_name, parse_timestamp, shift_day_key, to_day_key, to_utc


def build_day_window(today: str, days: int = HISTORY_WINDOW_DAYS) -> list[str]:
    """List day keys from today back through the given number of days, today first."""
    return [shift_day_key(today, -offset) for offset in range(days)]


def accumulate_health(day_presence: Iterable[bool]) -> int:
    """
    Walk per-day presence flags and return the unclamped health score.

    Scoring:
    - Active day: +10, resets the miss counter
    - First missed day in a row: -2
    - Misses 2-4 in a row: no penalty
    - Miss 5 and beyond: -5 each
    """
    health = STARTING_HEALTH
    consecutive_misses = 0

    for present in day_presence:
        if present:
            health += ACTIVE_DAY_BONUS
            consecutive_misses = 0
            continue

        consecutive_misses += 1
        if consecutive_misses == 1:
            health -= FIRST_MISS_PENALTY
        elif consecutive_misses >= PROLONGED_MISS_THRESHOLD:
            health -= PROLONGED_MISS_PENALTY

    return health


def calculate_health_score(active_days: set[str], today: str) -> int:
    """Score the last 30 days (walked newest first) and clamp to [10, 100]."""
    window = build_day_window(today)
    health = accumulate_health(day in active_days for day in window)
    return max(HEALTH_MIN, min(HEALTH_MAX, health))


def calculate_plant_state(health: int) -> str:
    """
    Map a health score to the plant state.

    States: thriving (76+) -> okay (51-75) -> sad (26-50) -> dying (<26)
    """
    for lower_bound, state in STATE_THRESHOLDS:
        if health >= lower_bound:
            return state
    return LOWEST_STATE


def calculate_trend(commit_history: Iterable[datetime], now: datetime) -> str:
    """Compare commits in the last week against the week before it."""
    now = to_utc(now)
    week_ago = now - timedelta(days=TREND_WINDOW_DAYS)
    two_weeks_ago = now - timedelta(days=2 * TREND_WINDOW_DAYS)

    recent = 0
    older = 0
    for timestamp in commit_history:
        if week_ago <= timestamp <= now:
            recent += 1
        elif two_weeks_ago <= timestamp < week_ago:
            older += 1

    if recent > older:
        return "improving"
    if recent < older:
        return "declining"
    return "stable"


def evaluate_health(
    commit_history: Iterable[datetime | str],
    now: datetime | None = None,
    timezone_name: str | None = None,
) -> dict:
    """
    Evaluate plant health from commit timestamps.

    Day presence is recomputed from the history itself, so callers only need
    the commit_history list from derive_commit_stats.
    """
    now = to_utc(now or get_current_time())
    timezone_name = timezone_name or get_timezone_name()
    timestamps = [ts for ts in (parse_timestamp(value) for value in commit_history) if ts is not None]

    active_days = {to_day_key(ts, timezone_name) for ts in timestamps}
    health = calculate_health_score(active_days, to_day_key(now, timezone_name))

    return {
        "current": health,
        "state": calculate_plant_state(health),
        "trend": calculate_trend(timestamps, now),
    }
