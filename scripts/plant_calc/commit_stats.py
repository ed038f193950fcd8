"""Commit statistics derived from a raw GitHub event stream."""

from datetime import date, datetime, timedelta
from typing import Any, Iterable

from .constants import HISTORY_WINDOW_DAYS, PUSH_EVENT_TYPE
from .time_utils import get_current_time, get_timezone_name, parse_timestamp, to_day_key, to_utc


def filter_commit_timestamps(
    events: Iterable[dict[str, Any]],
    now: datetime,
    window_days: int = HISTORY_WINDOW_DAYS,
) -> list[datetime]:
    """
    Extract push-event timestamps inside [now - window_days, now], newest first.

    Non-push events and events with unparseable timestamps are ignored.
    """
    now = to_utc(now)
    cutoff = now - timedelta(days=window_days)

    timestamps = []
    for event in events:
        if not isinstance(event, dict) or event.get("type") != PUSH_EVENT_TYPE:
            continue
        created_at = parse_timestamp(event.get("created_at"))
        if created_at is None:
            continue
        if cutoff <= created_at <= now:
            timestamps.append(created_at)

    timestamps.sort(reverse=True)
    return timestamps


def group_commits_by_day(timestamps: Iterable[datetime], timezone_name: str) -> dict[str, int]:
    """Count commits per calendar day key."""
    commits_by_day: dict[str, int] = {}
    for timestamp in timestamps:
        day_key = to_day_key(timestamp, timezone_name)
        commits_by_day[day_key] = commits_by_day.get(day_key, 0) + 1
    return commits_by_day


def calculate_current_streak(active_days: set[str], today: str) -> int:
    """
    Calculate consecutive active days counted backward from today.

    A day without commits yet does not break a streak that ended yesterday:
    the first missing day is skipped once, but only before any active day
    has been counted.
    """
    try:
        cursor = date.fromisoformat(today)
    except ValueError:
        return 0

    streak = 0
    grace_used = False
    while True:
        if cursor.isoformat() in active_days:
            streak += 1
        elif streak == 0 and not grace_used:
            grace_used = True
        else:
            break
        cursor -= timedelta(days=1)
    return streak


def calculate_longest_streak(active_days: Iterable[str]) -> int:
    """Length of the longest run of consecutive calendar days."""
    longest = 0
    run = 0
    previous = None
    for day in sorted({date.fromisoformat(d) for d in active_days}):
        if previous is not None and (day - previous).days == 1:
            run += 1
        else:
            run = 1
        longest = max(longest, run)
        previous = day
    return longest


def derive_commit_stats(
    events: Iterable[dict[str, Any]],
    now: datetime | None = None,
    timezone_name: str | None = None,
) -> dict:
    """
    Derive commit statistics from raw events.

    Returns dict with total_commits, current_streak, longest_streak,
    last_commit_date, and commit_history (newest first).
    """
    now = to_utc(now or get_current_time())
    timezone_name = timezone_name or get_timezone_name()

    commit_history = filter_commit_timestamps(events, now)
    active_days = set(group_commits_by_day(commit_history, timezone_name))
    today = to_day_key(now, timezone_name)

    return {
        "total_commits": len(commit_history),
        "current_streak": calculate_current_streak(active_days, today),
        "longest_streak": calculate_longest_streak(active_days),
        "last_commit_date": commit_history[0] if commit_history else None,
        "commit_history": commit_history,
    }
