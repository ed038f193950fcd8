"""Plant state orchestration and snapshot builder for GitPlant."""

from datetime import datetime

from .activity_source import ActivitySourceError, fetch_events, fetch_profile, fetch_user
from .commit_stats import derive_commit_stats
from .constants import HISTORY_WINDOW_DAYS
from .flavor_text import choose_speech_message, format_last_commit, format_streak, meter_color, plant_emoji
from .plant_rules import evaluate_health
from .time_utils import get_current_time, get_timezone_name, to_iso8601, to_local_time, to_utc

UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred"


def load_plant(
    client,
    username: str,
    now: datetime | None = None,
    timezone_name: str | None = None,
) -> tuple[dict, dict, dict]:
    """
    Fetch a user's profile and events, then derive stats and health.

    The user is looked up once, so an unknown user fails before the events
    call. Activity source errors propagate to the caller.
    """
    now = to_utc(now or get_current_time())
    timezone_name = timezone_name or get_timezone_name()

    user = fetch_user(client, username)
    profile = fetch_profile(client, username, user=user)
    events = fetch_events(client, username, user=user)
    print(f"  Events fetched: {len(events)}")

    stats = derive_commit_stats(events, now=now, timezone_name=timezone_name)
    health = evaluate_health(stats["commit_history"], now=now, timezone_name=timezone_name)
    return profile, stats, health


def describe_fetch_error(error: Exception) -> str:
    """User-facing message for a failed load."""
    if isinstance(error, ActivitySourceError):
        return error.message
    return UNEXPECTED_ERROR_MESSAGE


def serialize_commit_stats(stats: dict) -> dict:
    """Convert commit stats timestamps to ISO strings for JSON output."""
    return {
        "total_commits": stats["total_commits"],
        "current_streak": stats["current_streak"],
        "longest_streak": stats["longest_streak"],
        "last_commit_date": to_iso8601(stats["last_commit_date"]),
        "commit_history": [to_iso8601(ts) for ts in stats["commit_history"]],
    }


def build_plant_state(
    profile: dict,
    stats: dict,
    health: dict,
    now: datetime | None = None,
    timezone_name: str | None = None,
    rng=None,
) -> dict:
    """
    Build the state.json snapshot from computed stats and health.
    """
    now = to_utc(now or get_current_time())
    timezone_name = timezone_name or get_timezone_name()

    plant = {
        "emoji": plant_emoji(health["state"]),
        "meter_color": meter_color(health["current"]),
        "message": choose_speech_message(health["state"], stats["current_streak"], rng=rng),
        "last_commit_label": format_last_commit(stats["last_commit_date"], now, timezone_name),
        "streak_label": format_streak(stats["current_streak"]),
    }

    return {
        "last_updated": now.isoformat(),
        "updated_by": "gitplant-calculator",
        "user": profile,
        "stats": serialize_commit_stats(stats),
        "health": dict(health),
        "plant": plant,
        "temporal": {
            "timezone": timezone_name,
            "local_date": to_local_time(now, timezone_name).strftime("%Y-%m-%d"),
            "window_days": HISTORY_WINDOW_DAYS,
        },
    }
