"""Display labels, colors, and speech-bubble messages for the plant."""

import math
import random
from datetime import datetime

from .constants import MESSAGE_STREAK_THRESHOLD
from .time_utils import to_local_time, to_utc

PLANT_EMOJI = {
    "thriving": "🌺",
    "okay": "🌿",
    "sad": "🍃",
    "dying": "🥀",
}
DEFAULT_PLANT_EMOJI = "🌱"

STREAK_MESSAGES = [
    "You're on fire! 🔥",
    "Amazing streak! 🚀",
    "Coding machine! ⚡",
    "Keep it up! 💪",
]
STATE_MESSAGES = {
    "thriving": [
        "I'm flourishing! 🌟",
        "Life is good! ✨",
        "Thanks for caring! 💚",
        "We make a great team! 🤝",
    ],
    "okay": [
        "Doing well! 😊",
        "Keep coding! 💻",
        "I believe in you! 🌱",
        "Steady progress! 📈",
    ],
    "sad": [
        "I'm feeling lonely... 😔",
        "Missing your commits! 💔",
        "Code with me? 🥺",
        "I need some love! 💙",
    ],
    "dying": [
        "Help me grow! 🆘",
        "I need commits! 😵",
        "Don't give up on me! 💔",
        "Code saves lives! 🚨",
    ],
}
DEFAULT_MESSAGE = "Hello there! 👋"


def plant_emoji(state: str) -> str:
    """Emoji shown for a plant state."""
    return PLANT_EMOJI.get(state, DEFAULT_PLANT_EMOJI)


def meter_color(health: int) -> str:
    """Health meter color, using the same bands as the plant states."""
    if health >= 76:
        return "#22C55E"
    elif health >= 51:
        return "#65A30D"
    elif health >= 26:
        return "#F59E0B"
    else:
        return "#EF4444"


def choose_speech_message(state: str, current_streak: int, rng=None) -> str:
    """
    Pick a speech-bubble message for the plant.

    Week-long streaks get celebration messages regardless of state.
    `rng` only needs a `choice` method; defaults to the `random` module.
    """
    rng = rng or random
    if current_streak >= MESSAGE_STREAK_THRESHOLD:
        return rng.choice(STREAK_MESSAGES)

    messages = STATE_MESSAGES.get(state)
    if not messages:
        return DEFAULT_MESSAGE
    return rng.choice(messages)


def format_last_commit(
    last_commit: datetime | None,
    now: datetime,
    timezone_name: str | None = None,
) -> str:
    """Describe how long ago the last commit happened."""
    if last_commit is None:
        return "Never"

    elapsed_seconds = max(0.0, (to_utc(now) - to_utc(last_commit)).total_seconds())
    elapsed_days = math.floor(elapsed_seconds / 86400)
    elapsed_hours = math.floor(elapsed_seconds / 3600)

    if elapsed_days == 0:
        if elapsed_hours == 0:
            return "Just now"
        return f"{elapsed_hours} hour{'s' if elapsed_hours > 1 else ''} ago"
    if elapsed_days == 1:
        return "Yesterday"
    if elapsed_days < 7:
        return f"{elapsed_days} days ago"

    return to_local_time(last_commit, timezone_name).strftime("%Y-%m-%d")


def format_streak(days: int) -> str:
    return f"{days} day{'' if days == 1 else 's'}"
