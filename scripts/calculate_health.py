#!/usr/bin/env python3
"""
GitPlant Health Calculator

Fetches a GitHub user's recent public activity and calculates plant health.
Writes state.json and emits GitHub Actions outputs.

Environment Variables:
    GITPLANT_USERNAME: GitHub login to evaluate (falls back to the last saved one)
    GITPLANT_FORGET_USERNAME: Clear the saved username before resolving
    GITPLANT_TIMEZONE: IANA timezone for day boundaries (default: UTC)
    GITPLANT_STATE_DIR: Directory for state.json and username.json (default: .gitplant)
    GITPLANT_EVENT_LIMIT: Maximum number of recent events to fetch (default: 100)
    GH_TOKEN: Optional GitHub API token to raise the rate limit
"""

import os
import sys
from pathlib import Path

SCRIPT_DIR = Path(__file__).resolve().parent
if str(SCRIPT_DIR) not in sys.path:
    sys.path.insert(0, str(SCRIPT_DIR))

from plant_calc.activity_source import (
    ActivitySourceError,
    InvalidUsernameError,
    RateLimitedError,
    build_client,
    validate_username,
)
from plant_calc.constants import DEFAULT_STATE_DIR, STATE_FILE_NAME, USERNAME_FILE_NAME
from plant_calc.io_utils import clear_last_username, load_last_username, save_last_username, write_json_file
from plant_calc.output_utils import set_output, set_outputs
from plant_calc.state_builder import build_plant_state, describe_fetch_error, load_plant
from plant_calc.time_utils import get_current_time, get_timezone_name, is_truthy


def get_state_dir() -> Path:
    return Path(os.environ.get("GITPLANT_STATE_DIR") or DEFAULT_STATE_DIR)


def resolve_username(username_file: Path) -> str | None:
    """
    Resolve which username to evaluate.

    Priority:
    1) GITPLANT_USERNAME environment variable
    2) username saved by the previous successful run
    """
    if is_truthy(os.environ.get("GITPLANT_FORGET_USERNAME")):
        if clear_last_username(username_file):
            print("  Forgot saved username")

    env_username = os.environ.get("GITPLANT_USERNAME", "").strip()
    if env_username:
        return env_username
    return load_last_username(username_file)


def fail(message: str) -> int:
    print(f"\nError: {message}")
    print("\nOutputs:")
    set_output("error", message)
    return 1


def main() -> int:
    """
    Main entry point.

    Returns:
        Exit code (0 for success, 1 for error)
    """
    print("=" * 50)
    print("GitPlant Health Calculator")
    print("=" * 50)

    now = get_current_time()
    timezone_name = get_timezone_name()
    state_dir = get_state_dir()
    state_file = state_dir / STATE_FILE_NAME
    username_file = state_dir / USERNAME_FILE_NAME

    print("\nResolving username...")
    try:
        username = validate_username(resolve_username(username_file))
    except InvalidUsernameError as e:
        return fail(str(e))
    print(f"  Username: {username}")
    print(f"  Timezone: {timezone_name}")

    print("\nFetching activity...")
    client = build_client(os.environ.get("GH_TOKEN"))
    try:
        profile, stats, health = load_plant(client, username, now=now, timezone_name=timezone_name)
    except ActivitySourceError as e:
        if isinstance(e, RateLimitedError) and e.retry_after is not None:
            print(f"  Rate limit resets in about {e.retry_after} seconds")
        return fail(describe_fetch_error(e))
    except Exception as e:
        print(f"  Unexpected failure: {e!r}")
        return fail(describe_fetch_error(e))

    print(f"  Commits (30 days): {stats['total_commits']}")
    print(f"  Current streak: {stats['current_streak']}")
    print(f"  Longest streak: {stats['longest_streak']}")

    print("\nCalculating plant state...")
    new_state = build_plant_state(profile, stats, health, now=now, timezone_name=timezone_name)
    plant = new_state["plant"]
    print(f"  Health: {health['current']}")
    print(f"  State: {health['state']} {plant['emoji']}")
    print(f"  Trend: {health['trend']}")
    print(f"  Last commit: {plant['last_commit_label']}")
    print(f"  Says: {plant['message']}")

    print(f"\nWriting {state_file}...")
    write_json_file(state_file, new_state)
    save_last_username(username_file, username)

    print("\nOutputs:")
    set_outputs({
        "health": health["current"],
        "state": health["state"],
        "trend": health["trend"],
        "current_streak": stats["current_streak"],
        "total_commits": stats["total_commits"],
    })

    print("\n" + "=" * 50)
    print(f"Hello, {profile.get('name') or profile['login']}! Health calculation complete!")
    print("=" * 50)

    return 0


if __name__ == "__main__":
    sys.exit(main())
