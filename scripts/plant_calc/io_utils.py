"""JSON file IO helpers and last-username persistence."""

import json
from pathlib import Path


def load_json_file(path: Path) -> dict | None:
    """Load a JSON object from disk, or None if missing or unreadable."""
    if not path.exists():
        return None

    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (json.JSONDecodeError, IOError) as e:
        print(f"Warning: Could not load {path}: {e}")
        return None

    return data if isinstance(data, dict) else None


def write_json_file(path: Path, data: dict) -> None:
    """Write data to JSON file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)


def load_last_username(username_file: Path) -> str | None:
    """Return the last successfully loaded username, if one was saved."""
    data = load_json_file(username_file)
    if not data:
        return None
    username = data.get("username")
    return username if isinstance(username, str) and username.strip() else None


def save_last_username(username_file: Path, username: str) -> None:
    write_json_file(username_file, {"username": username})


def clear_last_username(username_file: Path) -> bool:
    """Forget the saved username. Returns True if a file was removed."""
    if not username_file.is_file():
        return False
    username_file.unlink()
    return True
