"""GitHub profile and event fetching through PyGithub."""

import os
import re
import time
from typing import Any

import requests
from github import Auth, Github, GithubException, RateLimitExceededException, UnknownObjectException

from .constants import (
    DEFAULT_EVENT_LIMIT,
    GITHUB_EVENTS_PER_PAGE,
    GITHUB_REQUEST_TIMEOUT_SECONDS,
    USERNAME_PATTERN,
)
from .time_utils import to_int, to_iso8601

USERNAME_RE = re.compile(USERNAME_PATTERN, re.IGNORECASE)
RATE_LIMIT_MESSAGE = "Rate limit exceeded. Please try again later."

# ValueError covers truncated JSON and UnicodeDecodeError on bad payloads.
FETCH_ERRORS = (GithubException, requests.exceptions.RequestException, AttributeError, TypeError, ValueError)


class ActivitySourceError(Exception):
    """Base error for failures talking to the activity source."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status = status


class UserNotFoundError(ActivitySourceError):
    pass


class RateLimitedError(ActivitySourceError):
    def __init__(self, message: str, status: int | None = None, retry_after: int | None = None) -> None:
        super().__init__(message, status)
        self.retry_after = retry_after


class TransportError(ActivitySourceError):
    pass


class InvalidUsernameError(ValueError):
    pass


def validate_username(value: str | None) -> str:
    """Trim and validate a GitHub login, raising InvalidUsernameError on failure."""
    username = (value or "").strip()
    if not username:
        raise InvalidUsernameError("Please enter a GitHub username")
    if not USERNAME_RE.match(username):
        raise InvalidUsernameError("Please enter a valid GitHub username")
    return username


def get_event_limit() -> int:
    """Resolve how many recent events to fetch from env or default."""
    return max(1, to_int(os.environ.get("GITPLANT_EVENT_LIMIT"), DEFAULT_EVENT_LIMIT))


def build_client(token: str | None = None) -> Github:
    """
    Build a PyGithub client.

    The token is optional and only raises the rate limit. Automatic retries
    are disabled so rate limiting surfaces to the caller immediately.
    """
    auth = Auth.Token(token) if token else None
    return Github(
        auth=auth,
        per_page=GITHUB_EVENTS_PER_PAGE,
        timeout=GITHUB_REQUEST_TIMEOUT_SECONDS,
        retry=None,
    )


def _header_value(headers: dict | None, name: str) -> str | None:
    for key, value in (headers or {}).items():
        if str(key).lower() == name:
            return value
    return None


def get_retry_after(headers: dict | None, now: float | None = None) -> int | None:
    """
    Estimate seconds until the rate limit resets.

    Prefers Retry-After; falls back to X-RateLimit-Reset (epoch seconds).
    """
    retry_after = _header_value(headers, "retry-after")
    if retry_after is not None:
        seconds = to_int(retry_after, -1)
        if seconds >= 0:
            return seconds

    reset_at = _header_value(headers, "x-ratelimit-reset")
    if reset_at is not None:
        reset_epoch = to_int(reset_at, -1)
        if reset_epoch >= 0:
            current = time.time() if now is None else now
            return max(0, int(reset_epoch - current))

    return None


def _is_rate_limited(error: GithubException) -> bool:
    if isinstance(error, RateLimitExceededException):
        return True
    if error.status == 429:
        return True
    if error.status == 403:
        remaining = _header_value(error.headers, "x-ratelimit-remaining")
        message = str(error.data.get("message", "")) if isinstance(error.data, dict) else ""
        return remaining == "0" or "rate limit" in message.lower()
    return False


def translate_error(error: Exception, not_found_message: str, failure_prefix: str) -> ActivitySourceError:
    """Map PyGithub and transport exceptions onto the activity source error taxonomy."""
    if isinstance(error, UnknownObjectException) or (
        isinstance(error, GithubException) and error.status == 404
    ):
        return UserNotFoundError(not_found_message, status=404)

    if isinstance(error, GithubException):
        if _is_rate_limited(error):
            return RateLimitedError(
                RATE_LIMIT_MESSAGE,
                status=error.status,
                retry_after=get_retry_after(error.headers),
            )
        detail = error.data.get("message") if isinstance(error.data, dict) else None
        return TransportError(f"{failure_prefix}: {detail or f'HTTP {error.status}'}", status=error.status)

    if isinstance(error, requests.exceptions.RequestException):
        return TransportError(f"{failure_prefix}: {error}")

    return TransportError(f"{failure_prefix}: malformed response ({error})")


def fetch_user(client: Github, username: str):
    """Look up a GitHub user once so profile and events share one request."""
    try:
        return client.get_user(username)
    except FETCH_ERRORS as e:
        raise translate_error(
            e,
            not_found_message=f"User '{username}' not found. Please check the username and try again.",
            failure_prefix="Failed to fetch user",
        ) from e


def fetch_profile(client: Github, username: str, user=None) -> dict:
    """Fetch the public profile for a GitHub login, reusing `user` when given."""
    try:
        if user is None:
            user = client.get_user(username)
        profile = {
            "login": user.login,
            "name": user.name,
            "avatar_url": user.avatar_url,
            "html_url": user.html_url,
            "public_repos": user.public_repos,
            "followers": user.followers,
            "following": user.following,
            "created_at": to_iso8601(user.created_at),
        }
    except FETCH_ERRORS as e:
        raise translate_error(
            e,
            not_found_message=f"User '{username}' not found. Please check the username and try again.",
            failure_prefix="Failed to fetch user",
        ) from e

    return profile


def fetch_events(client: Github, username: str, limit: int | None = None, user=None) -> list[dict[str, Any]]:
    """
    Fetch the most recent public events for a GitHub login.

    Returns raw events as {"type", "created_at"} dicts, newest first as the
    API orders them. Events without a timestamp are skipped. Pass `user`
    from fetch_user to avoid looking the login up again.
    """
    limit = limit if limit is not None else get_event_limit()
    events: list[dict[str, Any]] = []

    try:
        if user is None:
            user = client.get_user(username)
        for event in user.get_events():
            created_at = getattr(event, "created_at", None)
            if created_at is None:
                continue
            events.append({"type": event.type, "created_at": created_at})
            if len(events) >= limit:
                break
    except FETCH_ERRORS as e:
        raise translate_error(
            e,
            not_found_message=f"Events for user '{username}' not found.",
            failure_prefix="Failed to fetch events",
        ) from e

    return events
