import os
import sys
import unittest
from datetime import datetime, timedelta, timezone
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import patch

import requests
from github import Auth, GithubException, RateLimitExceededException, UnknownObjectException


SCRIPT_DIR = Path(__file__).resolve().parents[1]
if str(SCRIPT_DIR) not in sys.path:
    sys.path.insert(0, str(SCRIPT_DIR))

from plant_calc import activity_source


NOW = datetime(2026, 2, 12, 12, 0, tzinfo=timezone.utc)


def make_event(event_type: str, created_at: datetime | None) -> SimpleNamespace:
    return SimpleNamespace(type=event_type, created_at=created_at)


class FakeUser:
    def __init__(self, login: str, events: list[SimpleNamespace], events_error: Exception | None = None) -> None:
        self.login = login
        self.name = "The Octocat"
        self.avatar_url = f"https://avatars.example/{login}"
        self.html_url = f"https://github.com/{login}"
        self.public_repos = 8
        self.followers = 20
        self.following = 1
        self.created_at = datetime(2011, 1, 25, 18, 44, 36, tzinfo=timezone.utc)
        self._events = events
        self._events_error = events_error
        self.events_consumed = 0

    def get_events(self):
        if self._events_error is not None:
            raise self._events_error
        for event in self._events:
            self.events_consumed += 1
            yield event


class FakeGithub:
    def __init__(self, users: dict[str, object]) -> None:
        self._users = users
        self.requested: list[str] = []

    def get_user(self, login: str) -> object:
        self.requested.append(login)
        user = self._users.get(login)
        if isinstance(user, Exception):
            raise user
        if user is None:
            raise UnknownObjectException(404, {"message": "Not Found"}, {})
        return user


class ValidateUsernameTests(unittest.TestCase):
    def test_accepts_and_trims_valid_logins(self) -> None:
        self.assertEqual(activity_source.validate_username("  octocat "), "octocat")
        self.assertEqual(activity_source.validate_username("Mona-Lisa"), "Mona-Lisa")
        self.assertEqual(activity_source.validate_username("a" * 39), "a" * 39)

    def test_rejects_blank_and_malformed_logins(self) -> None:
        with self.assertRaisesRegex(activity_source.InvalidUsernameError, "Please enter a GitHub username"):
            activity_source.validate_username("   ")
        with self.assertRaisesRegex(activity_source.InvalidUsernameError, "Please enter a GitHub username"):
            activity_source.validate_username(None)

        for bad in ["-octocat", "octocat-", "octo--cat", "octo cat", "octo_cat", "a" * 40]:
            with self.subTest(bad=bad):
                with self.assertRaisesRegex(
                    activity_source.InvalidUsernameError, "Please enter a valid GitHub username"
                ):
                    activity_source.validate_username(bad)


class BuildClientTests(unittest.TestCase):
    def test_build_client_without_token_disables_retries(self) -> None:
        with patch.object(activity_source, "Github") as github_mock:
            activity_source.build_client()

        kwargs = github_mock.call_args.kwargs
        self.assertIsNone(kwargs["auth"])
        self.assertIsNone(kwargs["retry"])
        self.assertEqual(kwargs["per_page"], 100)

    def test_build_client_with_token_uses_token_auth(self) -> None:
        with patch.object(activity_source, "Github") as github_mock:
            activity_source.build_client("ghp_example")

        auth = github_mock.call_args.kwargs["auth"]
        self.assertIsInstance(auth, Auth.Token)
        self.assertEqual(auth.token, "ghp_example")


class FetchProfileTests(unittest.TestCase):
    def test_fetch_profile_shapes_user_fields(self) -> None:
        client = FakeGithub({"octocat": FakeUser("octocat", [])})

        profile = activity_source.fetch_profile(client, "octocat")

        self.assertEqual(profile["login"], "octocat")
        self.assertEqual(profile["name"], "The Octocat")
        self.assertEqual(profile["html_url"], "https://github.com/octocat")
        self.assertEqual(profile["public_repos"], 8)
        self.assertEqual(profile["created_at"], "2011-01-25T18:44:36+00:00")

    def test_unknown_user_raises_not_found(self) -> None:
        client = FakeGithub({})

        with self.assertRaises(activity_source.UserNotFoundError) as ctx:
            activity_source.fetch_profile(client, "ghost-user")

        self.assertEqual(
            str(ctx.exception),
            "User 'ghost-user' not found. Please check the username and try again.",
        )
        self.assertEqual(ctx.exception.status, 404)

    def test_rate_limit_carries_retry_after(self) -> None:
        error = RateLimitExceededException(
            403,
            {"message": "API rate limit exceeded for 127.0.0.1."},
            {"Retry-After": "60"},
        )
        client = FakeGithub({"octocat": error})

        with self.assertRaises(activity_source.RateLimitedError) as ctx:
            activity_source.fetch_profile(client, "octocat")

        self.assertEqual(ctx.exception.message, "Rate limit exceeded. Please try again later.")
        self.assertEqual(ctx.exception.retry_after, 60)

    def test_server_error_becomes_transport_error(self) -> None:
        client = FakeGithub({"octocat": GithubException(502, {"message": "Bad Gateway"}, {})})

        with self.assertRaises(activity_source.TransportError) as ctx:
            activity_source.fetch_profile(client, "octocat")

        self.assertEqual(ctx.exception.message, "Failed to fetch user: Bad Gateway")
        self.assertEqual(ctx.exception.status, 502)

    def test_network_failure_becomes_transport_error(self) -> None:
        client = FakeGithub({"octocat": requests.exceptions.ConnectionError("connection refused")})

        with self.assertRaises(activity_source.TransportError) as ctx:
            activity_source.fetch_profile(client, "octocat")

        self.assertIn("Failed to fetch user", ctx.exception.message)
        self.assertIsNone(ctx.exception.status)

    def test_malformed_response_becomes_transport_error(self) -> None:
        client = FakeGithub({"octocat": ValueError("Expecting value")})

        with self.assertRaises(activity_source.TransportError) as ctx:
            activity_source.fetch_profile(client, "octocat")
        self.assertEqual(ctx.exception.message, "Failed to fetch user: malformed response (Expecting value)")

        with self.assertRaises(activity_source.TransportError):
            activity_source.fetch_user(client, "octocat")


class FetchEventsTests(unittest.TestCase):
    def test_fetch_events_returns_raw_events_and_skips_missing_timestamps(self) -> None:
        user = FakeUser("octocat", [
            make_event("PushEvent", NOW),
            make_event("WatchEvent", NOW - timedelta(hours=1)),
            make_event("PushEvent", None),
            make_event("PushEvent", NOW - timedelta(days=1)),
        ])
        client = FakeGithub({"octocat": user})

        events = activity_source.fetch_events(client, "octocat", limit=10)

        self.assertEqual(
            events,
            [
                {"type": "PushEvent", "created_at": NOW},
                {"type": "WatchEvent", "created_at": NOW - timedelta(hours=1)},
                {"type": "PushEvent", "created_at": NOW - timedelta(days=1)},
            ],
        )

    def test_fetch_events_stops_at_limit(self) -> None:
        user = FakeUser("octocat", [make_event("PushEvent", NOW - timedelta(minutes=i)) for i in range(150)])
        client = FakeGithub({"octocat": user})

        events = activity_source.fetch_events(client, "octocat", limit=100)

        self.assertEqual(len(events), 100)
        self.assertEqual(user.events_consumed, 100)

    def test_fetch_events_limit_from_environment(self) -> None:
        user = FakeUser("octocat", [make_event("PushEvent", NOW - timedelta(minutes=i)) for i in range(5)])
        client = FakeGithub({"octocat": user})

        with patch.dict(os.environ, {"GITPLANT_EVENT_LIMIT": "2"}, clear=False):
            self.assertEqual(len(activity_source.fetch_events(client, "octocat")), 2)
        with patch.dict(os.environ, {"GITPLANT_EVENT_LIMIT": "nope"}, clear=False):
            self.assertEqual(activity_source.get_event_limit(), 100)
        with patch.dict(os.environ, {"GITPLANT_EVENT_LIMIT": "0"}, clear=False):
            self.assertEqual(activity_source.get_event_limit(), 1)

    def test_fetch_events_reuses_looked_up_user(self) -> None:
        user = FakeUser("octocat", [make_event("PushEvent", NOW)])
        client = FakeGithub({"octocat": user})

        fetched = activity_source.fetch_user(client, "octocat")
        activity_source.fetch_profile(client, "octocat", user=fetched)
        events = activity_source.fetch_events(client, "octocat", limit=10, user=fetched)

        self.assertEqual(events, [{"type": "PushEvent", "created_at": NOW}])
        self.assertEqual(client.requested, ["octocat"])

    def test_undecodable_event_payload_becomes_transport_error(self) -> None:
        bad_bytes = UnicodeDecodeError("utf-8", b"\xff", 0, 1, "invalid start byte")
        client = FakeGithub({"octocat": FakeUser("octocat", [], events_error=bad_bytes)})

        with self.assertRaises(activity_source.TransportError) as ctx:
            activity_source.fetch_events(client, "octocat")

        self.assertTrue(ctx.exception.message.startswith("Failed to fetch events: malformed response"))

    def test_fetch_events_error_messages(self) -> None:
        client = FakeGithub({})
        with self.assertRaises(activity_source.UserNotFoundError) as ctx:
            activity_source.fetch_events(client, "ghost-user")
        self.assertEqual(str(ctx.exception), "Events for user 'ghost-user' not found.")

        forbidden = GithubException(
            403,
            {"message": "Forbidden"},
            {"X-RateLimit-Remaining": "0", "X-RateLimit-Reset": "1000"},
        )
        client = FakeGithub({"octocat": FakeUser("octocat", [], events_error=forbidden)})
        with patch.object(activity_source.time, "time", return_value=900.0):
            with self.assertRaises(activity_source.RateLimitedError) as ctx:
                activity_source.fetch_events(client, "octocat")
        self.assertEqual(ctx.exception.retry_after, 100)
        self.assertEqual(ctx.exception.status, 403)

        client = FakeGithub({"octocat": FakeUser("octocat", [], events_error=GithubException(500, None, {}))})
        with self.assertRaises(activity_source.TransportError) as ctx:
            activity_source.fetch_events(client, "octocat")
        self.assertEqual(ctx.exception.message, "Failed to fetch events: HTTP 500")


class RetryAfterTests(unittest.TestCase):
    def test_get_retry_after_header_priority(self) -> None:
        self.assertEqual(activity_source.get_retry_after({"retry-after": "30", "x-ratelimit-reset": "5000"}, now=0), 30)
        self.assertEqual(activity_source.get_retry_after({"X-RateLimit-Reset": "5000"}, now=4000), 1000)
        self.assertEqual(activity_source.get_retry_after({"X-RateLimit-Reset": "5000"}, now=6000), 0)
        self.assertIsNone(activity_source.get_retry_after({}, now=0))
        self.assertIsNone(activity_source.get_retry_after(None, now=0))
        self.assertIsNone(activity_source.get_retry_after({"Retry-After": "soon"}, now=0))


if __name__ == "__main__":
    unittest.main()
