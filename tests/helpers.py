"""Shared helpers for tests that are not fixtures."""

from sqlalchemy.exc import OperationalError

IDENTITY_HEADER = "X-User-Id"


def as_user(email: str) -> dict:
    """Request headers identifying the caller."""
    return {IDENTITY_HEADER: email}


class BrokenDatabase:
    """Stand-in database whose every session fails to reach the store."""

    def __init__(self):
        self.attempts = 0

    def session(self):
        self.attempts += 1
        raise OperationalError("SELECT 1", {}, ConnectionRefusedError("store is down"))

    def new_session(self):
        return self.session()


class CountingDirectory:
    """Wraps a user directory and counts lookups."""

    def __init__(self, directory):
        self.directory = directory
        self.calls = 0

    def lookup(self, identity):
        self.calls += 1
        return self.directory.lookup(identity)
