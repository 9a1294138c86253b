"""Exception hierarchy for chunked-keyring.

Every failure the library raises derives from ``ChunkedKeyringError`` so
callers can catch the whole family in one place, while the concrete
subclasses keep "not found", "store broke" and "data is corrupt" apart.
"""

from __future__ import annotations


class ChunkedKeyringError(Exception):
    """Base class for all chunked-keyring errors."""


class StoreFailure(ChunkedKeyringError):
    """The underlying credential store failed for a reason other than not-found."""


class NoEntry(ChunkedKeyringError):
    """No credential exists for the requested service/user."""


class CorruptedSecret(ChunkedKeyringError):
    """A stored part is malformed or inconsistent with its siblings."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"corrupted secret: {reason}")
        self.reason = reason


class BadEncoding(ChunkedKeyringError, ValueError):
    """The reassembled secret is not valid UTF-8."""

    def __init__(self) -> None:
        super().__init__("secret is not valid UTF-8")


class InvalidArgument(ChunkedKeyringError, ValueError):
    """A caller-supplied argument was rejected."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"invalid argument: {reason}")
        self.reason = reason
