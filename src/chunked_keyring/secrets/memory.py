"""In-process backend backed by a dict. Nothing is persisted."""

from __future__ import annotations

from chunked_keyring.errors import NoEntry
from chunked_keyring.secrets.store import CredentialStore


class MemoryStore(CredentialStore):
    """Keeps entries in memory for the lifetime of the object."""

    def __init__(self) -> None:
        self._data: dict[tuple[str, str], bytes] = {}

    def get(self, service: str, user: str) -> bytes:
        try:
            return self._data[(service, user)]
        except KeyError:
            raise NoEntry(f"no entry for {service}/{user}") from None

    def set(self, service: str, user: str, value: bytes) -> None:
        self._data[(service, user)] = bytes(value)

    def delete(self, service: str, user: str) -> None:
        try:
            del self._data[(service, user)]
        except KeyError:
            raise NoEntry(f"no entry for {service}/{user}") from None

    def keys(self) -> list[tuple[str, str]]:
        """Return every stored ``(service, user)`` key."""
        return list(self._data.keys())
