"""Abstract interface for a physical credential store."""

from __future__ import annotations

from abc import ABC, abstractmethod


class CredentialStore(ABC):
    """One opaque byte value per ``(service, user)`` key.

    Implementations must raise ``NoEntry`` from ``get`` and ``delete``
    when the key is absent, and ``StoreFailure`` for anything else that
    goes wrong. The chunking layer relies on telling those two apart.
    """

    @abstractmethod
    def get(self, service: str, user: str) -> bytes:
        """Return the value stored under the key. Raises ``NoEntry`` if absent."""

    @abstractmethod
    def set(self, service: str, user: str, value: bytes) -> None:
        """Create or replace the value stored under the key."""

    @abstractmethod
    def delete(self, service: str, user: str) -> None:
        """Remove the key. Raises ``NoEntry`` if absent."""
