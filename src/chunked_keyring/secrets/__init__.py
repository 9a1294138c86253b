"""Physical credential store backends.

The chunking layer only needs ``get``/``set``/``delete`` on one
``(service, user)`` key at a time; everything platform specific lives
behind ``CredentialStore``.
"""

from __future__ import annotations

import logging
import pathlib
import sys

from chunked_keyring.config import Settings, load_settings
from chunked_keyring.errors import InvalidArgument
from chunked_keyring.secrets.memory import MemoryStore
from chunked_keyring.secrets.store import CredentialStore

logger = logging.getLogger(__name__)

BACKENDS = ("auto", "keychain", "file", "memory")

_default_store: CredentialStore | None = None


def create_store(settings: Settings) -> CredentialStore:
    """Create the backend selected by ``settings.store.backend``.

    ``auto`` picks the macOS Keychain on macOS and the encrypted file
    everywhere else.
    """
    cfg = settings.store
    backend = cfg.backend.lower()
    if backend not in BACKENDS:
        raise InvalidArgument(
            f"unknown store backend {cfg.backend!r} (expected one of {', '.join(BACKENDS)})"
        )
    if backend == "auto":
        backend = "keychain" if sys.platform == "darwin" else "file"

    if backend == "keychain":
        from chunked_keyring.secrets.keychain import KeychainStore

        logger.debug("Using macOS Keychain backend")
        return KeychainStore(keychain_path=cfg.keychain_path)

    if backend == "file":
        from chunked_keyring.secrets.encrypted_file import EncryptedFileStore

        file_path = pathlib.Path(cfg.file_path).expanduser()
        logger.debug("Using encrypted file backend at %s", file_path)
        return EncryptedFileStore(
            file_path=file_path,
            passphrase=cfg.passphrase,
        )

    logger.debug("Using in-memory backend")
    return MemoryStore()


def get_default_store() -> CredentialStore:
    """Return the process-wide store, building it from settings on first use."""
    global _default_store
    if _default_store is None:
        _default_store = create_store(load_settings())
    return _default_store


def set_default_store(store: CredentialStore | None) -> None:
    """Replace the process-wide store. ``None`` rebuilds it on next use."""
    global _default_store
    _default_store = store


__all__ = [
    "BACKENDS",
    "CredentialStore",
    "MemoryStore",
    "create_store",
    "get_default_store",
    "set_default_store",
]
