"""chunked-keyring -- secrets of any size in size-limited credential stores."""

from pathlib import Path as _Path

from chunked_keyring.chunk import chunks_needed, max_chunk_size
from chunked_keyring.entry import Entry
from chunked_keyring.errors import (
    BadEncoding,
    ChunkedKeyringError,
    CorruptedSecret,
    InvalidArgument,
    NoEntry,
    StoreFailure,
)
from chunked_keyring.secrets import (
    CredentialStore,
    MemoryStore,
    get_default_store,
    set_default_store,
)


def _read_version() -> str:
    """Read version from the repo-level VERSION file (single source of truth)."""
    for parent in _Path(__file__).resolve().parents:
        candidate = parent / "VERSION"
        if candidate.is_file():
            return candidate.read_text().strip()
    return "0.0.0"


__version__ = _read_version()

__all__ = [
    "BadEncoding",
    "ChunkedKeyringError",
    "CorruptedSecret",
    "CredentialStore",
    "Entry",
    "InvalidArgument",
    "MemoryStore",
    "NoEntry",
    "StoreFailure",
    "chunks_needed",
    "get_default_store",
    "max_chunk_size",
    "set_default_store",
]
