"""Per-platform chunk sizing.

Each physical entry holds one frame: a ``{part}/{total}|`` header plus a
payload slice. The payload budget is the platform's practical entry size
minus the worst-case header length.
"""

from __future__ import annotations

import sys

# Worst-case header is "9999/9999|"
HEADER_OVERHEAD = 10
MAX_PARTS = 9999

_RAW_ENTRY_SIZES: dict[str, int] = {
    "win32": 2048,    # Credential Manager blobs cap at ~2.5KB
    "darwin": 16384,
    "ios": 16384,
    "linux": 8192,    # Secret Service implementations vary
}
_FALLBACK_RAW_ENTRY_SIZE = 2048


def max_raw_entry_size(platform: str | None = None) -> int:
    """Return the usable bytes per physical entry on *platform*.

    Parameters
    ----------
    platform:
        A ``sys.platform`` value. Defaults to the running interpreter's.
    """
    if platform is None:
        platform = sys.platform
    return _RAW_ENTRY_SIZES.get(platform, _FALLBACK_RAW_ENTRY_SIZE)


def max_chunk_size() -> int:
    """Return the maximum payload bytes per part on this platform."""
    return max_raw_entry_size() - HEADER_OVERHEAD


def chunks_needed(data_len: int) -> int:
    """Return how many parts a secret of *data_len* bytes occupies.

    An empty secret still takes one part.
    """
    if data_len == 0:
        return 1
    chunk_size = max_chunk_size()
    return (data_len + chunk_size - 1) // chunk_size
