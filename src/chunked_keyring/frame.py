"""Wire frame codec.

A frame is the byte string stored in one physical entry::

    {part}/{total}|{payload}

The header is ASCII digits and a slash only, so the first ``|`` always
ends it and the payload needs no escaping.
"""

from __future__ import annotations

from typing import NamedTuple

from chunked_keyring.chunk import MAX_PARTS
from chunked_keyring.errors import CorruptedSecret

_SEPARATOR = b"|"


class Frame(NamedTuple):
    """A decoded frame."""

    part: int
    total: int
    payload: bytes


def encode_part(part: int, total: int, payload: bytes) -> bytes:
    """Encode *payload* as part *part* of *total*."""
    header = f"{part}/{total}".encode("ascii")
    return header + _SEPARATOR + bytes(payload)


def _parse_number(text: str, field: str) -> int:
    # str.isdigit() accepts non-ASCII digits; int() accepts signs,
    # whitespace and underscores. Only plain ASCII decimal is valid.
    if not text or not text.isascii() or not text.isdigit():
        raise CorruptedSecret(f"invalid {field} number {text!r}")
    try:
        return int(text)
    except ValueError:
        # Beyond the interpreter's int/str conversion digit limit
        raise CorruptedSecret(f"invalid {field} number ({len(text)} digits)") from None


def decode_part(data: bytes) -> Frame:
    """Decode a frame, validating its header.

    Raises
    ------
    CorruptedSecret
        If the separator or slash is missing, the header is not UTF-8,
        either number is not a plain decimal, ``part`` is zero,
        ``part`` exceeds ``total``, or ``total`` exceeds ``MAX_PARTS``.
    """
    separator_pos = data.find(_SEPARATOR)
    if separator_pos < 0:
        raise CorruptedSecret("missing separator")

    try:
        header = data[:separator_pos].decode("utf-8")
    except UnicodeDecodeError:
        raise CorruptedSecret("invalid header encoding") from None

    part_text, slash, total_text = header.partition("/")
    if not slash:
        raise CorruptedSecret(f"missing slash in header {header!r}")

    part = _parse_number(part_text, "part")
    total = _parse_number(total_text, "total")

    if part == 0 or part > total or total > MAX_PARTS:
        raise CorruptedSecret(f"invalid part {part}/{total}")

    return Frame(part, total, bytes(data[separator_pos + 1 :]))
