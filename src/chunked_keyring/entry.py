"""Logical credential entries that may span several physical entries.

A secret for ``(service, user)`` is split into parts stored under
``(service, "{user}.{part}")``, each holding a ``{part}/{total}|`` frame.

Part 1 is the commit marker. It is written last and deleted last, so a
reader either finds part 1 with every higher part already in place, or
finds nothing at all. The sequence of physical operations is not atomic:
an interrupted ``set_secret`` can leave unreachable parts above the new
total, and concurrent writers on the same identity are not serialised.
"""

from __future__ import annotations

import logging
from typing import Callable, TypeVar

from chunked_keyring.chunk import MAX_PARTS, chunks_needed, max_chunk_size
from chunked_keyring.errors import (
    BadEncoding,
    ChunkedKeyringError,
    CorruptedSecret,
    InvalidArgument,
    NoEntry,
    StoreFailure,
)
from chunked_keyring.frame import Frame, decode_part, encode_part
from chunked_keyring.secrets import CredentialStore, get_default_store

logger = logging.getLogger(__name__)

_T = TypeVar("_T")


class Entry:
    """A credential of any size for one service/user pair.

    Parameters
    ----------
    service:
        Service name. Must be non-empty.
    user:
        User name. Must be non-empty.
    store:
        Physical backend. Defaults to the process-wide store from
        ``chunked_keyring.secrets.get_default_store``.
    """

    def __init__(
        self,
        service: str,
        user: str,
        *,
        store: CredentialStore | None = None,
    ) -> None:
        if not service:
            raise InvalidArgument("service cannot be empty")
        if not user:
            raise InvalidArgument("user cannot be empty")
        self._service = str(service)
        self._user = str(user)
        self._store = store if store is not None else get_default_store()

    @property
    def service(self) -> str:
        return self._service

    @property
    def user(self) -> str:
        return self._user

    def __repr__(self) -> str:
        return f"Entry(service={self._service!r}, user={self._user!r})"

    # ------------------------------------------------------------------
    # Text access
    # ------------------------------------------------------------------

    def set_password(self, password: str) -> None:
        """Store a UTF-8 password."""
        if not isinstance(password, str):
            raise InvalidArgument(
                f"password must be str, got {type(password).__name__}"
            )
        self.set_secret(password.encode("utf-8"))

    def get_password(self) -> str:
        """Retrieve the secret as text. Raises ``BadEncoding`` if it is not UTF-8."""
        secret = self.get_secret()
        try:
            return secret.decode("utf-8")
        except UnicodeDecodeError:
            raise BadEncoding() from None

    # ------------------------------------------------------------------
    # Binary access
    # ------------------------------------------------------------------

    def set_secret(self, secret: bytes) -> None:
        """Store binary data, replacing any previous secret.

        Parts are written from the last down to part 1, so part 1 only
        appears once every other part is in place.
        """
        if not isinstance(secret, (bytes, bytearray, memoryview)):
            raise InvalidArgument(
                f"secret must be bytes, got {type(secret).__name__}"
            )
        secret = bytes(secret)
        total = chunks_needed(len(secret))
        if total > MAX_PARTS:
            raise InvalidArgument(
                f"secret of {len(secret)} bytes needs {total} parts, limit is {MAX_PARTS}"
            )

        # Clear the old version first so a shorter secret leaves no stale parts
        self.delete_credential()

        chunk_size = max_chunk_size()
        for part in range(total, 0, -1):
            chunk = secret[(part - 1) * chunk_size : part * chunk_size]
            frame = encode_part(part, total, chunk)
            self._physical("set", part, self._store.set, frame)

        logger.debug(
            "Stored %d bytes for %s/%s in %d part(s)",
            len(secret), self._service, self._user, total,
        )

    def get_secret(self) -> bytes:
        """Retrieve binary data, reassembling it from all parts.

        Raises
        ------
        NoEntry
            If no credential exists, or a part vanished mid-read.
        CorruptedSecret
            If any part is malformed, out of place, or disagrees with
            part 1 about the total.
        """
        try:
            first = self._read_part(1)
        except NoEntry:
            raise NoEntry(f"no credential for {self._service}/{self._user}") from None

        if first.part != 1:
            raise CorruptedSecret(f"expected part 1, got {first.part}")

        total = first.total
        if total == 1:
            return first.payload

        chunks = [first.payload]
        for index in range(2, total + 1):
            try:
                frame = self._read_part(index)
            except NoEntry:
                raise NoEntry(
                    f"part {index} of {total} for {self._service}/{self._user} is missing"
                ) from None
            if frame.part != index:
                raise CorruptedSecret(f"expected part {index}, got {frame.part}")
            if frame.total != total:
                raise CorruptedSecret(
                    f"inconsistent total in part {index}: expected {total}, got {frame.total}"
                )
            chunks.append(frame.payload)

        logger.debug(
            "Reassembled %s/%s from %d parts", self._service, self._user, total
        )
        return b"".join(chunks)

    def delete_credential(self) -> None:
        """Delete the credential. Succeeds if it does not exist.

        Parts are removed from the last down to part 1, so part 1 is the
        last thing to disappear.
        """
        try:
            total = self._read_part(1).total
        except NoEntry:
            logger.debug("No credential for %s/%s, nothing to delete", self._service, self._user)
            return

        for part in range(total, 0, -1):
            try:
                self._physical("delete", part, self._store.delete)
            except NoEntry:
                continue

        logger.debug(
            "Deleted %s/%s (%d part(s))", self._service, self._user, total
        )

    # ------------------------------------------------------------------
    # Physical parts
    # ------------------------------------------------------------------

    def _part_user(self, part: int) -> str:
        return f"{self._user}.{part}"

    def _physical(
        self,
        action: str,
        part: int,
        op: Callable[..., _T],
        *args: bytes,
    ) -> _T:
        """Run one store operation on *part*, wrapping foreign errors."""
        part_user = self._part_user(part)
        try:
            return op(self._service, part_user, *args)
        except ChunkedKeyringError:
            raise
        except Exception as exc:
            raise StoreFailure(
                f"{action} {self._service}/{part_user} failed: {exc}"
            ) from exc

    def _read_part(self, part: int) -> Frame:
        data = self._physical("get", part, self._store.get)
        try:
            return decode_part(data)
        except CorruptedSecret as exc:
            raise CorruptedSecret(f"part {part}: {exc.reason}") from exc
