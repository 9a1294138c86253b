"""macOS Keychain backend.

Wraps the macOS ``security`` CLI tool to store entries as generic
passwords. The CLI only handles text, so values are base64-encoded.
"""

from __future__ import annotations

import base64
import binascii
import logging
import re
import subprocess

from chunked_keyring.errors import NoEntry, StoreFailure
from chunked_keyring.secrets.store import CredentialStore

logger = logging.getLogger(__name__)

# Exit code when an item is not found in Keychain
_ERR_ITEM_NOT_FOUND = 44

_PASSWORD_RE = re.compile(r'password:\s*"(.*)"')


class KeychainStore(CredentialStore):
    """Stores entries in macOS Keychain via the ``security`` CLI.

    Parameters
    ----------
    keychain_path:
        Keychain file to operate on. Defaults to the user's default
        (login) keychain.
    """

    def __init__(self, keychain_path: str | None = None) -> None:
        self._keychain = keychain_path

    def _run(self, *args: str) -> tuple[int, bytes, bytes]:
        """Run a ``security`` subcommand and return (returncode, stdout, stderr)."""
        logger.debug("Running security %s", args[0])
        cmd = ["security", *args]
        if self._keychain:
            cmd.append(self._keychain)
        try:
            proc = subprocess.run(cmd, capture_output=True, check=False)
        except OSError as exc:
            raise StoreFailure(f"cannot run security CLI: {exc}") from exc
        return proc.returncode, proc.stdout, proc.stderr

    @staticmethod
    def _failure(action: str, returncode: int, stderr: bytes) -> StoreFailure:
        message = stderr.decode("utf-8", errors="replace").strip()
        return StoreFailure(f"security {action} failed (exit {returncode}): {message}")

    def get(self, service: str, user: str) -> bytes:
        returncode, _stdout, stderr = self._run(
            "find-generic-password",
            "-s", service,
            "-a", user,
            "-g",
        )
        if returncode == _ERR_ITEM_NOT_FOUND:
            raise NoEntry(f"no keychain item for {service}/{user}")
        if returncode != 0:
            raise self._failure("find-generic-password", returncode, stderr)

        # The security CLI prints the password to stderr in the form:
        #   password: "thevalue"
        match = _PASSWORD_RE.search(stderr.decode("utf-8", errors="replace"))
        if match is None:
            raise StoreFailure(f"unreadable keychain item for {service}/{user}")
        try:
            return base64.b64decode(match.group(1), validate=True)
        except binascii.Error as exc:
            raise StoreFailure(
                f"keychain item for {service}/{user} is not base64"
            ) from exc

    def set(self, service: str, user: str, value: bytes) -> None:
        encoded = base64.b64encode(value).decode("ascii")
        returncode, _, stderr = self._run(
            "add-generic-password",
            "-s", service,
            "-a", user,
            "-w", encoded,
            "-U",  # update in place when the item exists
        )
        if returncode != 0:
            raise self._failure("add-generic-password", returncode, stderr)

    def delete(self, service: str, user: str) -> None:
        returncode, _, stderr = self._run(
            "delete-generic-password",
            "-s", service,
            "-a", user,
        )
        if returncode == _ERR_ITEM_NOT_FOUND:
            raise NoEntry(f"no keychain item for {service}/{user}")
        if returncode != 0:
            raise self._failure("delete-generic-password", returncode, stderr)
