"""Fernet-encrypted JSON file backend.

Used where no platform keychain is available. Derives an encryption key
from a passphrase using PBKDF2-HMAC-SHA256, then encrypts the entire JSON
document of entries with Fernet.
"""

from __future__ import annotations

import base64
import json
import pathlib

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from chunked_keyring.errors import NoEntry, StoreFailure
from chunked_keyring.secrets.store import CredentialStore

# Fixed salt -- acceptable for a local-only file where the threat model is
# casual disk access, not offline brute-force against a leaked database.
_SALT = b"chunked-keyring-credentials-v1"
_ITERATIONS = 480_000


def _derive_key(passphrase: str) -> bytes:
    """Derive a 32-byte Fernet key from the passphrase via PBKDF2."""
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=32,
        salt=_SALT,
        iterations=_ITERATIONS,
    )
    return base64.urlsafe_b64encode(kdf.derive(passphrase.encode("utf-8")))


def _key(service: str, user: str) -> str:
    return f"{service}\x00{user}"


class EncryptedFileStore(CredentialStore):
    """Stores entries as a Fernet-encrypted JSON file on disk.

    Parameters
    ----------
    file_path:
        Path to the encrypted file. Created on first write.
    passphrase:
        Passphrase used to derive the Fernet key via PBKDF2.
    """

    def __init__(self, file_path: pathlib.Path, passphrase: str) -> None:
        self._path = pathlib.Path(file_path)
        self._fernet = Fernet(_derive_key(passphrase))

    @property
    def path(self) -> pathlib.Path:
        return self._path

    def _read_store(self) -> dict[str, str]:
        """Read and decrypt the file. Returns an empty dict if missing."""
        if not self._path.exists():
            return {}
        try:
            ciphertext = self._path.read_bytes()
            plaintext = self._fernet.decrypt(ciphertext)
        except OSError as exc:
            raise StoreFailure(f"cannot read {self._path}: {exc}") from exc
        except InvalidToken as exc:
            raise StoreFailure(
                f"cannot decrypt {self._path}: wrong passphrase or tampered file"
            ) from exc
        return json.loads(plaintext)

    def _write_store(self, data: dict[str, str]) -> None:
        """Encrypt and write the entries to disk.

        Writes a sibling temp file and replaces the target with it, so a
        failed write leaves the previous document intact.
        """
        plaintext = json.dumps(data, sort_keys=True).encode("utf-8")
        ciphertext = self._fernet.encrypt(plaintext)
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_bytes(ciphertext)
            tmp_path.replace(self._path)
        except OSError as exc:
            tmp_path.unlink(missing_ok=True)
            raise StoreFailure(f"cannot write {self._path}: {exc}") from exc

    def get(self, service: str, user: str) -> bytes:
        store = self._read_store()
        value = store.get(_key(service, user))
        if value is None:
            raise NoEntry(f"no entry for {service}/{user}")
        return base64.b64decode(value)

    def set(self, service: str, user: str, value: bytes) -> None:
        store = self._read_store()
        store[_key(service, user)] = base64.b64encode(value).decode("ascii")
        self._write_store(store)

    def delete(self, service: str, user: str) -> None:
        store = self._read_store()
        if store.pop(_key(service, user), None) is None:
            raise NoEntry(f"no entry for {service}/{user}")
        self._write_store(store)
