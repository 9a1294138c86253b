"""Tests for the credential store abstraction and backends."""

from __future__ import annotations

import base64
import pathlib
from unittest.mock import MagicMock, patch

import pytest

from chunked_keyring.config import Settings, StoreConfig, load_settings
from chunked_keyring.errors import InvalidArgument, NoEntry, StoreFailure
from chunked_keyring.secrets import (
    CredentialStore,
    MemoryStore,
    create_store,
    get_default_store,
    set_default_store,
)
from chunked_keyring.secrets.encrypted_file import EncryptedFileStore
from chunked_keyring.secrets.keychain import KeychainStore


# ---------------------------------------------------------------------------
# CredentialStore ABC contract
# ---------------------------------------------------------------------------

class TestCredentialStoreABC:
    """Verify the abstract interface cannot be instantiated directly."""

    def test_cannot_instantiate_abstract(self) -> None:
        with pytest.raises(TypeError):
            CredentialStore()  # type: ignore[abstract]

    def test_has_required_methods(self) -> None:
        for method in ("get", "set", "delete"):
            assert hasattr(CredentialStore, method), f"CredentialStore must define {method}"


# ---------------------------------------------------------------------------
# MemoryStore
# ---------------------------------------------------------------------------

class TestMemoryStore:

    def test_set_and_get(self, memory_store: MemoryStore) -> None:
        memory_store.set("svc", "user.1", b"1/1|abc")
        assert memory_store.get("svc", "user.1") == b"1/1|abc"

    def test_get_missing_raises_no_entry(self, memory_store: MemoryStore) -> None:
        with pytest.raises(NoEntry):
            memory_store.get("svc", "missing")

    def test_delete_missing_raises_no_entry(self, memory_store: MemoryStore) -> None:
        with pytest.raises(NoEntry):
            memory_store.delete("svc", "missing")

    def test_keys_are_scoped_by_service(self, memory_store: MemoryStore) -> None:
        memory_store.set("a", "u", b"1")
        memory_store.set("b", "u", b"2")
        assert memory_store.get("a", "u") == b"1"
        assert sorted(memory_store.keys()) == [("a", "u"), ("b", "u")]


# ---------------------------------------------------------------------------
# EncryptedFileStore
# ---------------------------------------------------------------------------

class TestEncryptedFileStore:
    """Test Fernet-encrypted JSON file backend."""

    @pytest.fixture
    def store(self, tmp_path: pathlib.Path) -> EncryptedFileStore:
        return EncryptedFileStore(
            file_path=tmp_path / "credentials.enc",
            passphrase="test-passphrase-123",
        )

    def test_set_and_get_binary(self, store: EncryptedFileStore) -> None:
        value = bytes(range(256))
        store.set("svc", "user.1", value)
        assert store.get("svc", "user.1") == value

    def test_get_nonexistent_raises(self, store: EncryptedFileStore) -> None:
        with pytest.raises(NoEntry):
            store.get("svc", "nonexistent")

    def test_delete(self, store: EncryptedFileStore) -> None:
        store.set("svc", "user.1", b"value")
        store.delete("svc", "user.1")
        with pytest.raises(NoEntry):
            store.get("svc", "user.1")

    def test_delete_nonexistent_raises(self, store: EncryptedFileStore) -> None:
        with pytest.raises(NoEntry):
            store.delete("svc", "nonexistent")

    def test_overwrite_existing_key(self, store: EncryptedFileStore) -> None:
        store.set("svc", "user.1", b"old")
        store.set("svc", "user.1", b"new")
        assert store.get("svc", "user.1") == b"new"

    def test_service_and_user_do_not_collide(self, store: EncryptedFileStore) -> None:
        store.set("a.b", "c", b"first")
        store.set("a", "b.c", b"second")
        assert store.get("a.b", "c") == b"first"
        assert store.get("a", "b.c") == b"second"

    def test_persists_across_instances(self, tmp_path: pathlib.Path) -> None:
        file_path = tmp_path / "credentials.enc"
        EncryptedFileStore(file_path=file_path, passphrase="pw").set("svc", "u", b"v")
        reopened = EncryptedFileStore(file_path=file_path, passphrase="pw")
        assert reopened.get("svc", "u") == b"v"

    def test_wrong_passphrase_is_store_failure(self, tmp_path: pathlib.Path) -> None:
        file_path = tmp_path / "credentials.enc"
        EncryptedFileStore(file_path=file_path, passphrase="correct").set("svc", "u", b"v")

        wrong = EncryptedFileStore(file_path=file_path, passphrase="wrong")
        with pytest.raises(StoreFailure, match="wrong passphrase"):
            wrong.get("svc", "u")

    def test_file_is_not_plaintext(self, tmp_path: pathlib.Path) -> None:
        file_path = tmp_path / "credentials.enc"
        store = EncryptedFileStore(file_path=file_path, passphrase="pw")
        store.set("svc", "user", b"super-secret-value")

        raw = file_path.read_bytes()
        assert b"super-secret-value" not in raw
        assert base64.b64encode(b"super-secret-value") not in raw

    def test_creates_parent_directory(self, tmp_path: pathlib.Path) -> None:
        file_path = tmp_path / "nested" / "dir" / "credentials.enc"
        EncryptedFileStore(file_path=file_path, passphrase="pw").set("s", "u", b"v")
        assert file_path.is_file()

    def test_failed_write_keeps_other_entries(self, tmp_path: pathlib.Path) -> None:
        """A write that dies halfway must not tear the existing document."""
        file_path = tmp_path / "credentials.enc"
        store = EncryptedFileStore(file_path=file_path, passphrase="pw")
        store.set("svc", "bob.1", b"1/1|bob-secret")
        before = file_path.read_bytes()

        real_write_bytes = pathlib.Path.write_bytes

        def _torn_write(self: pathlib.Path, data: bytes) -> int:
            real_write_bytes(self, data[: len(data) // 2])
            raise OSError("disk full")

        with patch.object(pathlib.Path, "write_bytes", _torn_write):
            with pytest.raises(StoreFailure, match="disk full"):
                store.set("svc", "alice.1", b"1/1|alice-secret")

        assert file_path.read_bytes() == before
        assert store.get("svc", "bob.1") == b"1/1|bob-secret"
        with pytest.raises(NoEntry):
            store.get("svc", "alice.1")
        assert list(tmp_path.iterdir()) == [file_path]

    def test_failed_replace_keeps_other_entries(self, tmp_path: pathlib.Path) -> None:
        file_path = tmp_path / "credentials.enc"
        store = EncryptedFileStore(file_path=file_path, passphrase="pw")
        store.set("svc", "bob.1", b"1/1|bob-secret")

        with patch.object(pathlib.Path, "replace", side_effect=OSError("busy")):
            with pytest.raises(StoreFailure, match="busy"):
                store.delete("svc", "bob.1")

        assert store.get("svc", "bob.1") == b"1/1|bob-secret"
        assert list(tmp_path.iterdir()) == [file_path]


# ---------------------------------------------------------------------------
# KeychainStore (mocked macOS security CLI)
# ---------------------------------------------------------------------------

def _completed(returncode: int = 0, stdout: bytes = b"", stderr: bytes = b"") -> MagicMock:
    proc = MagicMock()
    proc.returncode = returncode
    proc.stdout = stdout
    proc.stderr = stderr
    return proc


_RUN = "chunked_keyring.secrets.keychain.subprocess.run"


class TestKeychainStore:
    """Test macOS Keychain backend with mocked subprocess calls."""

    @pytest.fixture
    def store(self) -> KeychainStore:
        return KeychainStore()

    def test_set_calls_security_add(self, store: KeychainStore) -> None:
        with patch(_RUN, return_value=_completed()) as mock_run:
            store.set("svc", "alice.1", b"1/1|pw")

            mock_run.assert_called_once()
            cmd = mock_run.call_args[0][0]
            assert cmd[0] == "security"
            assert "add-generic-password" in cmd
            assert cmd[cmd.index("-s") + 1] == "svc"
            assert cmd[cmd.index("-a") + 1] == "alice.1"
            assert cmd[cmd.index("-w") + 1] == base64.b64encode(b"1/1|pw").decode()
            assert "-U" in cmd

    def test_set_updates_existing_in_one_call(self, store: KeychainStore) -> None:
        """``-U`` makes add-generic-password replace an existing item itself."""
        with patch(_RUN, return_value=_completed()) as mock_run:
            store.set("svc", "alice.1", b"old")
            store.set("svc", "alice.1", b"new")

        assert mock_run.call_count == 2
        for call in mock_run.call_args_list:
            cmd = call[0][0]
            assert cmd[1] == "add-generic-password"
            assert "-U" in cmd
            assert "delete-generic-password" not in cmd

    def test_set_duplicate_exit_is_store_failure(self, store: KeychainStore) -> None:
        with patch(_RUN, return_value=_completed(45, stderr=b"duplicate item")) as mock_run:
            with pytest.raises(StoreFailure, match="exit 45"):
                store.set("svc", "alice.1", b"new")
        mock_run.assert_called_once()

    def test_set_failure_raises(self, store: KeychainStore) -> None:
        with patch(_RUN, return_value=_completed(51, stderr=b"user interaction not allowed")):
            with pytest.raises(StoreFailure, match="exit 51"):
                store.set("svc", "alice.1", b"x")

    def test_get_decodes_password(self, store: KeychainStore) -> None:
        encoded = base64.b64encode(b"2/3|\x00\xff|").decode()
        stderr = f'password: "{encoded}"\n'.encode()
        with patch(_RUN, return_value=_completed(stderr=stderr)) as mock_run:
            assert store.get("svc", "alice.2") == b"2/3|\x00\xff|"

            cmd = mock_run.call_args[0][0]
            assert "find-generic-password" in cmd
            assert "alice.2" in cmd
            assert "-g" in cmd

    def test_get_not_found_raises_no_entry(self, store: KeychainStore) -> None:
        proc = _completed(44, stderr=b"security: SecKeychainSearchCopyNext: not found\n")
        with patch(_RUN, return_value=proc):
            with pytest.raises(NoEntry):
                store.get("svc", "missing")

    def test_get_other_error_is_store_failure(self, store: KeychainStore) -> None:
        with patch(_RUN, return_value=_completed(36, stderr=b"locked")):
            with pytest.raises(StoreFailure, match="locked"):
                store.get("svc", "alice.1")

    def test_get_non_base64_is_store_failure(self, store: KeychainStore) -> None:
        with patch(_RUN, return_value=_completed(stderr=b'password: "not base64!"\n')):
            with pytest.raises(StoreFailure, match="not base64"):
                store.get("svc", "alice.1")

    def test_delete_calls_security_delete(self, store: KeychainStore) -> None:
        with patch(_RUN, return_value=_completed()) as mock_run:
            store.delete("svc", "alice.1")
            cmd = mock_run.call_args[0][0]
            assert "delete-generic-password" in cmd
            assert "alice.1" in cmd

    def test_delete_not_found_raises_no_entry(self, store: KeychainStore) -> None:
        with patch(_RUN, return_value=_completed(44)):
            with pytest.raises(NoEntry):
                store.delete("svc", "missing")

    def test_missing_cli_is_store_failure(self, store: KeychainStore) -> None:
        with patch(_RUN, side_effect=FileNotFoundError("security")):
            with pytest.raises(StoreFailure, match="cannot run security CLI"):
                store.get("svc", "alice.1")

    def test_explicit_keychain_path_appended(self) -> None:
        store = KeychainStore(keychain_path="/tmp/test.keychain-db")
        with patch(_RUN, return_value=_completed()) as mock_run:
            store.delete("svc", "alice.1")
            assert mock_run.call_args[0][0][-1] == "/tmp/test.keychain-db"


# ---------------------------------------------------------------------------
# Backend selection
# ---------------------------------------------------------------------------

def _settings(**store: object) -> Settings:
    return Settings(store=StoreConfig(**store))


class TestCreateStore:

    def test_memory(self) -> None:
        assert isinstance(create_store(_settings(backend="memory")), MemoryStore)

    def test_file(self, tmp_path: pathlib.Path) -> None:
        store = create_store(
            _settings(backend="file", file_path=str(tmp_path / "c.enc"), passphrase="pw")
        )
        assert isinstance(store, EncryptedFileStore)

    def test_keychain(self) -> None:
        assert isinstance(create_store(_settings(backend="keychain")), KeychainStore)

    def test_backend_name_is_case_insensitive(self) -> None:
        assert isinstance(create_store(_settings(backend="Memory")), MemoryStore)

    def test_auto_on_macos(self) -> None:
        with patch("chunked_keyring.secrets.sys.platform", "darwin"):
            assert isinstance(create_store(_settings(backend="auto")), KeychainStore)

    def test_auto_elsewhere(self, tmp_path: pathlib.Path) -> None:
        with patch("chunked_keyring.secrets.sys.platform", "linux"):
            store = create_store(
                _settings(backend="auto", file_path=str(tmp_path / "c.enc"))
            )
        assert isinstance(store, EncryptedFileStore)

    def test_default_file_path_ignores_working_directory(
        self, tmp_path: pathlib.Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        home = tmp_path / "home"
        monkeypatch.setenv("HOME", str(home))
        monkeypatch.setenv("USERPROFILE", str(home))
        monkeypatch.setenv("CHUNKED_KEYRING_STORE__BACKEND", "file")

        paths = []
        for cwd in (tmp_path / "one", tmp_path / "two"):
            cwd.mkdir()
            monkeypatch.chdir(cwd)
            store = create_store(load_settings())
            assert isinstance(store, EncryptedFileStore)
            paths.append(store.path)

        assert paths[0] == paths[1]
        assert paths[0].is_absolute()
        assert paths[0] == home / ".chunked-keyring" / "credentials.enc"

    def test_file_path_expands_user(
        self, tmp_path: pathlib.Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("HOME", str(tmp_path))
        monkeypatch.setenv("USERPROFILE", str(tmp_path))
        store = create_store(_settings(backend="file", file_path="~/vault/c.enc"))
        assert store.path == tmp_path / "vault" / "c.enc"

    def test_unknown_backend(self) -> None:
        with pytest.raises(InvalidArgument, match="unknown store backend"):
            create_store(_settings(backend="floppy"))


class TestDefaultStore:

    def test_built_from_settings_and_cached(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CHUNKED_KEYRING_STORE__BACKEND", "memory")
        first = get_default_store()
        assert isinstance(first, MemoryStore)
        assert get_default_store() is first

    def test_override(self) -> None:
        store = MemoryStore()
        set_default_store(store)
        assert get_default_store() is store
