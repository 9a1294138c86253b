"""Shared test fixtures for chunked-keyring tests."""

import os
import pathlib

import pytest

from chunked_keyring.secrets import MemoryStore, set_default_store

REPO_ROOT = pathlib.Path(__file__).resolve().parents[1]


@pytest.fixture
def repo_root() -> pathlib.Path:
    return REPO_ROOT


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch: pytest.MonkeyPatch):
    """Drop CHUNKED_KEYRING_* overrides and reset the default store."""
    for key in list(os.environ):
        if key.startswith("CHUNKED_KEYRING_"):
            monkeypatch.delenv(key)
    set_default_store(None)
    yield
    set_default_store(None)


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()
