"""Shared fixtures: an in-memory backend standing in for Vault."""

from typing import Any, Dict, List, Optional, Set, Tuple

import pytest

from vault_sync.backend import SecretBackend
from vault_sync.errors import BackendError


class FakeBackend(SecretBackend):
    """
    Backend holding a fixed tree.

    ``listings`` maps directory paths (ending in '/') to child names in the
    order they should be returned; ``secrets`` maps leaf paths to data.
    Paths in ``fail_on`` raise BackendError for any operation.
    """

    def __init__(
        self,
        listings: Optional[Dict[str, List[str]]] = None,
        secrets: Optional[Dict[str, Dict[str, Any]]] = None,
        fail_on: Optional[Set[str]] = None,
    ):
        self.listings = listings or {}
        self.secrets = secrets or {}
        self.fail_on = fail_on or set()
        self.calls: List[Tuple[str, str, Any]] = []

    def _check(self, operation: str, path: str) -> None:
        if path in self.fail_on:
            raise BackendError(f"Error during {operation} of {path}: boom", path, operation)

    def read(self, path):
        self.calls.append(("read", path, None))
        self._check("read", path)
        return self.secrets.get(path)

    def list(self, path):
        self.calls.append(("list", path, None))
        self._check("list", path)
        if path not in self.listings:
            return None
        return {"keys": list(self.listings[path])}

    def write(self, path, data):
        self.calls.append(("write", path, data))
        self._check("write", path)
        self.secrets[path] = data

    def delete(self, path):
        self.calls.append(("delete", path, None))
        self._check("delete", path)
        self.secrets.pop(path, None)


@pytest.fixture
def tree_backend():
    """Backend with secret/a, secret/b/c and kv/x."""
    return FakeBackend(
        listings={
            "secret/": ["a", "b/"],
            "secret/b/": ["c"],
            "kv/": ["x"],
        },
        secrets={
            "secret/a": {"user": "admin", "pass": "hunter2"},
            "secret/b/c": {"token": "abc"},
            "kv/x": {"n": 1},
        },
    )


@pytest.fixture
def empty_backend():
    return FakeBackend()


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """No Vault variables and a home directory without a token file."""
    monkeypatch.delenv("VAULT_TOKEN", raising=False)
    monkeypatch.delenv("VAULT_ADDR", raising=False)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    return tmp_path


@pytest.fixture
def make_backend():
    """Factory for FakeBackend with a custom tree."""
    return FakeBackend
