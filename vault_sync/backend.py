"""Backend adapters for reading and writing secrets."""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional

import hvac
import requests
from hvac.exceptions import VaultError

from .config import RunConfig
from .errors import BackendError


class SecretBackend(ABC):
    """
    Hierarchical secret store.

    Paths ending in ``/`` are directories that can be listed; other paths
    are leaves holding secret data.
    """

    @abstractmethod
    def read(self, path: str) -> Optional[Dict[str, Any]]:
        """Return the data stored at ``path``, or None if nothing is there."""

    @abstractmethod
    def list(self, path: str) -> Optional[Dict[str, Any]]:
        """Return the listing of ``path`` (child names under ``keys``), or None."""

    @abstractmethod
    def write(self, path: str, data: Dict[str, Any]) -> None:
        """Write ``data`` as the request payload for ``path``."""

    @abstractmethod
    def delete(self, path: str) -> None:
        """Delete whatever is stored at ``path``."""


class VaultBackend(SecretBackend):
    """SecretBackend on top of HashiCorp Vault's logical API."""

    def __init__(self, client: hvac.Client):
        self.client = client

    @classmethod
    def from_config(cls, config: RunConfig) -> "VaultBackend":
        return cls(hvac.Client(url=config.vault_addr, token=config.vault_token))

    def _call(self, operation: str, path: str, func: Callable[[], Any]) -> Any:
        try:
            return func()
        except (VaultError, requests.RequestException) as e:
            raise BackendError(f"Error during {operation} of {path}: {e}", path, operation) from e

    def read(self, path: str) -> Optional[Dict[str, Any]]:
        response = self._call("read", path, lambda: self.client.read(path))
        if not response:
            return None
        return response.get("data")

    def list(self, path: str) -> Optional[Dict[str, Any]]:
        response = self._call("list", path, lambda: self.client.list(path))
        if not response:
            return None
        return response.get("data")

    def write(self, path: str, data: Dict[str, Any]) -> None:
        self._call("write", path, lambda: self.client.write_data(path, data=data))

    def delete(self, path: str) -> None:
        self._call("delete", path, lambda: self.client.delete(path))
