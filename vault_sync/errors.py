"""Exception types raised by vault-sync."""

from typing import Optional


class VaultSyncError(Exception):
    """Base class for all vault-sync errors."""


class ConfigError(VaultSyncError):
    """Missing or contradictory startup options, or missing credentials."""


class TemplateError(VaultSyncError):
    """The input file could not be rendered as a template."""


class FormatError(VaultSyncError):
    """The input file is not a valid key file."""


class BackendError(VaultSyncError):
    """A read, list, write or delete against the backend failed."""

    def __init__(self, message: str, path: Optional[str] = None, operation: Optional[str] = None):
        super().__init__(message)
        self.path = path
        self.operation = operation
