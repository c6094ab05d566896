"""
vault-sync

Import secrets from a declarative YAML file into HashiCorp Vault, or
export Vault paths into such a file.
"""

__version__ = "0.1.0"

from .config import Record, RecordSet, RunConfig, State
from .core import Exporter, Importer

__all__ = ["Record", "RecordSet", "RunConfig", "State", "Exporter", "Importer"]
