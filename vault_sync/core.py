"""Core import and export logic for vault-sync."""

import logging
import os
from typing import Iterable, List

from .backend import SecretBackend
from .config import Record, RecordSet, RunConfig, State
from .errors import BackendError
from .template import render

logger = logging.getLogger(__name__)

SEPARATOR = "/"


def normalize_root(path: str) -> str:
    """
    Turn a configured export path into a directory path to list.

    Examples:
        '/secret' -> 'secret/'
        'secret/app/' -> 'secret/app/'
    """
    if path.startswith(SEPARATOR):
        path = path[1:]
    if not path.endswith(SEPARATOR):
        path += SEPARATOR
    return path


class Exporter:
    """Walks backend directories and collects every leaf secret."""

    def __init__(self, backend: SecretBackend, ignore_errors: bool = False):
        self.backend = backend
        self.ignore_errors = ignore_errors

    def _fail(self, error: BackendError) -> None:
        if not self.ignore_errors:
            raise error
        logger.warning("%s (ignored)", error)

    def export(self, roots: Iterable[str]) -> RecordSet:
        """
        Collect all secrets below each root, in root order.

        Within a root, records follow the order in which the backend lists
        children, depth first.

        Raises:
            BackendError: On the first backend failure, unless errors are ignored
        """
        records: List[Record] = []
        for root in roots:
            self._walk(normalize_root(root), records)
        return RecordSet(keys=records)

    def _walk(self, path: str, records: List[Record]) -> None:
        if not path.endswith(SEPARATOR):
            self._read_leaf(path, records)
            return

        try:
            listing = self.backend.list(path)
        except BackendError as e:
            self._fail(e)
            return

        if not listing or not listing.get("keys"):
            logger.debug("No keys below '%s'", path)
            return

        logger.debug("Listing '%s': %d keys", path, len(listing["keys"]))
        for child in listing["keys"]:
            self._walk(path + child, records)

    def _read_leaf(self, path: str, records: List[Record]) -> None:
        try:
            data = self.backend.read(path)
        except BackendError as e:
            self._fail(e)
            return

        if data is None:
            self._fail(BackendError(f"Unable to read {path}: no secret found", path, "read"))
            return

        records.append(Record(key=path, values=data))
        logger.debug("Successfully read data from key '%s'", path)


class Importer:
    """Applies records to the backend, one at a time, in order."""

    def __init__(self, backend: SecretBackend, ignore_errors: bool = False):
        self.backend = backend
        self.ignore_errors = ignore_errors

    def apply(self, record_set: RecordSet) -> int:
        """
        Write or delete every record.

        Records applied before a failure stay applied.

        Returns:
            Number of records applied successfully

        Raises:
            BackendError: On the first backend failure, unless errors are ignored
        """
        applied = 0
        for record in record_set.keys:
            try:
                self._apply_record(record)
            except BackendError as e:
                if not self.ignore_errors:
                    raise
                logger.warning("%s (ignored)", e)
                continue
            applied += 1
        return applied

    def _apply_record(self, record: Record) -> None:
        if record.state == State.ABSENT:
            self.backend.delete(record.key)
            logger.debug("Deleted key '%s'", record.key)
            return

        self.backend.write(record.key, {"data": record.values})
        logger.debug("Successfully wrote data to key '%s'", record.key)


def export_to_file(config: RunConfig, backend: SecretBackend) -> int:
    """
    Export all configured paths into ``config.file``.

    The file is only created once the walk has finished, so a failed export
    leaves nothing behind.

    Returns:
        Number of records written
    """
    record_set = Exporter(backend, ignore_errors=config.ignore_errors).export(config.export_paths)
    content = record_set.to_yaml()

    fd = os.open(config.file, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
    with os.fdopen(fd, "w", encoding="utf-8") as f:
        f.write(content)

    logger.info("Exported %d keys to %s", len(record_set.keys), config.file)
    return len(record_set.keys)


def import_from_file(config: RunConfig, backend: SecretBackend) -> int:
    """
    Render, parse and apply ``config.file``.

    Template and format errors are raised before the backend is touched.

    Returns:
        Number of records applied
    """
    raw = config.file.read_bytes()
    record_set = RecordSet.from_yaml(render(raw))

    applied = Importer(backend, ignore_errors=config.ignore_errors).apply(record_set)
    logger.info("Applied %d of %d keys from %s", applied, len(record_set.keys), config.file)
    return applied
