from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, TypeVar

from .errors import FormatError, StorageError
from .interfaces import DocumentStore
from .json_store import atomic_write_json, read_json
from .locks import GLOBAL_PATH_LOCKS

logger = logging.getLogger(__name__)

D = TypeVar("D")
R = TypeVar("R")


class _DiskJsonStore(DocumentStore[D]):
    """
    Stores a single JSON document on disk at a fixed path.

    - Always returns a document of the expected shape (the empty document on missing,
      unreadable or invalid JSON).
    - Writes atomically; a failed write is logged and reported as False.
    - update() holds the per-path lock for the whole read-modify-write cycle.
    """

    shape: type = dict

    def __init__(self, path: Path):
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def empty(self) -> D:
        return self.shape()

    def load(self) -> D:
        lock = GLOBAL_PATH_LOCKS.lock_for(self._path)
        with lock:
            try:
                raw = read_json(self._path)
            except (StorageError, FormatError) as e:
                logger.warning("DOCUMENT LOAD: %s; using empty document", e)
                return self.empty()
            if raw is None:
                return self.empty()
            if not isinstance(raw, self.shape):
                logger.warning(
                    "DOCUMENT LOAD: %s holds %s, expected %s; using empty document",
                    self._path,
                    type(raw).__name__,
                    self.shape.__name__,
                )
                return self.empty()
            return raw

    def save(self, doc: D) -> bool:
        lock = GLOBAL_PATH_LOCKS.lock_for(self._path)
        with lock:
            try:
                atomic_write_json(self._path, doc)
            except StorageError as e:
                logger.warning("DOCUMENT SAVE: %s", e)
                return False
            return True

    def ensure(self) -> bool:
        lock = GLOBAL_PATH_LOCKS.lock_for(self._path)
        with lock:
            if self._path.exists():
                return True
            logger.info("DOCUMENT INIT: creating %s", self._path)
            return self.save(self.empty())

    def update(self, fn: Callable[[D], tuple[D | None, R]]) -> tuple[R, bool]:
        lock = GLOBAL_PATH_LOCKS.lock_for(self._path)
        with lock:
            new_doc, result = fn(self.load())
            if new_doc is None:
                return result, True
            return result, self.save(new_doc)


class DiskJsonDocumentStore(_DiskJsonStore[dict[str, Any]]):
    """JSON object document; the empty document is {}."""

    shape = dict


class DiskJsonListStore(_DiskJsonStore[list[Any]]):
    """JSON array document; the empty document is []."""

    shape = list
