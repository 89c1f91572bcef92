from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Protocol

from .disk_store import DiskJsonListStore

logger = logging.getLogger(__name__)

DEFAULT_ID_FIELD = "idMeal"


class FavoritesRepository(Protocol):
    def initialize(self) -> bool:
        ...

    def list_favorites(self) -> list[dict[str, Any]]:
        ...

    def add(self, record: Mapping[str, Any]) -> bool:
        ...

    def remove(self, record_id: str) -> bool:
        ...

    def contains(self, record_id: str) -> bool:
        ...

    def find_by_id(self, record_id: str) -> dict[str, Any] | None:
        ...


class DiskFavoritesRepository(FavoritesRepository):
    """
    Ordered, uniquely-keyed list of favorite recipes stored as one JSON array
    (data/favorites.json by default):
      [ { "idMeal": "52772", "strMeal": "Teriyaki Chicken", ... }, ... ]

    Records are opaque apart from the identifier field. Ids compare as strings.
    Every mutation is a single locked read-modify-write, so add/remove are idempotent
    even when issued concurrently.
    """

    def __init__(self, path: Path, *, id_field: str = DEFAULT_ID_FIELD):
        if not id_field:
            raise ValueError("id_field is required")
        self._store = DiskJsonListStore(path)
        self._id_field = id_field

    @property
    def path(self) -> Path:
        return self._store.path

    @property
    def id_field(self) -> str:
        return self._id_field

    def record_id(self, record: Mapping[str, Any]) -> str:
        rid = record.get(self._id_field) if isinstance(record, Mapping) else None
        if rid is None or isinstance(rid, (dict, list, bool)) or str(rid).strip() == "":
            raise ValueError(f"Favorite record needs a non-empty {self._id_field!r} field")
        return str(rid)

    def _records(self, doc: list[Any]) -> list[dict[str, Any]]:
        """Drop entries that are not records or repeat an earlier id."""
        seen: set[str] = set()
        out: list[dict[str, Any]] = []
        for item in doc:
            if not isinstance(item, dict):
                continue
            try:
                rid = self.record_id(item)
            except ValueError:
                continue
            if rid in seen:
                continue
            seen.add(rid)
            out.append(item)
        if len(out) != len(doc):
            logger.warning("FAVORITES: skipped %d invalid or duplicate records in %s", len(doc) - len(out), self.path)
        return out

    def _index_of(self, records: list[dict[str, Any]], record_id: str) -> int | None:
        for i, rec in enumerate(records):
            if str(rec.get(self._id_field)) == record_id:
                return i
        return None

    def initialize(self) -> bool:
        return self._store.ensure()

    def list_favorites(self) -> list[dict[str, Any]]:
        return self._records(self._store.load())

    def add(self, record: Mapping[str, Any]) -> bool:
        rid = self.record_id(record)
        item = dict(record)

        def _apply(doc: list[Any]) -> tuple[list[dict[str, Any]] | None, bool]:
            records = self._records(doc)
            if self._index_of(records, rid) is not None:
                return None, False
            records.append(item)
            return records, True

        added, saved = self._store.update(_apply)
        if not saved:
            logger.warning("FAVORITES ADD: failed to persist %s", rid)
            return False
        return added

    def remove(self, record_id: str) -> bool:
        rid = str(record_id)

        def _apply(doc: list[Any]) -> tuple[list[dict[str, Any]] | None, bool]:
            records = self._records(doc)
            idx = self._index_of(records, rid)
            if idx is None:
                return None, False
            del records[idx]
            return records, True

        removed, saved = self._store.update(_apply)
        if not saved:
            logger.warning("FAVORITES REMOVE: failed to persist %s", rid)
            return False
        return removed

    def contains(self, record_id: str) -> bool:
        return self.find_by_id(record_id) is not None

    def find_by_id(self, record_id: str) -> dict[str, Any] | None:
        records = self.list_favorites()
        idx = self._index_of(records, str(record_id))
        return None if idx is None else records[idx]
