from __future__ import annotations

import logging
import time
from datetime import timedelta
from pathlib import Path
from typing import Any, Callable, Mapping, Protocol

from pydantic import BaseModel, ConfigDict, Field, StrictInt, ValidationError

from .disk_store import DiskJsonDocumentStore

logger = logging.getLogger(__name__)

DEFAULT_TTL = timedelta(hours=24)

CACHE_KEY_KINDS = ("search", "recipe", "letters", "ingredient")


def cache_key(kind: str, value: str) -> str:
    """
    Build the cache key the recipe lookup tool uses for an upstream call:
    search_<query>, recipe_<id>, letters_<sorted letters>, ingredient_<name>.
    """
    if kind not in CACHE_KEY_KINDS:
        raise ValueError(f"Unknown cache key kind: {kind!r}")
    v = value.strip()
    if kind == "letters":
        v = "".join(sorted(set(v.lower().replace(",", "").replace(" ", ""))))
    elif kind != "recipe":
        v = v.lower()
    return f"{kind}_{v}"


class CacheEntry(BaseModel):
    """
    One cached upstream result. On disk the entry is stored under its key as:
      { "timestamp": <epoch ms>, "data": <payload> }
    """

    model_config = ConfigDict(populate_by_name=True)

    key: str = Field(exclude=True)
    stored_at: StrictInt = Field(alias="timestamp")
    payload: Any = Field(alias="data")

    @classmethod
    def from_disk_doc(cls, key: str, doc: Mapping[str, Any]) -> "CacheEntry":
        return cls.model_validate({**doc, "key": key})

    def to_disk_doc(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)

    def age_ms(self, now_ms: int) -> int:
        return now_ms - self.stored_at


def _parse_entry(key: str, raw: Any) -> CacheEntry | None:
    if not isinstance(raw, dict):
        return None
    try:
        return CacheEntry.from_disk_doc(key, raw)
    except ValidationError:
        logger.debug("CACHE: ignoring malformed entry %r", key)
        return None


class RecipeCacheRepository(Protocol):
    def initialize(self) -> bool:
        ...

    def lookup(self, key: str) -> CacheEntry | None:
        ...

    def get(self, key: str) -> Any | None:
        ...

    def put(self, key: str, payload: Any) -> bool:
        ...

    def sweep_expired(self) -> int:
        ...

    def reset(self) -> bool:
        ...


class DiskRecipeCacheRepository(RecipeCacheRepository):
    """
    TTL cache backed by one JSON document (data/cache.json by default).

    Freshness is evaluated lazily: an entry is fresh iff now - stored_at < ttl.
    Stale entries stay on disk until sweep_expired() or an overwrite removes them.
    """

    def __init__(
        self,
        path: Path,
        *,
        ttl: timedelta = DEFAULT_TTL,
        clock: Callable[[], float] = time.time,
    ):
        ttl_ms = int(ttl.total_seconds() * 1000)
        if ttl_ms <= 0:
            raise ValueError("Cache ttl must be at least one millisecond")
        self._store = DiskJsonDocumentStore(path)
        self._ttl = ttl
        self._ttl_ms = ttl_ms
        self._clock = clock

    @property
    def path(self) -> Path:
        return self._store.path

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    def now_ms(self) -> int:
        return int(self._clock() * 1000)

    def is_fresh(self, entry: CacheEntry, now_ms: int | None = None) -> bool:
        now = self.now_ms() if now_ms is None else now_ms
        return entry.age_ms(now) < self._ttl_ms

    def initialize(self) -> bool:
        return self._store.ensure()

    def lookup(self, key: str) -> CacheEntry | None:
        """Return the stored entry for key, fresh or not."""
        return _parse_entry(key, self._store.load().get(key))

    def entries(self) -> list[CacheEntry]:
        doc = self._store.load()
        parsed = (_parse_entry(k, v) for k, v in doc.items())
        return [e for e in parsed if e is not None]

    def get(self, key: str) -> Any | None:
        entry = self.lookup(key)
        if entry is None or not self.is_fresh(entry):
            return None
        return entry.payload

    def put(self, key: str, payload: Any) -> bool:
        entry = CacheEntry(key=key, stored_at=self.now_ms(), payload=payload)

        def _apply(doc: dict[str, Any]) -> tuple[dict[str, Any], None]:
            doc[key] = entry.to_disk_doc()
            return doc, None

        _, saved = self._store.update(_apply)
        if not saved:
            logger.warning("CACHE PUT: failed to persist %r", key)
        return saved

    def sweep_expired(self) -> int:
        now = self.now_ms()

        def _apply(doc: dict[str, Any]) -> tuple[dict[str, Any] | None, int]:
            kept: dict[str, Any] = {}
            for k, raw in doc.items():
                entry = _parse_entry(k, raw)
                # Malformed entries can never be served; they go with the expired ones.
                if entry is None or not self.is_fresh(entry, now):
                    continue
                kept[k] = raw
            removed = len(doc) - len(kept)
            return (kept if removed else None), removed

        removed, saved = self._store.update(_apply)
        if not saved:
            logger.warning("CACHE SWEEP: failed to persist %s", self.path)
            return 0
        if removed:
            logger.info("CACHE SWEEP: removed %d expired entries", removed)
        return removed

    def reset(self) -> bool:
        return self._store.save(self._store.empty())
