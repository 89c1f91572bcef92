from __future__ import annotations

import asyncio
import functools
import inspect
import logging
import time
from collections.abc import Mapping
from dataclasses import dataclass, replace
from datetime import timedelta
from pathlib import Path
from typing import Any, Awaitable, Callable, Literal, Protocol, Union

from .errors import UpstreamError
from .favorites import DEFAULT_ID_FIELD, DiskFavoritesRepository
from .recipe_cache import DEFAULT_TTL, CacheEntry, DiskRecipeCacheRepository

logger = logging.getLogger(__name__)

FetchFn = Callable[[], Union[Awaitable[Any], Any]]


@dataclass(frozen=True)
class FetchOutcome:
    """
    Result of get_or_fetch_outcome.

    source: "cache" when a fresh entry answered the call, "fetch" when fetch_fn ran.
    shared: the caller joined a lookup another caller had already started.
    persisted: False when a fetched payload could not be written to the cache.
    """

    payload: Any
    source: Literal["cache", "fetch"]
    shared: bool = False
    persisted: bool = True

    @property
    def hit(self) -> bool:
        return self.source == "cache"


class AsyncRecipeCache(Protocol):
    async def initialize(self) -> bool: ...

    async def get(self, key: str) -> Any | None: ...
    async def put(self, key: str, payload: Any) -> bool: ...
    async def lookup(self, key: str) -> CacheEntry | None: ...

    async def get_or_fetch(self, key: str, fetch_fn: FetchFn, *, force_refresh: bool = False) -> Any: ...
    async def get_or_fetch_outcome(
        self, key: str, fetch_fn: FetchFn, *, force_refresh: bool = False
    ) -> FetchOutcome: ...

    async def sweep_expired(self) -> int: ...
    async def reset(self) -> bool: ...


class AsyncFavoritesRepository(Protocol):
    async def initialize(self) -> bool: ...

    async def list_favorites(self) -> list[dict[str, Any]]: ...
    async def add(self, record: Mapping[str, Any]) -> bool: ...
    async def remove(self, record_id: str) -> bool: ...
    async def contains(self, record_id: str) -> bool: ...
    async def find_by_id(self, record_id: str) -> dict[str, Any] | None: ...


class AsyncDiskRecipeCache(AsyncRecipeCache):
    """
    Async TTL cache over DiskRecipeCacheRepository.

    File I/O runs in worker threads via asyncio.to_thread. get_or_fetch is single-flight:
    concurrent calls for the same key share one lookup, so fetch_fn runs at most once and
    every caller sees the same payload or the same UpstreamError. The fetch itself runs
    outside the document lock; only the final put takes it.
    """

    def __init__(
        self,
        path: Path,
        *,
        ttl: timedelta = DEFAULT_TTL,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._repo = DiskRecipeCacheRepository(path, ttl=ttl, clock=clock)
        self._inflight: dict[str, asyncio.Task[FetchOutcome]] = {}

    @property
    def path(self) -> Path:
        return self._repo.path

    @property
    def ttl(self) -> timedelta:
        return self._repo.ttl

    def in_flight(self, key: str) -> bool:
        return key in self._inflight

    async def initialize(self) -> bool:
        return await asyncio.to_thread(self._repo.initialize)

    async def get(self, key: str) -> Any | None:
        return await asyncio.to_thread(self._repo.get, key)

    async def put(self, key: str, payload: Any) -> bool:
        return await asyncio.to_thread(self._repo.put, key, payload)

    async def lookup(self, key: str) -> CacheEntry | None:
        return await asyncio.to_thread(self._repo.lookup, key)

    async def sweep_expired(self) -> int:
        return await asyncio.to_thread(self._repo.sweep_expired)

    async def reset(self) -> bool:
        return await asyncio.to_thread(self._repo.reset)

    async def get_or_fetch(self, key: str, fetch_fn: FetchFn, *, force_refresh: bool = False) -> Any:
        outcome = await self.get_or_fetch_outcome(key, fetch_fn, force_refresh=force_refresh)
        return outcome.payload

    async def get_or_fetch_outcome(
        self, key: str, fetch_fn: FetchFn, *, force_refresh: bool = False
    ) -> FetchOutcome:
        while True:
            flight = self._inflight.get(key)
            if flight is None:
                break
            logger.debug("CACHE FLIGHT: joining in-flight lookup for %r", key)
            outcome = await asyncio.shield(flight)
            # A forced refresh cannot be satisfied by a flight that was answered from the cache.
            if force_refresh and outcome.hit:
                continue
            return replace(outcome, shared=True)

        # No await between the check above and registering the flight. The flight is a task
        # owned by the cache, so a cancelled caller only stops waiting for it.
        flight = asyncio.get_running_loop().create_task(self._resolve(key, fetch_fn, force_refresh))
        self._inflight[key] = flight
        flight.add_done_callback(functools.partial(self._flight_done, key))
        return await asyncio.shield(flight)

    def _flight_done(self, key: str, flight: asyncio.Task[FetchOutcome]) -> None:
        if self._inflight.get(key) is flight:
            del self._inflight[key]
        if not flight.cancelled():
            # Mark retrieved so a failure nobody waited for is not reported as a leak.
            flight.exception()

    async def _resolve(self, key: str, fetch_fn: FetchFn, force_refresh: bool) -> FetchOutcome:
        if not force_refresh:
            entry = await asyncio.to_thread(self._repo.lookup, key)
            if entry is not None and self._repo.is_fresh(entry):
                logger.debug("CACHE HIT: %r", key)
                return FetchOutcome(payload=entry.payload, source="cache")
            logger.debug("CACHE MISS: %r (%s)", key, "expired" if entry is not None else "absent")
        else:
            logger.debug("CACHE REFRESH: %r", key)

        try:
            if inspect.iscoroutinefunction(fetch_fn):
                payload = await fetch_fn()
            else:
                # Blocking fetches run off the event loop so other keys keep moving.
                payload = await asyncio.to_thread(fetch_fn)
                if inspect.isawaitable(payload):
                    payload = await payload
        except Exception as e:
            logger.warning("CACHE FETCH: upstream failed for %r: %r", key, e)
            raise UpstreamError(key) from e

        persisted = await asyncio.to_thread(self._repo.put, key, payload)
        return FetchOutcome(payload=payload, source="fetch", persisted=persisted)


class AsyncDiskFavoritesRepository(AsyncFavoritesRepository):
    """
    Async wrapper around the disk-backed favorites repository.
    Uses asyncio.to_thread to avoid blocking the event loop on file I/O.
    """

    def __init__(self, path: Path, *, id_field: str = DEFAULT_ID_FIELD) -> None:
        self._repo = DiskFavoritesRepository(path, id_field=id_field)

    @property
    def path(self) -> Path:
        return self._repo.path

    @property
    def id_field(self) -> str:
        return self._repo.id_field

    async def initialize(self) -> bool:
        return await asyncio.to_thread(self._repo.initialize)

    async def list_favorites(self) -> list[dict[str, Any]]:
        return await asyncio.to_thread(self._repo.list_favorites)

    async def add(self, record: Mapping[str, Any]) -> bool:
        return await asyncio.to_thread(self._repo.add, record)

    async def remove(self, record_id: str) -> bool:
        return await asyncio.to_thread(self._repo.remove, record_id)

    async def contains(self, record_id: str) -> bool:
        return await asyncio.to_thread(self._repo.contains, record_id)

    async def find_by_id(self, record_id: str) -> dict[str, Any] | None:
        return await asyncio.to_thread(self._repo.find_by_id, record_id)
