from __future__ import annotations

from .errors import FormatError, StorageError, StoreError, UpstreamError
from .favorites import DiskFavoritesRepository, FavoritesRepository
from .recipe_cache import CacheEntry, DiskRecipeCacheRepository, RecipeCacheRepository, cache_key
from .repositories import (
    AsyncDiskFavoritesRepository,
    AsyncDiskRecipeCache,
    AsyncFavoritesRepository,
    AsyncRecipeCache,
    FetchOutcome,
)

__all__ = [
    "StoreError",
    "StorageError",
    "FormatError",
    "UpstreamError",
    "CacheEntry",
    "cache_key",
    "RecipeCacheRepository",
    "DiskRecipeCacheRepository",
    "FavoritesRepository",
    "DiskFavoritesRepository",
    "AsyncRecipeCache",
    "AsyncDiskRecipeCache",
    "AsyncFavoritesRepository",
    "AsyncDiskFavoritesRepository",
    "FetchOutcome",
]
