from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from dotenv import load_dotenv

from persistence.repositories import AsyncDiskFavoritesRepository, AsyncDiskRecipeCache
from settings import Settings, get_settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RecipeStores:
    cache: AsyncDiskRecipeCache
    favorites: AsyncDiskFavoritesRepository
    settings: Settings


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_stores(settings: Settings | None = None) -> RecipeStores:
    if settings is None:
        load_dotenv("local.env")
        settings = get_settings()
        configure_logging(settings)

    return RecipeStores(
        cache=AsyncDiskRecipeCache(settings.cache_file, ttl=settings.cache_ttl),
        favorites=AsyncDiskFavoritesRepository(settings.favorites_file, id_field=settings.favorites_id_field),
        settings=settings,
    )


async def open_stores(settings: Settings | None = None) -> RecipeStores:
    """
    Build both stores, materialize their documents and drop expired cache entries.

    This is the startup sequence of the recipe lookup tool; call it once before the menu loop.
    """
    stores = create_stores(settings)
    cache_ok, favorites_ok = await asyncio.gather(stores.cache.initialize(), stores.favorites.initialize())
    if not cache_ok:
        logger.warning("STARTUP: cache document %s could not be created", stores.cache.path)
    if not favorites_ok:
        logger.warning("STARTUP: favorites document %s could not be created", stores.favorites.path)

    if stores.settings.sweep_on_startup:
        removed = await stores.cache.sweep_expired()
        logger.info("STARTUP: swept %d expired cache entries", removed)

    return stores
