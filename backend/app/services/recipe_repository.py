"""
RecipeBox Backend - Recipe Repository (Cache-Aside Core)
==========================================================

What:  Mediates between the document store and the list cache.
Why:   This is the one place where cache and store can diverge, so the whole
       consistency contract lives here and nowhere else.
How:   Cache-aside for the full list, store-only for everything else, and
       delete-on-write invalidation for every successful mutation.
Who:   Constructed once in the lifespan with its store and cache; injected
       into the route handlers through app.dependencies.

Read Paths:
    list_all()   cache → (miss) store → populate cache
    get_by_id()  store only
    search()     store only (unbounded key space, never cached)

Write Paths (create / update / delete):
    ┌────────────┐  ok   ┌──────────────────┐
    │ Store op   │──────▶│ DEL cache key    │──▶ next list_all() rebuilds
    └────────────┘       └──────────────────┘
          │ StoreError / NotFound
          ▼
    raise, cache untouched (nothing changed in the store)

Staleness Window:
    A list read racing a write can repopulate the cache with the pre-write
    snapshot after the write's DEL. The next successful invalidation clears
    it. Two concurrent misses may both write the snapshot; both writes carry
    the same data, so the result is consistent.

Failed Invalidation:
    A DEL that fails leaves the key possibly stale. The repository remembers
    this as a pending invalidation and retries the DEL before its next cache
    read. Until the retry succeeds, list reads bypass the cache.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import ValidationError as SchemaValidationError

from app.exceptions import CacheError, NotFoundError, ValidationError
from app.schemas.recipe import Recipe, RecipeCreate, RecipeListCodec, RecipeUpdate
from app.services.cache import RecipeCache
from app.services.store import RecipeStore

logger = logging.getLogger(__name__)


@dataclass
class CacheStats:
    """Degraded-mode counters, exposed by the health endpoint."""
    hits: int = 0
    misses: int = 0
    degraded_reads: int = 0
    write_failures: int = 0


class RecipeRepository:
    """
    Recipe CRUD and search with a cache-aside list read.

    Args:
        store: Authoritative document store.
        cache: Cache holding the serialized full recipe list.
        cache_key: Key of the list snapshot.
        cache_ttl: Optional expiry (seconds) for the snapshot. None stores it
            until the next invalidation.
    """

    def __init__(
        self,
        store: RecipeStore,
        cache: RecipeCache,
        cache_key: str = "recipes",
        cache_ttl: Optional[int] = None,
    ):
        self.store = store
        self.cache = cache
        self.cache_key = cache_key
        self.cache_ttl = cache_ttl
        self.stats = CacheStats()
        self._pending_invalidation = False

    @property
    def pending_invalidation(self) -> bool:
        return self._pending_invalidation

    # ══════════════════════════════════════════════════════════════════════
    # Reads
    # ══════════════════════════════════════════════════════════════════════

    async def list_all(self) -> List[Recipe]:
        """
        Return every recipe, from the cache snapshot when present.

        Order is the store's native order at the time the snapshot was built.

        Raises:
            StoreError: The store query failed (cache hits never raise).
        """
        if self._pending_invalidation and not await self.invalidate():
            return await self._degraded_read("pending invalidation could not be applied")

        try:
            payload = await self.cache.get(self.cache_key)
        except CacheError as e:
            return await self._degraded_read(e.message)

        if payload is not None:
            try:
                recipes = RecipeListCodec.loads(payload)
            except SchemaValidationError as e:
                # Overwritten by the repopulation below
                logger.warning(
                    "Discarding undecodable snapshot under '%s': %d error(s)",
                    self.cache_key,
                    e.error_count(),
                )
            else:
                self.stats.hits += 1
                logger.debug("Recipe list served from cache (%d items)", len(recipes))
                return recipes

        self.stats.misses += 1
        logger.debug("Recipe list cache miss, querying store")
        recipes = await self.store.find()
        await self._populate(recipes)
        return recipes

    async def get_by_id(self, recipe_id: uuid.UUID) -> Recipe:
        """
        Return one recipe straight from the store.

        Raises:
            NotFoundError: No recipe has this id.
            StoreError: The store query failed.
        """
        recipe = await self.store.find_by_id(recipe_id)
        if recipe is None:
            raise NotFoundError(resource="recipe", resource_id=str(recipe_id))
        return recipe

    async def search(self, tag: str) -> List[Recipe]:
        """
        Recipes whose tags contain `tag` (case-insensitive equality), from the store.

        Raises:
            ValidationError: `tag` is blank.
            StoreError: The store query failed.
        """
        tag = (tag or "").strip()
        if not tag:
            raise ValidationError(message="Query parameter 'tag' must not be blank", field="tag")
        return await self.store.find(tag=tag)

    # ══════════════════════════════════════════════════════════════════════
    # Mutations
    # ══════════════════════════════════════════════════════════════════════

    async def create(self, payload: RecipeCreate) -> Recipe:
        """
        Insert a new recipe with a fresh id and publication time.

        Returns:
            The stored recipe.

        Raises:
            StoreError: The insert failed. The cache is left untouched.
        """
        recipe = Recipe(
            id=uuid.uuid4(),
            name=payload.name,
            tags=list(payload.tags),
            ingredients=list(payload.ingredients),
            instructions=list(payload.instructions),
            published_at=datetime.now(timezone.utc),
        )
        await self.store.insert_one(recipe)
        logger.info("Recipe %s created", recipe.id)

        await self.invalidate()
        return recipe

    async def update(self, recipe_id: uuid.UUID, payload: RecipeUpdate) -> Recipe:
        """
        Overwrite the fields present in `payload`.

        The current document is read before the write and the result is
        built from it, so nothing can fail after the update has committed.

        Returns:
            The recipe with the changed fields applied.

        Raises:
            ValidationError: The payload contains no field to change.
            NotFoundError: No recipe has this id (cache untouched).
            StoreError: The read or the update failed (cache untouched).
        """
        fields = payload.changed_fields()
        if not fields:
            raise ValidationError(
                message="Update must contain at least one of: name, tags, ingredients, instructions",
                context={"recipe_id": str(recipe_id)},
            )

        current = await self.get_by_id(recipe_id)
        matched = await self.store.update_one(recipe_id, fields)
        if matched == 0:
            # Deleted between the read and the write
            raise NotFoundError(resource="recipe", resource_id=str(recipe_id))
        logger.info("Recipe %s updated (%s)", recipe_id, ", ".join(sorted(fields)))

        await self.invalidate()
        return current.model_copy(update=fields)

    async def delete(self, recipe_id: uuid.UUID) -> int:
        """
        Delete one recipe.

        Returns:
            The deleted count.

        Raises:
            NotFoundError: No recipe has this id (cache untouched).
            StoreError: The delete failed (cache untouched).
        """
        deleted = await self.store.delete_one(recipe_id)
        if deleted == 0:
            raise NotFoundError(resource="recipe", resource_id=str(recipe_id))
        logger.info("Recipe %s deleted", recipe_id)

        await self.invalidate()
        return deleted

    # ══════════════════════════════════════════════════════════════════════
    # Cache Maintenance
    # ══════════════════════════════════════════════════════════════════════

    async def invalidate(self) -> bool:
        """
        Delete the list snapshot so the next list read rebuilds it.

        Never raises. A failure is counted and recorded as a pending
        invalidation, retried by the next list_all().

        Returns:
            True if the key is known to be gone.
        """
        try:
            await self.cache.delete(self.cache_key)
        except CacheError as e:
            self.stats.write_failures += 1
            self._pending_invalidation = True
            logger.warning(
                "Cache invalidation of '%s' failed, list reads bypass the cache until it succeeds: %s",
                self.cache_key,
                e.message,
            )
            return False

        if self._pending_invalidation:
            logger.info("Pending invalidation of '%s' applied", self.cache_key)
        self._pending_invalidation = False
        return True

    async def _populate(self, recipes: List[Recipe]) -> None:
        try:
            await self.cache.set(self.cache_key, RecipeListCodec.dumps(recipes), ttl=self.cache_ttl)
        except CacheError as e:
            self.stats.write_failures += 1
            logger.warning("Cache population of '%s' failed: %s", self.cache_key, e.message)

    async def _degraded_read(self, reason: str) -> List[Recipe]:
        self.stats.degraded_reads += 1
        logger.warning("Serving recipe list from store, cache bypassed: %s", reason)
        return await self.store.find()
