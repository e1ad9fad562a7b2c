"""
RecipeBox Backend - Startup Helpers
=====================================

What:  Waits for the store to accept connections and loads the seed file.
Why:   In docker-compose the API container often starts before PostgreSQL is
       ready; failing on the first refused connection would crash-loop it.
How:   Tenacity retry with exponential backoff + jitter around a store ping,
       then a one-time bulk insert of the seed documents into an empty store.
When:  Called from the lifespan, before the server accepts requests.
"""

import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import List

from pydantic import TypeAdapter
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from app.config import settings
from app.exceptions import StoreError
from app.schemas.recipe import Recipe, RecipeSeed
from app.services.recipe_repository import RecipeRepository
from app.services.store import RecipeStore

logger = logging.getLogger(__name__)

_seed_adapter = TypeAdapter(List[RecipeSeed])


@retry(
    retry=retry_if_exception_type(StoreError),
    stop=stop_after_attempt(settings.startup_max_attempts),
    # attempt 1 → ~1s, attempt 2 → ~2s, attempt 3 → ~4s (+ up to 1s jitter)
    wait=wait_exponential_jitter(
        initial=settings.startup_min_wait,
        max=settings.startup_max_wait,
        jitter=1,
    ),
    before_sleep=before_sleep_log(logger, logging.WARNING),
    reraise=True,
)
async def wait_for_store(store: RecipeStore) -> None:
    """
    Block until the store answers a ping.

    Raises:
        StoreError: Still unreachable after STARTUP_MAX_ATTEMPTS attempts.
    """
    if not await store.ping():
        raise StoreError(message="Recipe store is not reachable yet")
    logger.info("Recipe store reachable")


def load_seed_file(path: Path) -> List[Recipe]:
    """
    Parse a seed file (JSON array of recipe documents) into recipes.

    Documents without `id` get a new UUID4 and documents without
    `publishedAt` get the load time. Naive timestamps are taken as UTC.

    Raises:
        pydantic.ValidationError: The file is not a valid array of recipes.
    """
    documents = _seed_adapter.validate_json(path.read_bytes())
    now = datetime.now(timezone.utc)

    recipes = []
    for doc in documents:
        published_at = doc.published_at or now
        if published_at.tzinfo is None:
            published_at = published_at.replace(tzinfo=timezone.utc)
        recipes.append(
            Recipe(
                id=doc.id or uuid.uuid4(),
                name=doc.name,
                tags=doc.tags,
                ingredients=doc.ingredients,
                instructions=doc.instructions,
                published_at=published_at.astimezone(timezone.utc),
            )
        )
    return recipes


async def seed_store(repository: RecipeRepository, path: Path) -> int:
    """
    Insert the seed file's recipes when the store is empty.

    A non-empty store is left alone, so restarting the service never
    duplicates the seed. The list snapshot is invalidated after inserting.

    Returns:
        Number of inserted recipes.
    """
    if not path.is_file():
        logger.warning("Seed file %s not found, skipping seed", path)
        return 0

    existing = await repository.store.count()
    if existing:
        logger.info("Store already holds %d recipes, skipping seed", existing)
        return 0

    recipes = load_seed_file(path)
    inserted = await repository.store.insert_many(recipes)
    await repository.invalidate()
    logger.info("Inserted %d seed recipes from %s", inserted, path)
    return inserted
