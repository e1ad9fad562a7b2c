"""
RecipeBox Backend - SQL Recipe Store
======================================

What:  RecipeStore implementation on async SQLAlchemy (asyncpg in production,
       aiosqlite in tests).
Why:   Persists recipe documents in the relational database the rest of the
       stack already manages (engine, pool, Alembic migrations).
How:   Each operation opens its own session and transaction from the session
       factory. One document per transaction is the only atomicity offered;
       there are no cross-document transactions.
Who:   Constructed in the lifespan and handed to RecipeRepository.

Error translation:
    SQLAlchemy and socket errors are wrapped in StoreError here, at the
    adapter boundary. Nothing above this module sees a driver exception.
"""

import logging
import uuid
from contextlib import contextmanager
from datetime import timezone
from typing import Any, Dict, Iterator, List, Optional

from sqlalchemy import func, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.exceptions import StoreError
from app.models.recipe import RecipeRow, RecipeTagRow
from app.schemas.recipe import Recipe
from app.services.store import RecipeStore

logger = logging.getLogger(__name__)

# OSError covers connection refusals raised by the driver before SQLAlchemy wraps them
_STORE_ERRORS = (SQLAlchemyError, OSError)


@contextmanager
def _translate_errors(operation: str, **context: Any) -> Iterator[None]:
    try:
        yield
    except _STORE_ERRORS as e:
        logger.error("Store %s failed: %s", operation, str(e), exc_info=True)
        raise StoreError(
            context={"operation": operation, "error_type": type(e).__name__, **context},
        ) from e


class SQLRecipeStore(RecipeStore):
    """
    Recipe documents in the `recipes` / `recipe_tags` tables.

    Query plans:
        find():          SELECT * FROM recipes (+ SELECT ... IN for tags)
        find(tag=...):   EXISTS subquery on recipe_tags.folded (indexed)
        find_by_id():    primary key lookup
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def find(self, tag: Optional[str] = None) -> List[Recipe]:
        query = select(RecipeRow)
        if tag is not None:
            query = query.where(RecipeRow.tags.any(RecipeTagRow.folded == tag.casefold()))

        with _translate_errors("find", tag=tag):
            async with self._session_factory() as session:
                result = await session.execute(query)
                return [self._to_recipe(row) for row in result.scalars().all()]

    async def find_by_id(self, recipe_id: uuid.UUID) -> Optional[Recipe]:
        with _translate_errors("find_by_id", recipe_id=str(recipe_id)):
            async with self._session_factory() as session:
                row = await session.get(RecipeRow, recipe_id)
                return self._to_recipe(row) if row is not None else None

    async def insert_one(self, recipe: Recipe) -> uuid.UUID:
        with _translate_errors("insert_one", recipe_id=str(recipe.id)):
            async with self._session_factory() as session, session.begin():
                session.add(self._to_row(recipe))
        return recipe.id

    async def insert_many(self, recipes: List[Recipe]) -> int:
        if not recipes:
            return 0
        with _translate_errors("insert_many", count=len(recipes)):
            async with self._session_factory() as session, session.begin():
                session.add_all([self._to_row(recipe) for recipe in recipes])
        return len(recipes)

    async def update_one(self, recipe_id: uuid.UUID, fields: Dict[str, Any]) -> int:
        with _translate_errors("update_one", recipe_id=str(recipe_id)):
            async with self._session_factory() as session, session.begin():
                row = await session.get(RecipeRow, recipe_id)
                if row is None:
                    return 0

                if "name" in fields:
                    row.name = fields["name"]
                if "tags" in fields:
                    # delete-orphan removes the previous tag rows
                    row.tags = RecipeTagRow.from_names(list(fields["tags"]))
                if "ingredients" in fields:
                    row.ingredients = list(fields["ingredients"])
                if "instructions" in fields:
                    row.instructions = list(fields["instructions"])
                return 1

    async def delete_one(self, recipe_id: uuid.UUID) -> int:
        with _translate_errors("delete_one", recipe_id=str(recipe_id)):
            async with self._session_factory() as session, session.begin():
                row = await session.get(RecipeRow, recipe_id)
                if row is None:
                    return 0
                await session.delete(row)
                return 1

    async def count(self) -> int:
        with _translate_errors("count"):
            async with self._session_factory() as session:
                result = await session.execute(select(func.count()).select_from(RecipeRow))
                return result.scalar() or 0

    async def ping(self) -> bool:
        try:
            async with self._session_factory() as session:
                await session.execute(text("SELECT 1"))
            return True
        except _STORE_ERRORS as e:
            logger.warning("Store ping failed: %s", str(e))
            return False

    # ── Row ↔ Schema Conversion ───────────────────────────────────────────

    @staticmethod
    def _to_row(recipe: Recipe) -> RecipeRow:
        return RecipeRow(
            id=recipe.id,
            name=recipe.name,
            ingredients=list(recipe.ingredients),
            instructions=list(recipe.instructions),
            published_at=recipe.published_at,
            tags=RecipeTagRow.from_names(list(recipe.tags)),
        )

    @staticmethod
    def _to_recipe(row: RecipeRow) -> Recipe:
        published_at = row.published_at
        # SQLite drops the offset on round-trip; values are always stored as UTC
        if published_at.tzinfo is None:
            published_at = published_at.replace(tzinfo=timezone.utc)
        return Recipe(
            id=row.id,
            name=row.name,
            tags=[tag.name for tag in row.tags],
            ingredients=list(row.ingredients or []),
            instructions=list(row.instructions or []),
            published_at=published_at,
        )
