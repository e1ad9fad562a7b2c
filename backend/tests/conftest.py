"""
RecipeBox Backend - Test Configuration (conftest.py)
======================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── sample_recipes: three recipes tagged vegetarian / vegan / vegetarian+gluten-free
    ├── fake_store:     in-memory RecipeStore with call counters and failure injection
    ├── fake_cache:     in-memory RecipeCache with call counters and failure injection
    ├── repository:     RecipeRepository over fake_store + fake_cache
    └── test_client:    HTTPX AsyncClient against the FastAPI app, repository injected

No fixture needs PostgreSQL or Redis. The SQL store tests use aiosqlite.
"""

import os

# Override settings for testing BEFORE any app imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test.db"
os.environ["REDIS_URL"] = "redis://localhost:6379/15"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ.pop("SEED_FILE", None)

import copy
import uuid
from collections import OrderedDict
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from app.exceptions import CacheError, StoreError
from app.schemas.recipe import Recipe
from app.services.cache import RecipeCache
from app.services.recipe_repository import RecipeRepository
from app.services.store import RecipeStore


# ══════════════════════════════════════════════════════════════════════════
# In-Memory Fakes
# ══════════════════════════════════════════════════════════════════════════

class FakeRecipeStore(RecipeStore):
    """
    Dict-backed store preserving insertion order.

    `calls` counts invocations per operation. Adding an operation name to
    `fail_on` makes that operation raise StoreError.
    """

    def __init__(self, recipes: Optional[List[Recipe]] = None):
        self.recipes: "OrderedDict[uuid.UUID, Recipe]" = OrderedDict()
        for recipe in recipes or []:
            self.recipes[recipe.id] = recipe
        self.calls: Dict[str, int] = {}
        self.fail_on: set = set()
        self.reachable = True

    def _enter(self, operation: str) -> None:
        self.calls[operation] = self.calls.get(operation, 0) + 1
        if operation in self.fail_on:
            raise StoreError(context={"operation": operation})

    async def find(self, tag: Optional[str] = None) -> List[Recipe]:
        self._enter("find")
        recipes = list(self.recipes.values())
        if tag is not None:
            folded = tag.casefold()
            recipes = [r for r in recipes if any(t.casefold() == folded for t in r.tags)]
        return [r.model_copy(deep=True) for r in recipes]

    async def find_by_id(self, recipe_id: uuid.UUID) -> Optional[Recipe]:
        self._enter("find_by_id")
        recipe = self.recipes.get(recipe_id)
        return recipe.model_copy(deep=True) if recipe else None

    async def insert_one(self, recipe: Recipe) -> uuid.UUID:
        self._enter("insert_one")
        self.recipes[recipe.id] = recipe.model_copy(deep=True)
        return recipe.id

    async def insert_many(self, recipes: List[Recipe]) -> int:
        self._enter("insert_many")
        for recipe in recipes:
            self.recipes[recipe.id] = recipe.model_copy(deep=True)
        return len(recipes)

    async def update_one(self, recipe_id: uuid.UUID, fields: Dict[str, Any]) -> int:
        self._enter("update_one")
        recipe = self.recipes.get(recipe_id)
        if recipe is None:
            return 0
        self.recipes[recipe_id] = recipe.model_copy(update=copy.deepcopy(fields))
        return 1

    async def delete_one(self, recipe_id: uuid.UUID) -> int:
        self._enter("delete_one")
        return 1 if self.recipes.pop(recipe_id, None) is not None else 0

    async def count(self) -> int:
        self._enter("count")
        return len(self.recipes)

    async def ping(self) -> bool:
        return self.reachable

    def call_count(self, operation: str) -> int:
        return self.calls.get(operation, 0)


class FakeRecipeCache(RecipeCache):
    """
    Dict-backed cache.

    Adding "get", "set" or "delete" to `fail_on` makes that operation raise
    CacheError, the same way RedisRecipeCache reports a backend failure.
    """

    def __init__(self):
        self.data: Dict[str, bytes] = {}
        self.ttls: Dict[str, Optional[int]] = {}
        self.calls: Dict[str, int] = {}
        self.fail_on: set = set()
        self.reachable = True

    def _enter(self, operation: str, key: str) -> None:
        self.calls[operation] = self.calls.get(operation, 0) + 1
        if operation in self.fail_on:
            raise CacheError(message=f"Cache {operation} failed", operation=operation, context={"key": key})

    async def get(self, key: str) -> Optional[bytes]:
        self._enter("get", key)
        return self.data.get(key)

    async def set(self, key: str, value: bytes, ttl: Optional[int] = None) -> None:
        self._enter("set", key)
        self.data[key] = value
        self.ttls[key] = ttl

    async def delete(self, key: str) -> None:
        self._enter("delete", key)
        self.data.pop(key, None)
        self.ttls.pop(key, None)

    async def ping(self) -> bool:
        return self.reachable

    def call_count(self, operation: str) -> int:
        return self.calls.get(operation, 0)


# ══════════════════════════════════════════════════════════════════════════
# Function-Scoped Fixtures (created fresh for each test)
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def sample_recipes() -> List[Recipe]:
    """Three recipes; searching tag=vegetarian must return the first and the third."""
    published = datetime(2024, 3, 2, 10, 15, tzinfo=timezone.utc)
    return [
        Recipe(
            id=uuid.UUID("5f1c2d9e-7a3b-4c8e-9d21-0b6a4e3f8c10"),
            name="Pasta Primavera",
            tags=["vegetarian"],
            ingredients=["300 g penne", "1 zucchini"],
            instructions=["Cook the pasta.", "Saute the vegetables."],
            published_at=published,
        ),
        Recipe(
            id=uuid.UUID("a27e9b41-3c6d-4f02-8e5a-9c1d7b2e4f63"),
            name="Chickpea Curry",
            tags=["vegan"],
            ingredients=["2 cans chickpeas", "400 ml coconut milk"],
            instructions=["Simmer for 15 minutes."],
            published_at=published,
        ),
        Recipe(
            id=uuid.UUID("d8b35e07-1f94-4a6c-b2d8-6e0f4c9a1b75"),
            name="Stuffed Bell Peppers",
            tags=["vegetarian", "gluten-free"],
            ingredients=["4 bell peppers", "200 g cooked rice"],
            instructions=["Fill the peppers.", "Bake for 25 minutes."],
            published_at=published,
        ),
    ]


@pytest.fixture
def fake_store(sample_recipes) -> FakeRecipeStore:
    return FakeRecipeStore(sample_recipes)


@pytest.fixture
def empty_store() -> FakeRecipeStore:
    return FakeRecipeStore()


@pytest.fixture
def fake_cache() -> FakeRecipeCache:
    return FakeRecipeCache()


@pytest.fixture
def repository(fake_store, fake_cache) -> RecipeRepository:
    return RecipeRepository(store=fake_store, cache=fake_cache, cache_key="recipes")


@pytest_asyncio.fixture
async def test_client(repository):
    """
    HTTPX AsyncClient routed straight into the FastAPI app.

    The lifespan does not run under ASGITransport, so no database or Redis
    connection is opened; the repository fixture is injected instead.

    Usage:
        async def test_list(test_client):
            response = await test_client.get("/recipes")
            assert response.status_code == 200
    """
    from app.dependencies import get_recipe_repository
    from app.main import app

    app.dependency_overrides[get_recipe_repository] = lambda: repository
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
