"""
RecipeBox Backend - Abstract Recipe Store Interface
=====================================================

What:  Abstract base class defining the contract of the persistent document store.
Why:   The repository depends on this contract only, so the SQL implementation
       can be swapped for another backend, and tests can use an in-memory fake
       with call counters.
How:   Concrete implementations inherit from RecipeStore and implement every
       abstract method.

Contract:
    - Filters are structural: equality on `id`, or "tags contains this value"
      compared case-insensitively.
    - Result order of find() is whatever the backend returns. No sort is
      imposed and callers must not assume it is stable across calls.
    - Every backend failure is raised as StoreError. "No match" is never an
      error at this level: it is None or a zero count.
"""

import uuid
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from app.schemas.recipe import Recipe


class RecipeStore(ABC):
    """Persistent collection of Recipe documents keyed by id."""

    @abstractmethod
    async def find(self, tag: Optional[str] = None) -> List[Recipe]:
        """
        Return all recipes, or only those whose tags contain `tag`.

        Tag comparison is case-insensitive equality against each element,
        not a prefix or substring match.

        Raises:
            StoreError: The query failed.
        """
        ...

    @abstractmethod
    async def find_by_id(self, recipe_id: uuid.UUID) -> Optional[Recipe]:
        """Return the recipe with `recipe_id`, or None."""
        ...

    @abstractmethod
    async def insert_one(self, recipe: Recipe) -> uuid.UUID:
        """
        Insert a fully-formed recipe (id and published_at already assigned).

        Returns:
            The id of the inserted document.

        Raises:
            StoreError: The insert failed (including a duplicate id).
        """
        ...

    @abstractmethod
    async def insert_many(self, recipes: List[Recipe]) -> int:
        """Insert several recipes in one transaction. Returns the inserted count."""
        ...

    @abstractmethod
    async def update_one(self, recipe_id: uuid.UUID, fields: Dict[str, Any]) -> int:
        """
        Overwrite the given fields of one recipe.

        Args:
            recipe_id: Document to update.
            fields: Subset of name / tags / ingredients / instructions.

        Returns:
            Matched count: 1 if the document exists, 0 otherwise.
        """
        ...

    @abstractmethod
    async def delete_one(self, recipe_id: uuid.UUID) -> int:
        """Delete one recipe. Returns the deleted count (0 or 1)."""
        ...

    @abstractmethod
    async def count(self) -> int:
        """Number of documents in the collection."""
        ...

    @abstractmethod
    async def ping(self) -> bool:
        """Lightweight connectivity check. Returns False instead of raising."""
        ...
