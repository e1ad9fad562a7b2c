"""
RecipeBox Backend - Pydantic Recipe Schemas
=============================================

What:  Pydantic models for the Recipe entity, its request payloads and the
       API responses.
Why:   One definition of the recipe shape shared by the HTTP layer, the cache
       snapshot codec and the store adapter.
How:   `Recipe` is the domain entity. The cache stores a JSON array of
       `Recipe` produced by `RecipeListCodec`, so a cache hit deserializes to
       exactly what the store would have returned.

Wire format:
    Python attributes are snake_case; JSON uses `publishedAt` (the field alias).
    Both HTTP responses and cache snapshots are written by alias.
"""

import uuid
from datetime import datetime
from typing import Annotated, List, Optional

from pydantic import BaseModel, Field, TypeAdapter, field_validator

TagName = Annotated[str, Field(min_length=1, max_length=100)]


def _strip_required(value: str) -> str:
    stripped = value.strip()
    if not stripped:
        raise ValueError("must not be blank")
    return stripped


# ══════════════════════════════════════════════════════════════════════════
# Domain Entity
# ══════════════════════════════════════════════════════════════════════════


class Recipe(BaseModel):
    """
    A recipe document as stored, cached and returned by the API.

    `id` and `published_at` are assigned once by the repository on creation
    and never change afterwards.
    """
    id: uuid.UUID = Field(description="Unique recipe identifier (UUID4)")
    name: str = Field(description="Display name")
    tags: List[str] = Field(default_factory=list, description="Ordered tags used by search")
    ingredients: List[str] = Field(default_factory=list, description="Ordered ingredient lines")
    instructions: List[str] = Field(default_factory=list, description="Ordered instruction steps")
    published_at: datetime = Field(
        alias="publishedAt",
        description="Creation timestamp (UTC ISO 8601), immutable",
    )

    model_config = {"populate_by_name": True, "from_attributes": True}


class RecipeListCodec:
    """
    Serializes a full recipe list to bytes and back for the cache snapshot.

    An empty list encodes to b"[]", which is a valid cached value and
    distinct from an absent key.
    """

    _adapter = TypeAdapter(List[Recipe])

    @classmethod
    def dumps(cls, recipes: List[Recipe]) -> bytes:
        return cls._adapter.dump_json(recipes, by_alias=True)

    @classmethod
    def loads(cls, payload: bytes) -> List[Recipe]:
        return cls._adapter.validate_json(payload)


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class RecipeCreate(BaseModel):
    """
    Body of POST /recipes.

    Only `name` is required. Unknown keys (including a client-supplied `id` or
    `publishedAt`) are ignored: both are always assigned server-side.
    """
    name: str = Field(max_length=255, description="Display name (required, non-blank)")
    tags: List[TagName] = Field(default_factory=list)
    ingredients: List[str] = Field(default_factory=list)
    instructions: List[str] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _strip_required(v)


class RecipeUpdate(BaseModel):
    """
    Body of PUT /recipes/{id}.

    Partial update: only the fields present in the payload are written.
    `id` and `publishedAt` cannot be changed and are ignored if sent.
    """
    name: Optional[str] = Field(default=None, max_length=255)
    tags: Optional[List[TagName]] = None
    ingredients: Optional[List[str]] = None
    instructions: Optional[List[str]] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return _strip_required(v)

    def changed_fields(self) -> dict:
        """Fields explicitly provided with a non-null value."""
        return self.model_dump(exclude_unset=True, exclude_none=True)


class RecipeSeed(BaseModel):
    """
    One document of the startup seed file.

    Seed files may omit `id` (a new UUID4 is generated) or `publishedAt`
    (set to the load time).
    """
    id: Optional[uuid.UUID] = None
    name: str = Field(max_length=255)
    tags: List[TagName] = Field(default_factory=list)
    ingredients: List[str] = Field(default_factory=list)
    instructions: List[str] = Field(default_factory=list)
    published_at: Optional[datetime] = Field(default=None, alias="publishedAt")

    model_config = {"populate_by_name": True}

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _strip_required(v)


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class RecipeCreatedResponse(BaseModel):
    message: str = Field(default="New Recipe added")
    id: uuid.UUID = Field(description="Identifier assigned to the new recipe")
    recipe: Recipe


class RecipeUpdatedResponse(BaseModel):
    message: str = Field(default="Recipe has been updated")
    recipe: Recipe


class RecipeDeletedResponse(BaseModel):
    message: str
    count: int = Field(description="Number of deleted documents")


class ErrorResponse(BaseModel):
    """
    Standardized error response format for all API errors.

    Example:
        {
            "error": "not_found",
            "message": "recipe with ID '0b6f...' was not found",
            "request_id": "a1b2c3d4"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class CacheStatsResponse(BaseModel):
    """Counters kept by the repository since process start."""
    hits: int
    misses: int
    degraded_reads: int
    write_failures: int
    pending_invalidation: bool


class HealthResponse(BaseModel):
    """
    Health check response.

    The cache is not critical: a cache outage degrades the service (list
    reads go to the store) but does not make it unhealthy.
    """
    status: str = Field(description="Overall service status: healthy, degraded, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Store connectivity: connected, disconnected")
    cache: str = Field(description="Cache status: available, unavailable, circuit_open")
    cache_stats: CacheStatsResponse
    uptime_seconds: float = Field(description="Seconds since service started")
