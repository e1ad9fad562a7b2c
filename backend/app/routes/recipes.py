"""
RecipeBox Backend - Recipe Route Handlers
===========================================

What:  CRUD and search endpoints under /recipes.
Why:   HTTP entry point to the RecipeRepository.
How:   Each handler parses the request, calls one repository operation and
       returns a response model. Errors propagate as exceptions and are
       turned into status codes by the global handlers in main.py.

Route Inventory:
    GET    /recipes                list (cache-aside)
    GET    /recipes/search?tag=    search by tag (store only)
    GET    /recipes/{id}           single recipe (store only)
    POST   /recipes                create, invalidates the list cache
    PUT    /recipes/{id}           partial update, invalidates the list cache
    DELETE /recipes/{id}           delete, invalidates the list cache

/recipes/search is registered before /recipes/{id}; otherwise "search"
would be parsed as a recipe id.
"""

import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from app.dependencies import get_recipe_repository
from app.schemas.recipe import (
    ErrorResponse,
    Recipe,
    RecipeCreate,
    RecipeCreatedResponse,
    RecipeDeletedResponse,
    RecipeUpdate,
    RecipeUpdatedResponse,
)
from app.services.recipe_repository import RecipeRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/recipes", tags=["Recipes"])

_ERRORS = {
    400: {"description": "Invalid input", "model": ErrorResponse},
    500: {"description": "Server error", "model": ErrorResponse},
}
_ERRORS_WITH_404 = {
    **_ERRORS,
    404: {"description": "Recipe not found", "model": ErrorResponse},
}


@router.get(
    "",
    response_model=List[Recipe],
    responses={500: _ERRORS[500]},
    summary="List all recipes",
    description=(
        "Returns every recipe. Served from the cache snapshot when present; "
        "the snapshot is rebuilt from the store after any write."
    ),
)
async def list_recipes(
    repository: RecipeRepository = Depends(get_recipe_repository),
) -> List[Recipe]:
    return await repository.list_all()


@router.get(
    "/search",
    response_model=List[Recipe],
    responses=_ERRORS,
    summary="Search recipes by tag",
    description=(
        "Returns recipes whose tags contain the given tag "
        "(case-insensitive exact match). Always read from the store."
    ),
)
async def search_recipes(
    tag: str = Query(description="Tag to look for, e.g. 'vegetarian'"),
    repository: RecipeRepository = Depends(get_recipe_repository),
) -> List[Recipe]:
    """Example: GET /recipes/search?tag=vegetarian"""
    return await repository.search(tag)


@router.get(
    "/{recipe_id}",
    response_model=Recipe,
    responses=_ERRORS_WITH_404,
    summary="Get a single recipe by ID",
)
async def get_recipe(
    recipe_id: UUID,
    repository: RecipeRepository = Depends(get_recipe_repository),
) -> Recipe:
    return await repository.get_by_id(recipe_id)


@router.post(
    "",
    response_model=RecipeCreatedResponse,
    responses=_ERRORS,
    summary="Create a recipe",
    description="The id and publishedAt fields are assigned by the server.",
)
async def create_recipe(
    payload: RecipeCreate,
    repository: RecipeRepository = Depends(get_recipe_repository),
) -> RecipeCreatedResponse:
    recipe = await repository.create(payload)
    return RecipeCreatedResponse(id=recipe.id, recipe=recipe)


@router.put(
    "/{recipe_id}",
    response_model=RecipeUpdatedResponse,
    responses=_ERRORS_WITH_404,
    summary="Update a recipe",
    description="Only the fields present in the body are changed.",
)
async def update_recipe(
    recipe_id: UUID,
    payload: RecipeUpdate,
    repository: RecipeRepository = Depends(get_recipe_repository),
) -> RecipeUpdatedResponse:
    recipe = await repository.update(recipe_id, payload)
    return RecipeUpdatedResponse(recipe=recipe)


@router.delete(
    "/{recipe_id}",
    response_model=RecipeDeletedResponse,
    responses=_ERRORS_WITH_404,
    summary="Delete a recipe",
)
async def delete_recipe(
    recipe_id: UUID,
    repository: RecipeRepository = Depends(get_recipe_repository),
) -> RecipeDeletedResponse:
    count = await repository.delete(recipe_id)
    return RecipeDeletedResponse(
        message=f"Successfully removed record: {recipe_id}",
        count=count,
    )
