"""
RecipeBox Backend - FastAPI Dependencies
==========================================

What:  Providers injected into route handlers with Depends().
Why:   Handlers receive the repository by reference instead of importing a
       module-level global, so tests can swap in a repository built on fakes
       via app.dependency_overrides.
"""

from fastapi import Request

from app.services.recipe_repository import RecipeRepository


def get_recipe_repository(request: Request) -> RecipeRepository:
    """The repository built by the lifespan and stored on app.state."""
    return request.app.state.recipe_repository
