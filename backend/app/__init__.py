"""
RecipeBox Backend - Application Package Initializer
=====================================================

What: Marks the `app` directory as a Python package.
Who:  Imported by uvicorn (app.main:app), Alembic and pytest.

Architecture Note:
    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP status codes, bodies
    ├─────────────────────────────────────┤
    │   RecipeRepository (cache-aside)    │  ← consistency between store and cache
    ├──────────────────┬──────────────────┤
    │  RecipeStore     │  RecipeCache     │  ← SQLAlchemy / Redis adapters
    ├──────────────────┼──────────────────┤
    │  PostgreSQL      │  Redis           │
    └──────────────────┴──────────────────┘

    The store is authoritative. The cache only ever holds a serialized
    snapshot of the full recipe list under a single key.
"""

__version__ = "1.0.0"
