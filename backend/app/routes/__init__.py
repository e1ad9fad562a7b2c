# Routes package init
"""
RecipeBox Backend - API Routes Package
========================================

Route Inventory:
    - recipes.py: GET    /recipes               (full list, cache-aside)
                  GET    /recipes/search?tag=   (tag search, store only)
                  GET    /recipes/{id}          (single recipe, store only)
                  POST   /recipes               (create, invalidates list)
                  PUT    /recipes/{id}          (partial update, invalidates list)
                  DELETE /recipes/{id}          (delete, invalidates list)
    - health.py:  GET    /health                (store, cache and cache counters)

Routes stay thin: parse the request, call RecipeRepository, shape the body.
Errors propagate as RecipeBoxError subclasses and are mapped to status codes
by the handlers registered in app.main.
"""
