# Services package init
"""
RecipeBox Backend - Services Layer
====================================

Service Inventory:
    - RecipeStore (abstract) / SQLRecipeStore: authoritative recipe storage
    - RecipeCache (abstract) / RedisRecipeCache: byte key/value cache
    - CircuitBreaker: fail-fast guard around the cache backend
    - RecipeRepository: cache-aside list reads and invalidation on write
    - bootstrap: startup wait for the store and seed-file loading

Routes only talk to RecipeRepository. Store and cache are injected into it,
so tests swap in in-memory fakes without patching module globals.
"""
