# Middleware package init
"""
RecipeBox Backend - Middleware Package
========================================

Middleware Chain (execution order):
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    Request ID runs first so the access log line and every log line emitted
    while handling the request carry the same correlation ID.
"""
