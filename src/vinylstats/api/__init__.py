"""API module for vinylstats.

Structure:
- routers/: HTTP endpoints (stats under /api, health at the root)
- schemas/: Pydantic response models
- dependencies.py: Dependency injection (credential, service)
- exception_handlers.py: Domain exception → HTTP response mapping
"""
