"""
API package for railcurve.

Modules:
- main: FastAPI application (lifespan, middleware, system endpoints)
- models: Pydantic request/response models
- api: Track and frame routers
"""
