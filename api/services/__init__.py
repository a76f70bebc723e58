"""Service layer for business logic.

Services keep routes thin: they validate input, orchestrate repositories
and compute streaks, but know nothing about HTTP.

Layer hierarchy:
    Routes (HTTP) -> Services (Business Logic) -> Repositories (Database)

Services should:
- Raise their own exception types (routes map them to status codes)
- Return dataclasses or named tuples, not ORM models or Pydantic schemas
- Leave committing to the request-scoped session dependency
"""
