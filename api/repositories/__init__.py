"""Repository layer for database operations.

Repositories encapsulate all database queries, keeping routes and services
free of SQL. They never commit: the request-scoped session dependency
(core.database.get_db) owns the transaction.
"""

from repositories.activity_repository import ActivityRepository
from repositories.user_repository import UserRepository
from repositories.utils import log_slow_query

__all__ = [
    "ActivityRepository",
    "UserRepository",
    "log_slow_query",
]
