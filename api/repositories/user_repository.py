"""User repository for database operations."""

from sqlalchemy import exists, select
from sqlalchemy.ext.asyncio import AsyncSession

from models import User
from repositories.utils import log_slow_query


class UserRepository:
    """Repository for User database operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    @log_slow_query("user_get_by_device_id")
    async def get_by_device_id(self, device_id: str) -> User | None:
        """Get a user by device ID.

        Expects device_id to be pre-sanitized by the service layer.
        """
        result = await self.db.execute(select(User).where(User.device_id == device_id))
        return result.scalar_one_or_none()

    async def pair_code_exists(self, pair_code: str) -> bool:
        result = await self.db.execute(select(exists().where(User.pair_code == pair_code)))
        return result.scalar_one()

    async def create(self, device_id: str, pair_code: str) -> User:
        """Create a new user and flush so its ID is available."""
        user = User(device_id=device_id, pair_code=pair_code)
        self.db.add(user)
        await self.db.flush()
        return user
