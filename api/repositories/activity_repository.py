"""Repository for daily activity operations."""

from collections.abc import Sequence
from datetime import date, datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from models import DailyActivity, utcnow
from repositories.utils import log_slow_query


class ActivityRepository:
    """Repository for per-day check-in records (streak tracking)."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get_for_date(
        self,
        user_id: int,
        activity_date: date,
    ) -> DailyActivity | None:
        """Get the user's activity row for a specific day, if any."""
        result = await self.db.execute(
            select(DailyActivity).where(
                DailyActivity.user_id == user_id,
                DailyActivity.activity_date == activity_date,
            )
        )
        return result.scalar_one_or_none()

    async def log_activity(
        self,
        user_id: int,
        activity_date: date,
    ) -> DailyActivity:
        """Record a check-in for a day the user has no row for yet."""
        activity = DailyActivity(
            user_id=user_id,
            activity_date=activity_date,
            updated_at=utcnow(),
        )
        self.db.add(activity)
        await self.db.flush()
        return activity

    async def touch(
        self,
        activity: DailyActivity,
        *,
        updated_at: datetime | None = None,
    ) -> DailyActivity:
        """Refresh updated_at on a repeat check-in for the same day."""
        activity.updated_at = updated_at or utcnow()
        await self.db.flush()
        return activity

    @log_slow_query("activity_get_by_user")
    async def get_by_user(self, user_id: int) -> Sequence[DailyActivity]:
        """Get all of a user's activity rows, most recent day first."""
        result = await self.db.execute(
            select(DailyActivity)
            .where(DailyActivity.user_id == user_id)
            .order_by(DailyActivity.activity_date.desc())
        )
        return result.scalars().all()
