"""Factory Boy factories for generating test data.

Usage:
    user = UserFactory.build()  # In-memory only
    user = await create_async(UserFactory, db_session)  # Persisted

    # Override fields
    activity = DailyActivityFactory.build(user_id=user.id, activity_date=day)
"""

from datetime import UTC, date, datetime, timedelta

import factory
from faker import Faker
from sqlalchemy.ext.asyncio import AsyncSession

from models import DailyActivity, User

fake = Faker()


# =============================================================================
# Async Factory Helpers
# =============================================================================


async def create_async(
    factory_class: type[factory.Factory], db: AsyncSession, **kwargs
):
    """Create an instance using a factory and persist to database.

    Usage:
        user = await create_async(UserFactory, db_session, device_id="abc12345")
    """
    instance = factory_class.build(**kwargs)
    db.add(instance)
    await db.flush()
    await db.refresh(instance)
    return instance


# =============================================================================
# User Factory
# =============================================================================


class UserFactory(factory.Factory):
    """Factory for creating User instances."""

    class Meta:
        model = User

    # Let DB assign autoincrement ID
    device_id = factory.LazyFunction(lambda: fake.uuid4())
    pair_code = factory.LazyFunction(User.generate_pair_code)
    created_at = factory.LazyFunction(lambda: datetime.now(UTC))


# =============================================================================
# Activity Factory
# =============================================================================


class DailyActivityFactory(factory.Factory):
    """Factory for creating DailyActivity instances."""

    class Meta:
        model = DailyActivity

    user_id = 1
    activity_date = factory.LazyFunction(lambda: datetime.now(UTC).date())
    updated_at = factory.LazyFunction(lambda: datetime.now(UTC))

    @classmethod
    def build_streak(
        cls, user_id: int, days: int, end_date: date
    ) -> list[DailyActivity]:
        """Build consecutive daily activities ending on end_date."""
        return [
            cls.build(user_id=user_id, activity_date=end_date - timedelta(days=i))
            for i in range(days)
        ]


async def create_activities_async(
    db: AsyncSession, user_id: int, dates: list[date]
) -> list[DailyActivity]:
    """Persist one activity per given date for a user."""
    activities = [
        DailyActivityFactory.build(user_id=user_id, activity_date=d) for d in dates
    ]
    db.add_all(activities)
    await db.flush()
    return activities
