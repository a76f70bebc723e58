"""Device registration and daily check-in.

Registering is idempotent per device: the first call creates the user and
its pair code, every later call returns the same pair code. Each call also
records a check-in for the current day (at most one row per day) and
returns the resulting streak.
"""

from collections.abc import Sequence
from datetime import UTC, date, datetime, timedelta

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.logger import get_logger
from core.telemetry import track_operation
from core.wide_event import set_wide_event_fields
from models import DailyActivity, User
from repositories.activity_repository import ActivityRepository
from repositories.user_repository import UserRepository
from schemas import RegistrationResult
from services.streaks_service import StreakResult, calculate_streak
from services.validation_service import sanitize, validate_device_id

logger = get_logger(__name__)

MAX_PAIR_CODE_ATTEMPTS = 10


class PairCodeGenerationError(Exception):
    """Raised when no unused pair code was found within the attempt budget."""

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(f"Failed to generate unique pair code after {attempts} attempts")


@track_operation("device_registration")
async def register_device(
    db: AsyncSession,
    device_id: str | None,
    *,
    today: date | None = None,
) -> RegistrationResult:
    """Register a device (or re-register a known one) and check in for today.

    Args:
        db: Request-scoped session; the caller commits.
        device_id: Raw device ID from the client, sanitized here.
        today: Check-in day. Defaults to the current UTC date.

    Raises:
        InvalidDeviceIdError: device_id is missing or malformed.
        PairCodeGenerationError: a new user could not be given a unique code.
    """
    device_id = sanitize(device_id)
    validate_device_id(device_id)

    if today is None:
        today = datetime.now(UTC).date()

    user = await UserRepository(db).get_by_device_id(device_id)
    if user is None:
        result = await _register_new_device(db, device_id, today)
    else:
        logger.info("register.user.existing", user_id=user.id)
        result = await _check_in_existing_user(db, user, today)

    set_wide_event_fields(
        user_id=result.user_id,
        is_new_user=result.is_new_user,
        current_streak=result.current_streak,
        longest_streak=result.longest_streak,
    )
    return result


async def _generate_unique_pair_code(user_repo: UserRepository) -> str:
    for attempt in range(1, MAX_PAIR_CODE_ATTEMPTS + 1):
        pair_code = User.generate_pair_code()
        if not await user_repo.pair_code_exists(pair_code):
            return pair_code
        logger.debug("register.pair_code.collision", attempt=attempt)

    logger.error("register.pair_code.exhausted", attempts=MAX_PAIR_CODE_ATTEMPTS)
    raise PairCodeGenerationError(MAX_PAIR_CODE_ATTEMPTS)


async def _register_new_device(
    db: AsyncSession, device_id: str, today: date
) -> RegistrationResult:
    user_repo = UserRepository(db)
    pair_code = await _generate_unique_pair_code(user_repo)
    user = await user_repo.create(device_id=device_id, pair_code=pair_code)

    activity = await ActivityRepository(db).log_activity(user.id, today)
    streak = calculate_streak([activity], today)

    logger.info("register.user.created", user_id=user.id, pair_code=pair_code)
    logger.info(
        "register.activity.created",
        user_id=user.id,
        activity_date=today.isoformat(),
    )
    _log_streak(user.id, streak)

    return RegistrationResult(
        user_id=user.id,
        pair_code=pair_code,
        current_streak=streak.current_streak,
        longest_streak=streak.longest_streak,
        is_new_user=True,
    )


async def _check_in_existing_user(
    db: AsyncSession, user: User, today: date
) -> RegistrationResult:
    activity_repo = ActivityRepository(db)

    todays_activity = await activity_repo.get_for_date(user.id, today)
    if todays_activity is None:
        try:
            async with db.begin_nested():
                await activity_repo.log_activity(user.id, today)
        except IntegrityError:
            # A concurrent check-in inserted today's row first
            todays_activity = await activity_repo.get_for_date(user.id, today)
            logger.info(
                "register.activity.race",
                user_id=user.id,
                activity_date=today.isoformat(),
            )
        else:
            logger.info(
                "register.activity.created",
                user_id=user.id,
                activity_date=today.isoformat(),
            )

    if todays_activity is not None:
        await activity_repo.touch(todays_activity)
        logger.info(
            "register.activity.updated",
            user_id=user.id,
            activity_date=today.isoformat(),
        )

    activities = await activity_repo.get_by_user(user.id)
    streak = calculate_streak(activities, today)

    if streak.current_streak == 1 and len(activities) > 1:
        _log_streak_reset(user.id, activities, today)

    _log_streak(user.id, streak)

    return RegistrationResult(
        user_id=user.id,
        pair_code=user.pair_code,
        current_streak=streak.current_streak,
        longest_streak=streak.longest_streak,
        is_new_user=False,
    )


def _log_streak_reset(
    user_id: int, activities: Sequence[DailyActivity], today: date
) -> None:
    """Warn when today's check-in starts a new streak after a gap.

    A current streak of 1 with earlier history means yesterday was missed.
    If the latest earlier day *is* yesterday the stored data disagrees with
    the calculation, which is logged separately.
    """
    last_active = max(
        (a.activity_date for a in activities if a.activity_date < today),
        default=None,
    )
    if last_active is None:
        return

    yesterday = today - timedelta(days=1)
    if last_active < yesterday:
        logger.warning(
            "streak.reset",
            user_id=user_id,
            previous_streak_end=last_active.isoformat(),
            gap_days=(today - last_active).days,
            current_streak=1,
        )
    elif last_active == yesterday:
        logger.warning(
            "streak.reset.inconsistent",
            user_id=user_id,
            last_activity_date=last_active.isoformat(),
        )


def _log_streak(user_id: int, streak: StreakResult) -> None:
    logger.info(
        "register.streak",
        user_id=user_id,
        current_streak=streak.current_streak,
        longest_streak=streak.longest_streak,
    )
