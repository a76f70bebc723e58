"""Device registration endpoint."""

from fastapi import APIRouter, HTTPException, Request

from core.config import get_settings
from core.database import DbSession
from core.logger import get_logger
from core.ratelimit import limiter
from schemas import RegisterRequest, RegisterResponse
from services.registration_service import PairCodeGenerationError, register_device
from services.validation_service import InputValidationError

logger = get_logger(__name__)

router = APIRouter(prefix="/api/v1", tags=["users"])


@router.post(
    "/register",
    response_model=RegisterResponse,
    responses={
        400: {"description": "Invalid device ID"},
        429: {"description": "Too many requests"},
        503: {"description": "Could not allocate a pair code"},
    },
)
@limiter.limit(get_settings().register_rate_limit)
async def register(
    request: Request, body: RegisterRequest, db: DbSession
) -> RegisterResponse:
    """Register a device and record today's check-in.

    Returns the device's pair code together with its current and longest
    streak. Calling again on the same day is safe.
    """
    try:
        result = await register_device(db, body.device_id)
    except InputValidationError as e:
        logger.info("register.rejected", reason=str(e))
        raise HTTPException(status_code=400, detail=str(e)) from e
    except PairCodeGenerationError as e:
        raise HTTPException(
            status_code=503,
            detail="Could not allocate a pair code. Please retry.",
        ) from e

    return RegisterResponse(
        user_code=result.pair_code,
        current_streak=result.current_streak,
        longest_streak=result.longest_streak,
    )
