"""Pydantic schemas for API request/response validation.

Request and response bodies use camelCase on the wire (``deviceId``,
``currentStreak``) to match the mobile client; Python code uses snake_case.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base schema serialised with camelCase field names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RegisterRequest(CamelModel):
    """Register (or re-register) a device.

    Content rules live in services.validation_service so that they produce
    the same messages wherever a device ID is accepted.
    """

    device_id: str = Field(max_length=4096)


class RegisterResponse(CamelModel):
    """Pair code plus the streak after today's check-in."""

    user_code: str
    current_streak: int = Field(ge=0)
    longest_streak: int = Field(ge=0)


@dataclass(frozen=True)
class RegistrationResult:
    """Outcome of register_device (service layer, not serialised directly)."""

    user_id: int
    pair_code: str
    current_streak: int
    longest_streak: int
    is_new_user: bool


class HealthResponse(BaseModel):
    """Basic health check response."""

    status: str


class HealthCheckEntryResponse(BaseModel):
    """One named check in a readiness report."""

    name: str
    status: Literal["Healthy", "Unhealthy"]
    description: str | None = None
    duration: float  # milliseconds


class LivenessResponse(BaseModel):
    status: Literal["Healthy", "Unhealthy"]
    timestamp: datetime


class ReadinessResponse(BaseModel):
    """Readiness probe report with per-check detail."""

    status: Literal["Healthy", "Unhealthy"]
    checks: list[HealthCheckEntryResponse]
    timestamp: datetime
