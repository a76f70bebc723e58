"""Validation rules for client-supplied device IDs and pair codes."""

import re

DEVICE_ID_MIN_LENGTH = 8
DEVICE_ID_MAX_LENGTH = 256

# Six characters from the pair code alphabet (no I, O, 0 or 1)
PAIR_CODE_PATTERN = re.compile(r"[A-HJ-NP-Z2-9]{6}")


class InputValidationError(Exception):
    """Raised when client-supplied input breaks a business rule."""

    pass


class InvalidDeviceIdError(InputValidationError):
    """Raised when a device ID is missing, the wrong length or malformed."""

    pass


class InvalidPairCodeError(InputValidationError):
    """Raised when a pair code does not match the expected format."""

    pass


def sanitize(value: str | None) -> str:
    """Trim surrounding whitespace; None becomes an empty string."""
    return value.strip() if value is not None else ""


def _has_control_characters(value: str) -> bool:
    return any(ord(ch) < 0x20 or 0x7F <= ord(ch) <= 0x9F for ch in value)


def validate_device_id(device_id: str | None) -> None:
    if device_id is None or not device_id.strip():
        raise InvalidDeviceIdError("DeviceId is required")

    if len(device_id) < DEVICE_ID_MIN_LENGTH:
        raise InvalidDeviceIdError(
            f"DeviceId must be at least {DEVICE_ID_MIN_LENGTH} characters"
        )

    if len(device_id) > DEVICE_ID_MAX_LENGTH:
        raise InvalidDeviceIdError(
            f"DeviceId must not exceed {DEVICE_ID_MAX_LENGTH} characters"
        )

    if _has_control_characters(device_id):
        raise InvalidDeviceIdError("DeviceId contains invalid characters")


def validate_pair_code(pair_code: str | None) -> None:
    if pair_code is None or not pair_code.strip():
        raise InvalidPairCodeError("PairCode is required")

    if not PAIR_CODE_PATTERN.fullmatch(pair_code):
        raise InvalidPairCodeError("Invalid pair code format")
