"""Custom exceptions for ride management."""

from common.exceptions import (
    NotFoundError,
    InvalidStateError,
    InvalidCredentialError,
    PermissionDeniedError,
    RiderNotFoundError,
    DriverNotFoundError,
    DriverBusyError,
)


class RideNotFoundError(NotFoundError):
    """Raised when a ride cannot be found."""
    error_code = "ride_not_found"


class RideNotAvailableError(InvalidStateError):
    """Raised when a ride was already accepted by another driver or is otherwise not open."""
    error_code = "ride_not_available"


class RideStateError(InvalidStateError):
    """Raised when the ride is not in the status the operation needs."""
    error_code = "invalid_ride_state"


class RideClosedError(InvalidStateError):
    """Raised when a ride is already completed or cancelled."""
    error_code = "ride_closed"


class InvalidOtpError(InvalidCredentialError):
    """Raised when the presented OTP does not match the ride's code."""
    error_code = "invalid_otp"


class DriverNotAvailableError(PermissionDeniedError):
    """Raised when driver is not available to accept rides."""
    error_code = "driver_not_available"


class NotRideParticipantError(PermissionDeniedError):
    """Raised when the caller is not the rider or the bound driver."""
    error_code = "not_ride_participant"


class OtpAttemptsExceededError(PermissionDeniedError):
    """Raised when too many wrong OTPs were presented for a ride."""
    error_code = "otp_attempts_exceeded"


__all__ = [
    "RideNotFoundError",
    "RideNotAvailableError",
    "RideStateError",
    "RideClosedError",
    "InvalidOtpError",
    "DriverNotAvailableError",
    "NotRideParticipantError",
    "OtpAttemptsExceededError",
    "RiderNotFoundError",
    "DriverNotFoundError",
    "DriverBusyError",
]
