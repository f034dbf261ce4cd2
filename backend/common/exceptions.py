"""
Error taxonomy shared by the ride services.

Every service error carries the HTTP status and a short machine-readable
code so views can surface it without re-deciding what it means.
"""

from rest_framework.response import Response


class RideflowError(Exception):
    """Base class for expected, non-retryable service errors."""
    status_code = 400
    error_code = "error"

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class NotFoundError(RideflowError):
    """A ride, driver, rider or payment does not exist."""
    status_code = 404
    error_code = "not_found"


class InvalidStateError(RideflowError):
    """The operation is not legal in the resource's current state."""
    status_code = 409
    error_code = "invalid_state"


class InvalidCredentialError(RideflowError):
    """A presented code did not match."""
    status_code = 400
    error_code = "invalid_credential"


class PermissionDeniedError(RideflowError):
    """The caller may not perform this action right now."""
    status_code = 403
    error_code = "permission_denied"


# Identity errors raised by the account and driver lookups

class RiderNotFoundError(NotFoundError):
    """Raised when the requesting rider does not exist."""
    error_code = "rider_not_found"


class DriverNotFoundError(NotFoundError):
    """Raised when a driver profile cannot be found."""
    error_code = "driver_not_found"


class DriverBusyError(InvalidStateError):
    """Raised when a driver bound to an active ride is asked to change availability."""
    error_code = "driver_busy"


def error_response(exc: RideflowError) -> Response:
    """Render a service error the same way for every endpoint."""
    return Response(
        {
            "success": False,
            "error": exc.error_code,
            "message": exc.message,
        },
        status=exc.status_code,
    )
