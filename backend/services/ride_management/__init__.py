"""
Ride management service - Core ride lifecycle operations.

This module handles:
    - Requesting rides and issuing OTPs
    - Accepting rides from the open pool
    - Starting (OTP check), completing and cancelling rides
    - Querying rides for riders and drivers
    - Sweeping stale requests
"""

from .ride_lifecycle import (
    Location,
    RideResult,
    request_ride,
    get_ride_status,
    get_rides_for_rider,
    list_available_rides,
    accept_ride,
    start_ride,
    complete_ride,
    cancel_ride,
    get_rides_for_driver,
    get_current_driver_ride,
    cancel_stale_requests,
)

from .exceptions import (
    RideNotFoundError,
    RideNotAvailableError,
    RideStateError,
    RideClosedError,
    InvalidOtpError,
    DriverNotAvailableError,
    NotRideParticipantError,
    OtpAttemptsExceededError,
    RiderNotFoundError,
    DriverNotFoundError,
    DriverBusyError,
)

__all__ = [
    # Lifecycle operations
    "Location",
    "RideResult",
    "request_ride",
    "get_ride_status",
    "get_rides_for_rider",
    "list_available_rides",
    "accept_ride",
    "start_ride",
    "complete_ride",
    "cancel_ride",
    "get_rides_for_driver",
    "get_current_driver_ride",
    "cancel_stale_requests",
    # Exceptions
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
