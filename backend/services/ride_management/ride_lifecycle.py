"""
Core ride lifecycle operations.

This module owns the ride state machine:

    requested -> accepted -> started -> completed
    requested | accepted | started -> cancelled

Every transition is a conditional UPDATE keyed on the status the caller
observed, so two requests racing on the same ride produce exactly one
winner. Driver availability is flipped with the same compare-and-swap
discipline (see drivers.services). Notifications and the payment hook run
only after the transaction commits.
"""

import logging
from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal
from functools import partial
from typing import Optional, Dict, Any, List

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import F
from django.utils import timezone
from django.utils.module_loading import import_string

from accounts.services import resolve_user_by_id
from common.exceptions import RideflowError
from drivers import services as driver_registry
from rides.models import Ride, RideStatus
from services.pricing import estimate_fare, resolve_vehicle_class, route_distance
from .exceptions import (
    RideNotFoundError,
    RideNotAvailableError,
    RideStateError,
    RideClosedError,
    InvalidOtpError,
    DriverNotAvailableError,
    NotRideParticipantError,
    OtpAttemptsExceededError,
)
from .otp import issue_otp, verify_otp

logger = logging.getLogger(__name__)

_COORD = Decimal("0.000001")
_ZERO = Decimal("0.00")


@dataclass
class Location:
    """A pickup or drop point."""
    latitude: float
    longitude: float
    address: str = ""


@dataclass
class RideResult:
    """Result object for ride operations."""
    success: bool
    ride: Optional[Ride] = None
    message: str = ""
    extra: Optional[Dict[str, Any]] = None


# ===================== Rider Operations =====================

@transaction.atomic
def request_ride(rider_id, pickup: Location, drop: Location, vehicle_class=None) -> RideResult:
    """
    Create a ride in REQUESTED state with a freshly issued OTP.

    Distance and fare are computed here, once, and never change. No driver
    is assigned; the ride waits in the open pool until a driver accepts it.

    Args:
        rider_id: ID of the requesting user
        pickup: Pickup location
        drop: Drop location
        vehicle_class: BIKE, AUTO, CAR or PREMIER (anything else prices as CAR)

    Returns:
        RideResult with the created ride

    Raises:
        RiderNotFoundError: If the rider does not exist
    """
    rider = resolve_user_by_id(rider_id)
    vclass = resolve_vehicle_class(vehicle_class)

    distance = route_distance(pickup.latitude, pickup.longitude, drop.latitude, drop.longitude)
    fare = estimate_fare(distance, vclass)

    ride = Ride.objects.create(
        rider=rider,
        status=RideStatus.REQUESTED,
        vehicle_class=vclass,
        pickup_latitude=_coord(pickup.latitude),
        pickup_longitude=_coord(pickup.longitude),
        pickup_address=pickup.address or "",
        drop_latitude=_coord(drop.latitude),
        drop_longitude=_coord(drop.longitude),
        drop_address=drop.address or "",
        distance_km=distance,
        fare=fare,
        otp_code=issue_otp(),
        otp_issued_at=timezone.now(),
    )

    logger.info(
        "Ride %s requested by user %s (%s, %s km, fare %s)",
        ride.id, rider.id, vclass, distance, fare
    )

    from realtime.notifications import notify_pool_event
    transaction.on_commit(partial(notify_pool_event, "ride_requested", ride, "New ride request nearby."))

    return RideResult(
        success=True,
        ride=ride,
        message="Ride requested. Waiting for a driver to accept.",
    )


def get_ride_status(ride_id, viewer=None) -> Ride:
    """
    Fetch one ride or raise RideNotFoundError.

    When a viewer is given it must be the rider or the bound driver; any
    driver may also look at a ride still waiting in the pool.

    Raises:
        RideNotFoundError, NotRideParticipantError
    """
    ride = _get_ride(ride_id)
    if viewer is not None and not _may_view(ride, viewer):
        raise NotRideParticipantError("Only the rider or the assigned driver can view this ride")
    return ride


def get_rides_for_rider(rider) -> List[Ride]:
    """All rides of one rider, newest first."""
    return list(
        Ride.objects.filter(rider=rider)
        .select_related("rider", "driver__user")
        .order_by("-created_at", "-id")
    )


# ===================== Driver Operations =====================

def list_available_rides():
    """Rides waiting in the pool (REQUESTED), newest first."""
    return (
        Ride.objects.filter(status=RideStatus.REQUESTED)
        .select_related("rider")
        .order_by("-created_at", "-id")
    )


@transaction.atomic
def accept_ride(ride_id, driver) -> RideResult:
    """
    Claim a REQUESTED ride for the calling driver.

    The driver is flipped to unavailable and the ride is bound and moved to
    ACCEPTED inside one transaction; if either conditional update loses a
    race the whole unit rolls back, leaving the losing driver's availability
    untouched.

    Args:
        ride_id: ID of the ride to accept
        driver: User model instance (driver)

    Returns:
        RideResult with the accepted ride

    Raises:
        RideNotFoundError: If the ride does not exist
        DriverNotFoundError: If the user has no driver profile
        RideNotAvailableError: If the ride is no longer REQUESTED
        DriverNotAvailableError: If the driver's availability flag is false
    """
    ride = _get_ride(ride_id)
    profile = driver_registry.get_by_user(driver)

    if ride.status != RideStatus.REQUESTED:
        raise RideNotAvailableError("Ride already processed or accepted by another driver")

    if not profile.is_available:
        raise DriverNotAvailableError("You are not marked as available.")

    if not driver_registry.claim_driver(profile.id):
        raise DriverNotAvailableError("You are not marked as available.")

    accepted = _transition(
        ride,
        RideStatus.REQUESTED,
        RideStatus.ACCEPTED,
        driver=profile,
        accepted_at=timezone.now(),
    )
    if not accepted:
        # Raising rolls the driver claim back with the rest of the unit
        logger.warning("Driver %s lost the race for ride %s", profile.id, ride.id)
        raise RideNotAvailableError("Ride already processed or accepted by another driver")

    profile.is_available = False
    ride.driver = profile

    logger.info("Ride %s accepted by driver %s", ride.id, profile.id)

    from realtime.notifications import notify_rider_event, notify_pool_event
    transaction.on_commit(partial(
        notify_rider_event, "ride_accepted", ride, "Your ride has been accepted! The driver is on the way."
    ))
    transaction.on_commit(partial(notify_pool_event, "ride_taken", ride, "Ride accepted by another driver."))

    return RideResult(
        success=True,
        ride=ride,
        message="Ride accepted. Navigate to the pickup location.",
    )


def start_ride(ride_id, presented_otp, actor=None) -> RideResult:
    """
    Start an ACCEPTED ride once the rider's OTP checks out.

    The code is compared before anything is written, so a wrong guess never
    moves the ride. A wrong guess does not consume the code either; it only
    bumps the failed-attempt counter used by the optional lockout.

    Args:
        ride_id: ID of the ride to start
        presented_otp: Code read out by the rider
        actor: Calling user; when given it must be the bound driver

    Raises:
        RideNotFoundError, RideStateError, NotRideParticipantError,
        OtpAttemptsExceededError, InvalidOtpError
    """
    with transaction.atomic():
        ride = _get_ride(ride_id)

        if ride.status != RideStatus.ACCEPTED:
            raise RideStateError("Ride is not accepted yet")

        _ensure_bound_driver(ride, actor, "start")

        max_attempts = getattr(settings, "RIDE_OTP_MAX_ATTEMPTS", None)
        if max_attempts and ride.otp_failed_attempts >= max_attempts:
            raise OtpAttemptsExceededError("Too many invalid OTP attempts for this ride")

        otp_matches = verify_otp(ride.otp_code, presented_otp)

        if otp_matches:
            now = timezone.now()
            started = _transition(
                ride,
                RideStatus.ACCEPTED,
                RideStatus.STARTED,
                match={"otp_consumed_at__isnull": True},
                started_at=now,
                otp_consumed_at=now,
            )
            if not started:
                raise RideStateError("Ride is not accepted yet")

    if not otp_matches:
        Ride.objects.filter(pk=ride.pk).update(otp_failed_attempts=F("otp_failed_attempts") + 1)
        logger.warning("Invalid OTP presented for ride %s", ride.id)
        raise InvalidOtpError("Invalid OTP")

    logger.info("Ride %s started", ride.id)

    from realtime.notifications import notify_rider_event, notify_ride_group
    transaction.on_commit(partial(notify_rider_event, "ride_started", ride, "Your ride has started."))
    transaction.on_commit(partial(notify_ride_group, ride, "ride_started", "Ride started."))

    return RideResult(success=True, ride=ride, message="Ride started")


@transaction.atomic
def complete_ride(ride_id, actor=None) -> RideResult:
    """
    Complete a STARTED ride.

    Releases the bound driver back to the pool and hands the locked fare to
    the payment hook after commit.

    Args:
        ride_id: ID of the ride to complete
        actor: Calling user; when given it must be the bound driver

    Raises:
        RideNotFoundError: If the ride does not exist
        RideClosedError: If the ride is already completed or cancelled
        RideStateError: If the ride was never started
        NotRideParticipantError: If actor is not the bound driver
    """
    ride = _get_ride(ride_id)

    if ride.is_terminal:
        raise RideClosedError(f"Ride is already {ride.status}")

    if ride.status != RideStatus.STARTED:
        raise RideStateError("Ride has not started yet")

    _ensure_bound_driver(ride, actor, "complete")

    if not _transition(ride, RideStatus.STARTED, RideStatus.COMPLETED, ended_at=timezone.now()):
        raise RideClosedError("Ride is already closed.")

    participants = [ride.rider_id]
    if ride.driver_id:
        driver_registry.release_driver(ride.driver_id)
        participants.append(ride.driver.user_id)
    else:
        logger.warning("Completed ride %s has no bound driver; nothing to release", ride.id)

    get_user_model().objects.filter(pk__in=participants).update(
        completed_rides=F("completed_rides") + 1
    )

    logger.info("Ride %s completed (fare %s)", ride.id, ride.fare)

    from realtime.notifications import notify_rider_event, notify_ride_group
    transaction.on_commit(partial(_notify_payment_hook, ride.id, ride.fare))
    transaction.on_commit(partial(
        notify_rider_event, "ride_completed", ride, "Your ride has been completed. Thank you for riding with us!"
    ))
    transaction.on_commit(partial(notify_ride_group, ride, "ride_completed", "Ride completed by driver"))

    return RideResult(success=True, ride=ride, message="Ride completed successfully")


# ===================== Shared Operations =====================

@transaction.atomic
def cancel_ride(ride_id, actor=None, reason: str = "") -> RideResult:
    """
    Cancel a ride from any non-terminal state.

    If a driver is bound they are released back to the pool. The locked
    fare is never changed; what the rider owes is recorded separately in
    cancellation_charge according to the configured policy.

    Args:
        ride_id: ID of the ride to cancel
        actor: Calling user (rider or bound driver); None for system sweeps
        reason: Free-form cancellation reason

    Raises:
        RideNotFoundError: If the ride does not exist
        RideClosedError: If the ride is already completed or cancelled
        NotRideParticipantError: If actor is neither the rider nor the bound driver
        RideStateError: If the ride changed status while cancelling
    """
    ride = _get_ride(ride_id)

    if ride.is_terminal:
        raise RideClosedError("Ride is already closed.")

    cancelled_by = _cancelled_by(ride, actor)
    previous_status = ride.status
    charge = _cancellation_charge(ride)

    cancelled = _transition(
        ride,
        previous_status,
        RideStatus.CANCELLED,
        ended_at=timezone.now(),
        cancelled_by=cancelled_by,
        cancellation_reason=reason or "",
        cancellation_charge=charge,
    )
    if not cancelled:
        raise RideStateError("Ride status changed, reload and try again")

    had_driver = ride.driver_id is not None
    if had_driver:
        driver_registry.release_driver(ride.driver_id)

    logger.info(
        "Ride %s cancelled by %s from %s (charge %s)",
        ride.id, cancelled_by, previous_status, charge
    )

    from realtime.notifications import (
        notify_rider_event, notify_driver_event, notify_pool_event, notify_ride_group
    )
    if cancelled_by != "rider":
        transaction.on_commit(partial(notify_rider_event, "ride_cancelled", ride, "Your ride was cancelled."))
    if had_driver and cancelled_by != "driver":
        transaction.on_commit(partial(
            notify_driver_event, "ride_cancelled", ride, ride.driver.user_id, "Rider cancelled this ride."
        ))
    if not had_driver:
        transaction.on_commit(partial(notify_pool_event, "ride_cancelled", ride, "Ride request cancelled."))
    transaction.on_commit(partial(notify_ride_group, ride, "ride_cancelled", "Ride cancelled."))

    return RideResult(
        success=True,
        ride=ride,
        message="Ride cancelled successfully",
        extra={"was_assigned": had_driver, "previous_status": previous_status},
    )


def get_rides_for_driver(driver_id, viewer=None) -> List[Ride]:
    """
    All rides bound to one driver, newest first.

    Raises:
        DriverNotFoundError: If the driver does not exist
        NotRideParticipantError: If viewer is given and is not that driver
    """
    profile = driver_registry.get_driver(driver_id)
    if viewer is not None and profile.user_id != viewer.id:
        raise NotRideParticipantError("Drivers can only list their own rides")
    return list(
        Ride.objects.filter(driver=profile)
        .select_related("rider", "driver__user")
        .order_by("-created_at", "-id")
    )


def get_current_driver_ride(profile) -> Optional[Ride]:
    """The driver's one non-terminal ride, if any."""
    return (
        Ride.objects.filter(driver=profile, status__in=Ride.ACTIVE_STATUSES)
        .select_related("rider")
        .first()
    )


def cancel_stale_requests(max_age_minutes: int = None) -> int:
    """
    Cancel REQUESTED rides nobody accepted within max_age_minutes.

    Rides accepted in the meantime are skipped. Returns how many rides were
    cancelled.
    """
    if max_age_minutes is None:
        max_age_minutes = getattr(settings, "RIDE_STALE_REQUEST_MINUTES", 30)

    cutoff = timezone.now() - timedelta(minutes=max_age_minutes)
    stale_ids = list(
        Ride.objects.filter(status=RideStatus.REQUESTED, created_at__lt=cutoff)
        .order_by("created_at")
        .values_list("id", flat=True)
    )

    cancelled = 0
    for ride_id in stale_ids:
        try:
            cancel_ride(ride_id, actor=None, reason="No driver accepted the ride in time")
            cancelled += 1
        except RideflowError as exc:
            logger.info("Skipping stale ride %s: %s", ride_id, exc.message)

    return cancelled


# ===================== Helper Functions =====================

def _coord(value) -> Decimal:
    return Decimal(str(value)).quantize(_COORD)


def _get_ride(ride_id) -> Ride:
    try:
        return Ride.objects.select_related("rider", "driver__user").get(pk=ride_id)
    except (Ride.DoesNotExist, ValueError, TypeError):
        raise RideNotFoundError(f"Ride not found with id: {ride_id}")


def _transition(ride: Ride, expected, new_status, match: Dict[str, Any] = None, **fields) -> bool:
    """
    Move ride from expected to new_status with a conditional UPDATE.

    Returns False without writing if the move is not an edge of the state
    machine or if the stored status is no longer `expected`.
    """
    if ride.status != expected or not ride.can_transition_to(new_status):
        return False

    updated = (
        Ride.objects
        .filter(pk=ride.pk, status=expected, **(match or {}))
        .update(status=new_status, **fields)
    )
    if updated != 1:
        return False

    ride.status = new_status
    for name, value in fields.items():
        setattr(ride, name, value)
    return True


def _may_view(ride: Ride, viewer) -> bool:
    if viewer.id == ride.rider_id:
        return True
    if ride.driver is not None:
        return ride.driver.user_id == viewer.id
    return ride.status == RideStatus.REQUESTED and getattr(viewer, "role", None) == "driver"


def _ensure_bound_driver(ride: Ride, actor, action: str):
    if actor is None:
        return
    if ride.driver is None or ride.driver.user_id != actor.id:
        raise NotRideParticipantError(f"Only the assigned driver can {action} this ride")


def _cancelled_by(ride: Ride, actor) -> str:
    if actor is None:
        return "system"
    if actor.id == ride.rider_id:
        return "rider"
    if ride.driver is not None and actor.id == ride.driver.user_id:
        return "driver"
    raise NotRideParticipantError("Only the rider or the assigned driver can cancel this ride")


def _cancellation_charge(ride: Ride) -> Decimal:
    """What the rider owes for cancelling from the ride's current status."""
    if ride.status == RideStatus.STARTED:
        policy = getattr(settings, "RIDE_STARTED_CANCELLATION_POLICY", "retain")
        return ride.fare if policy == "retain" else _ZERO
    if ride.status == RideStatus.ACCEPTED:
        return Decimal(str(getattr(settings, "RIDE_CANCELLATION_FEE", "0.00"))).quantize(_ZERO)
    return _ZERO


def _notify_payment_hook(ride_id, fare):
    """Fire-and-forget hand-off to the configured payment hook."""
    try:
        hook = import_string(settings.RIDE_PAYMENT_HOOK)
        hook(ride_id, fare)
    except Exception:
        logger.exception("Payment hook failed for ride %s", ride_id)
