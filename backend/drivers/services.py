"""
Driver registry.

Tracks each driver's availability flag and last known position. The ride
lifecycle owns binding decisions; it flips availability through
claim_driver / release_driver, which are compare-and-swap updates so two
requests can never both take the same driver.
"""

import logging
from typing import List

from django.db import transaction
from django.db.models import Exists, OuterRef
from django.utils import timezone

from common.exceptions import DriverNotFoundError, DriverBusyError
from drivers.models import DriverProfile
from rides.models import Ride

logger = logging.getLogger(__name__)


# LOOKUPS
def get_driver(driver_id) -> DriverProfile:
    """Fetch a driver profile by id or raise DriverNotFoundError."""
    try:
        return DriverProfile.objects.select_related("user").get(pk=driver_id)
    except (DriverProfile.DoesNotExist, ValueError, TypeError):
        raise DriverNotFoundError(f"Driver not found with id: {driver_id}")


def get_by_user(user) -> DriverProfile:
    """Resolve "who is the calling driver" from an authenticated user."""
    try:
        return DriverProfile.objects.select_related("user").get(user_id=user.id)
    except DriverProfile.DoesNotExist:
        raise DriverNotFoundError(f"Driver profile not found for user: {user.id}")


def find_available() -> List[int]:
    """Ids of every driver whose availability flag is currently true."""
    return list(
        DriverProfile.objects.filter(is_available=True)
        .order_by("id")
        .values_list("id", flat=True)
    )


def available_drivers():
    """Queryset of available drivers, for listing endpoints."""
    return DriverProfile.objects.select_related("user").filter(is_available=True).order_by("id")


def has_active_ride(driver_id) -> bool:
    return Ride.objects.filter(driver_id=driver_id, status__in=Ride.ACTIVE_STATUSES).exists()


# AVAILABILITY (compare-and-swap)
def claim_driver(driver_id) -> bool:
    """
    Flip availability true -> false. Returns False if the driver was
    already unavailable, in which case nothing was written.
    """
    updated = DriverProfile.objects.filter(pk=driver_id, is_available=True).update(is_available=False)
    return updated == 1


def release_driver(driver_id) -> bool:
    """Flip availability false -> true. Returns False if it was already true."""
    updated = DriverProfile.objects.filter(pk=driver_id, is_available=False).update(is_available=True)
    if updated:
        logger.info("Driver %s released back to the pool", driver_id)
    return updated == 1


@transaction.atomic
def set_availability(driver_id, available: bool) -> DriverProfile:
    """
    Driver-initiated availability toggle (going on or off duty).

    A driver bound to a non-terminal ride stays unavailable until that ride
    is completed or cancelled.

    Raises:
        DriverNotFoundError: If the driver does not exist
        DriverBusyError: If asked to become available while bound to a ride
    """
    profile = get_driver(driver_id)

    # One conditional UPDATE: the flag only moves from its opposite value,
    # and never to true while a non-terminal ride is bound
    candidates = DriverProfile.objects.filter(pk=profile.pk, is_available=not available)
    if available:
        active_ride = Ride.objects.filter(driver_id=OuterRef("pk"), status__in=Ride.ACTIVE_STATUSES)
        candidates = candidates.filter(~Exists(active_ride))

    if candidates.update(is_available=available):
        logger.info("Driver %s availability set to %s", profile.id, available)
    elif available and has_active_ride(profile.id):
        logger.warning("Driver %s asked to go available while bound to a ride", profile.id)
        raise DriverBusyError("Finish or cancel your current ride before going available")

    profile.refresh_from_db(fields=["is_available"])
    return profile


# LOCATION HEARTBEAT
def update_location(profile: DriverProfile, lat, lon) -> DriverProfile:
    """Record the driver's latest position."""
    profile.current_latitude = lat
    profile.current_longitude = lon
    profile.last_location_update = timezone.now()
    profile.save(update_fields=["current_latitude", "current_longitude", "last_location_update"])
    return profile
