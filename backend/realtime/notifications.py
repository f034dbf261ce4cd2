"""
Notification helpers for sending WebSocket messages to connected clients.

These run after the ride transaction commits. Delivery is best effort: a
failure is logged and never undoes the ride change that triggered it.
"""

from __future__ import annotations

import logging
from typing import Dict, Any

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer

logger = logging.getLogger(__name__)

DRIVERS_POOL_GROUP = "drivers_pool"


def _group_send(group: str, payload: Dict[str, Any]) -> bool:
    channel_layer = get_channel_layer()
    if channel_layer is None:
        return False
    try:
        logger.debug("WS -> %s: %s", group, payload.get("type"))
        async_to_sync(channel_layer.group_send)(group, payload)
    except Exception:
        logger.exception("Failed to notify group %s", group)
        return False
    return True


def _ride_data(ride, show_otp: bool = False) -> Dict[str, Any]:
    from rides.serializers import RideSerializer
    return RideSerializer(ride, context={"show_otp": show_otp}).data


def notify_driver_event(
    event_type: str,
    ride,
    driver_user_id: int | None,
    message: str = "",
    extra: Dict[str, Any] = None,
) -> bool:
    """
    Send an event to a specific driver using their personal group: driver_<user_id>
    
    Args:
        event_type: Handler name in consumer (ride_cancelled, ...)
        ride: Ride model instance
        driver_user_id: Target driver's user ID
        message: Optional message to include
        extra: Additional payload data
    
    Returns:
        True if sent successfully, False otherwise
    """
    if not driver_user_id:
        return False

    payload = {
        "type": event_type,
        "ride_id": ride.id,
        "status": ride.status,
        "ride_data": _ride_data(ride),
        **(extra or {}),
    }
    if message:
        payload["message"] = message

    return _group_send(f"driver_{driver_user_id}", payload)


def notify_rider_event(
    event_type: str,
    ride,
    message: str = "",
    extra: Dict[str, Any] = None,
) -> bool:
    """
    Send ride-related event to the rider through: user_<rider_id>

    The rider is the only party that receives the OTP.
    """
    if not ride.rider_id:
        return False

    payload = {
        "type": event_type,
        "ride_id": ride.id,
        "status": ride.status,
        "ride_data": _ride_data(ride, show_otp=True),
        **(extra or {}),
    }
    if message:
        payload["message"] = message

    return _group_send(f"user_{ride.rider_id}", payload)


def notify_pool_event(event_type: str, ride, message: str = "") -> bool:
    """Tell every connected driver that a ride entered or left the pool."""
    payload = {
        "type": event_type,
        "ride_id": ride.id,
        "status": ride.status,
        "ride_data": _ride_data(ride),
    }
    if message:
        payload["message"] = message

    return _group_send(DRIVERS_POOL_GROUP, payload)


def notify_ride_group(ride, event_type: str, message: str) -> bool:
    """Send notification to all participants in a ride group."""
    return _group_send(
        f"ride_{ride.id}",
        {
            "type": event_type,
            "ride_id": ride.id,
            "status": ride.status,
            "message": message,
        },
    )
