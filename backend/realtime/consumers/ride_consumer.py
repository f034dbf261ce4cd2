"""Ride tracking socket shared by the rider and the bound driver."""

import logging
from typing import Dict, Any

from channels.db import database_sync_to_async

from .base import BaseConsumer

logger = logging.getLogger(__name__)


class RideConsumer(BaseConsumer):
    """
    Clients send {"type": "start_tracking", "ride_id": N} to subscribe to
    ride_<N>. While subscribed they receive ride_started / ride_completed /
    ride_cancelled, and the driver can stream its position with
    {"type": "tracking_update", "ride_id", "latitude", "longitude"}.
    """

    async def on_connect(self):
        self.tracked: Dict[Any, str] = {}
        await super().on_connect()

    async def handle_message(self, msg_type: str, data: Dict[str, Any]):
        handler = {
            "start_tracking": self._start_tracking,
            "stop_tracking": self._stop_tracking,
            "tracking_update": self._tracking_update,
        }.get(msg_type)
        if handler is None:
            await self.send_error(f"Unknown message type: {msg_type}")
            return
        await handler(data)

    async def _start_tracking(self, data: Dict[str, Any]):
        ride_id = data.get("ride_id")
        if ride_id is None:
            await self.send_error("start_tracking requires ride_id")
            return

        if not await self._is_participant(ride_id):
            await self.send_error("You are not authorized to track this ride")
            return

        group = f"ride_{ride_id}"
        await self._join_group(group)
        self.tracked[ride_id] = group
        await self.send_success("tracking_started", ride_id=ride_id)

    async def _stop_tracking(self, data: Dict[str, Any]):
        group = self.tracked.pop(data.get("ride_id"), None)
        if group:
            await self._leave_group(group)
            await self.send_success("tracking_stopped", ride_id=data.get("ride_id"))

    async def _tracking_update(self, data: Dict[str, Any]):
        if self.role != "driver":
            await self.send_error("Only drivers can send tracking updates")
            return

        group = self.tracked.get(data.get("ride_id"))
        lat, lon = data.get("latitude"), data.get("longitude")
        if group is None:
            await self.send_error("Call start_tracking for this ride first")
            return
        if lat is None or lon is None:
            await self.send_error("tracking_update requires latitude and longitude")
            return

        await self.channel_layer.group_send(group, {
            "type": "driver_track_location",
            "user_id": self.user_id,
            "latitude": float(lat),
            "longitude": float(lon),
        })

    async def driver_track_location(self, event):
        await self.send_json({
            "type": "driver_track_location",
            "user_id": event.get("user_id"),
            "latitude": event.get("latitude"),
            "longitude": event.get("longitude"),
        })

    @database_sync_to_async
    def _is_participant(self, ride_id) -> bool:
        from rides.models import Ride

        ride = Ride.objects.select_related("driver").filter(pk=ride_id).first() if str(ride_id).isdigit() else None
        if ride is None:
            return False
        if ride.rider_id == self.user_id:
            return True
        return ride.driver is not None and ride.driver.user_id == self.user_id
