"""Driver WebSocket consumer for ride pool events and location heartbeats."""

import logging
from typing import Dict, Any

from channels.db import database_sync_to_async

from .base import BaseConsumer
from realtime.notifications import DRIVERS_POOL_GROUP

logger = logging.getLogger(__name__)


class DriverConsumer(BaseConsumer):
    """
    WebSocket consumer for drivers.
    
    Handles:
        - Pool notifications (new rides, rides taken by someone else)
        - Targeted ride events (rider cancelled, ...)
        - Location heartbeats
    """

    async def on_connect(self):
        """Set up driver-specific groups on connection."""
        if self.role != "driver":
            await self.send_error("This endpoint is for drivers only")
            await self.close()
            return

        self.driver_group = f"driver_{self.user_id}"
        await self._join_group(self.driver_group)
        await self._join_group(DRIVERS_POOL_GROUP)

        await self.send_json({
            "type": "connection_established",
            "user_id": self.user_id,
            "role": self.role,
            "message": "Driver connected successfully",
        })

    async def handle_message(self, msg_type: str, data: Dict[str, Any]):
        """Handle driver-specific messages."""
        if msg_type == "driver_location_update":
            await self._handle_location_update(data)
        else:
            await self.send_error(f"Unknown message type: {msg_type}")

    async def _handle_location_update(self, data: Dict[str, Any]):
        lat = data.get("latitude")
        lon = data.get("longitude")

        if lat is None or lon is None:
            await self.send_error("driver_location_update requires latitude and longitude")
            return

        saved = await self._update_driver_location_db(lat, lon)
        if saved:
            await self.send_success("location_updated", latitude=float(lat), longitude=float(lon))
        else:
            await self.send_error("Driver profile not found")

    @database_sync_to_async
    def _update_driver_location_db(self, lat, lon) -> bool:
        from common.exceptions import DriverNotFoundError
        from drivers import services

        try:
            profile = services.get_by_user(self.user)
        except DriverNotFoundError:
            return False
        services.update_location(profile, lat, lon)
        return True
