"""Base WebSocket consumer with shared functionality for all consumers."""

import logging
from typing import Dict, Any, Set

from channels.generic.websocket import AsyncJsonWebsocketConsumer

logger = logging.getLogger(__name__)


class BaseConsumer(AsyncJsonWebsocketConsumer):
    """
    Authenticated JSON socket.

    Every connection joins its personal user_<id> group. Subclasses extend
    on_connect() and handle_message().
    """

    async def connect(self):
        self.user = self.scope.get("user")
        if self.user is None or self.user.is_anonymous:
            await self.close()
            return

        self.user_id = self.user.id
        self.role = getattr(self.user, "role", None)
        self.joined_groups: Set[str] = set()

        await self._join_group(f"user_{self.user_id}")
        await self.accept()
        await self.on_connect()

    async def on_connect(self):
        await self.send_json({
            "type": "connection_established",
            "user_id": self.user_id,
            "role": self.role,
        })

    async def disconnect(self, close_code):
        for group in list(getattr(self, "joined_groups", ())):
            await self._leave_group(group)

    async def receive_json(self, data: Dict[str, Any]):
        msg_type = data.get("type")
        if not msg_type:
            await self.send_error("Message type is required")
            return

        try:
            await self.handle_message(msg_type, data)
        except Exception:
            logger.exception("Error handling message type %s from user %s", msg_type, self.user_id)
            await self.send_error(f"Error processing {msg_type}")

    async def handle_message(self, msg_type: str, data: Dict[str, Any]):
        await self.send_error(f"Unknown message type: {msg_type}")

    async def _join_group(self, group_name: str):
        await self.channel_layer.group_add(group_name, self.channel_name)
        self.joined_groups.add(group_name)

    async def _leave_group(self, group_name: str):
        await self.channel_layer.group_discard(group_name, self.channel_name)
        self.joined_groups.discard(group_name)

    async def send_error(self, message: str):
        await self.send_json({"type": "error", "message": message})

    async def send_success(self, event_type: str, **kwargs):
        await self.send_json({"type": event_type, **kwargs})

    async def forward_ride_event(self, event):
        """Relay a ride event published by realtime.notifications."""
        await self.send_json({
            "type": event["type"],
            "ride_id": event.get("ride_id"),
            "status": event.get("status"),
            "message": event.get("message", ""),
            "ride": event.get("ride_data", {}),
        })

    # Channels dispatches on the event type, so each name needs a handler
    ride_requested = forward_ride_event
    ride_taken = forward_ride_event
    ride_accepted = forward_ride_event
    ride_started = forward_ride_event
    ride_completed = forward_ride_event
    ride_cancelled = forward_ride_event
