from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from channels.testing import WebsocketCommunicator
from django.contrib.auth.models import AnonymousUser
from django.test import SimpleTestCase, TestCase

from accounts.models import User
from realtime.consumers import DriverConsumer
from realtime.notifications import DRIVERS_POOL_GROUP, notify_pool_event, notify_rider_event
from services import ride_management
from services.ride_management import Location


def _communicator(user):
    communicator = WebsocketCommunicator(DriverConsumer.as_asgi(), "/ws/driver/")
    communicator.scope["user"] = user
    return communicator


class DriverConsumerTests(SimpleTestCase):
    async def test_anonymous_is_rejected(self):
        communicator = _communicator(AnonymousUser())
        connected, _ = await communicator.connect()
        self.assertFalse(connected)

    async def test_driver_receives_pool_events(self):
        communicator = _communicator(User(id=7, username="driver", role="driver"))
        connected, _ = await communicator.connect()
        self.assertTrue(connected)

        greeting = await communicator.receive_json_from()
        self.assertEqual(greeting["type"], "connection_established")

        await get_channel_layer().group_send(DRIVERS_POOL_GROUP, {
            "type": "ride_requested",
            "ride_id": 11,
            "status": "requested",
            "message": "New ride request nearby.",
            "ride_data": {"id": 11},
        })
        event = await communicator.receive_json_from()
        self.assertEqual(event["type"], "ride_requested")
        self.assertEqual(event["ride_id"], 11)

        await communicator.disconnect()

    async def test_rider_is_turned_away(self):
        communicator = _communicator(User(id=8, username="rider", role="rider"))
        await communicator.connect()

        error = await communicator.receive_json_from()
        self.assertEqual(error["type"], "error")
        await communicator.disconnect()

    async def test_unknown_message_type(self):
        communicator = _communicator(User(id=9, username="driver", role="driver"))
        await communicator.connect()
        await communicator.receive_json_from()

        await communicator.send_json_to({"type": "dance"})
        reply = await communicator.receive_json_from()
        self.assertEqual(reply["type"], "error")
        await communicator.disconnect()


class NotificationTests(TestCase):
    def setUp(self):
        self.rider = User.objects.create_user(username="rider", password="rider1234")
        self.ride = ride_management.request_ride(
            self.rider.id, Location(12.97, 77.59), Location(12.93, 77.62)
        ).ride
        self.layer = get_channel_layer()

    def _listen(self, group):
        channel = async_to_sync(self.layer.new_channel)()
        async_to_sync(self.layer.group_add)(group, channel)
        return channel

    def test_pool_event_hides_otp(self):
        channel = self._listen(DRIVERS_POOL_GROUP)

        self.assertTrue(notify_pool_event("ride_requested", self.ride, "New ride"))

        message = async_to_sync(self.layer.receive)(channel)
        self.assertEqual(message["ride_id"], self.ride.id)
        self.assertNotIn("otp", message["ride_data"])

    def test_rider_event_carries_otp(self):
        channel = self._listen(f"user_{self.rider.id}")

        notify_rider_event("ride_accepted", self.ride, "Driver on the way")

        message = async_to_sync(self.layer.receive)(channel)
        self.assertEqual(message["type"], "ride_accepted")
        self.assertEqual(message["ride_data"]["otp"], self.ride.otp_code)
