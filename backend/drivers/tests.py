from decimal import Decimal
from unittest.mock import patch

from django.test import TestCase
from django.urls import reverse
from rest_framework.test import APIClient

from accounts.models import User
from common.exceptions import DriverBusyError, DriverNotFoundError
from drivers import services
from drivers.models import DriverProfile, VehicleClass
from services import ride_management
from services.ride_management import Location


class DriverRegistryTests(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(username='driver', password='driver1234', role='driver')
        self.profile = DriverProfile.objects.create(
            user=self.user,
            vehicle_number='KA-02-2001',
            vehicle_class=VehicleClass.BIKE,
        )
        self.rider = User.objects.create_user(username='rider', password='rider1234', role='rider')

    def test_claim_is_compare_and_swap(self):
        self.assertTrue(services.claim_driver(self.profile.id))
        self.assertFalse(services.claim_driver(self.profile.id))

        self.profile.refresh_from_db()
        self.assertFalse(self.profile.is_available)

    def test_release_is_compare_and_swap(self):
        self.assertFalse(services.release_driver(self.profile.id))
        services.claim_driver(self.profile.id)
        self.assertTrue(services.release_driver(self.profile.id))

    def test_find_available(self):
        self.assertEqual(services.find_available(), [self.profile.id])
        services.claim_driver(self.profile.id)
        self.assertEqual(services.find_available(), [])

    def test_lookup_errors(self):
        with self.assertRaises(DriverNotFoundError):
            services.get_driver(99999)
        with self.assertRaises(DriverNotFoundError):
            services.get_by_user(self.rider)

    def test_off_duty_toggle(self):
        services.set_availability(self.profile.id, False)
        self.profile.refresh_from_db()
        self.assertFalse(self.profile.is_available)

        services.set_availability(self.profile.id, True)
        self.profile.refresh_from_db()
        self.assertTrue(self.profile.is_available)

    def test_cannot_go_available_while_bound(self):
        ride = ride_management.request_ride(
            self.rider.id, Location(12.97, 77.59), Location(12.93, 77.62)
        ).ride
        ride_management.accept_ride(ride.id, self.user)

        with self.assertRaises(DriverBusyError):
            services.set_availability(self.profile.id, True)

        self.profile.refresh_from_db()
        self.assertFalse(self.profile.is_available)

    def test_stale_go_available_cannot_unbind_a_claimed_driver(self):
        ride = ride_management.request_ride(
            self.rider.id, Location(12.97, 77.59), Location(12.93, 77.62)
        ).ride
        ride_management.accept_ride(ride.id, self.user)

        # A go-available request whose busy check ran before the accept landed
        with patch("drivers.services.has_active_ride", return_value=False):
            profile = services.set_availability(self.profile.id, True)

        self.assertFalse(profile.is_available)
        ride.refresh_from_db()
        self.profile.refresh_from_db()
        self.assertEqual(ride.driver, self.profile)
        self.assertFalse(self.profile.is_available)
        self.assertEqual(services.find_available(), [])

    def test_going_available_twice_is_a_no_op(self):
        self.assertTrue(services.set_availability(self.profile.id, True).is_available)
        self.assertTrue(services.set_availability(self.profile.id, True).is_available)

    def test_update_location(self):
        services.update_location(self.profile, Decimal('12.971599'), Decimal('77.594566'))

        self.profile.refresh_from_db()
        self.assertEqual(self.profile.current_latitude, Decimal('12.971599'))
        self.assertIsNotNone(self.profile.last_location_update)


class DriverApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.user = User.objects.create_user(username='driver', password='driver1234', role='driver')
        self.profile = DriverProfile.objects.create(user=self.user, vehicle_number='KA-02-2002')
        self.rider = User.objects.create_user(username='rider', password='rider1234', role='rider')
        self.client.force_authenticate(self.user)

    def test_profile(self):
        response = self.client.get('/api/driver/profile/')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['vehicle_number'], 'KA-02-2002')
        self.assertEqual(response.data['vehicle_class'], VehicleClass.CAR)

    def test_riders_are_forbidden(self):
        self.client.force_authenticate(self.rider)
        self.assertEqual(self.client.get('/api/driver/profile/').status_code, 403)

    def test_availability_toggle(self):
        response = self.client.put('/api/driver/availability/', {'is_available': False}, format='json')
        self.assertEqual(response.status_code, 200)
        self.assertFalse(response.data['is_available'])

        response = self.client.get('/api/driver/availability/')
        self.assertFalse(response.data['is_available'])

    def test_availability_conflict_while_bound(self):
        ride = ride_management.request_ride(
            self.rider.id, Location(12.97, 77.59), Location(12.93, 77.62)
        ).ride
        ride_management.accept_ride(ride.id, self.user)

        response = self.client.put('/api/driver/availability/', {'is_available': True}, format='json')
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.data['error'], 'driver_busy')

    def test_location_update(self):
        response = self.client.post(
            '/api/driver/location/', {'latitude': '12.971599', 'longitude': '77.594566'}, format='json'
        )
        self.assertEqual(response.status_code, 200)
        self.profile.refresh_from_db()
        self.assertEqual(self.profile.current_longitude, Decimal('77.594566'))

    def test_location_out_of_range(self):
        response = self.client.post('/api/driver/location/', {'latitude': '123', 'longitude': '0'}, format='json')
        self.assertEqual(response.status_code, 400)

    def test_current_ride(self):
        self.assertEqual(self.client.get('/api/driver/current-ride/').status_code, 404)

        ride = ride_management.request_ride(
            self.rider.id, Location(12.97, 77.59), Location(12.93, 77.62)
        ).ride
        ride_management.accept_ride(ride.id, self.user)

        response = self.client.get('/api/driver/current-ride/')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['id'], ride.id)

    def test_rides_for_driver(self):
        ride = ride_management.request_ride(
            self.rider.id, Location(12.97, 77.59), Location(12.93, 77.62)
        ).ride
        ride_management.accept_ride(ride.id, self.user)

        response = self.client.get(reverse('driver-rides', args=[self.profile.id]))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['count'], 1)

        self.assertEqual(self.client.get(reverse('driver-rides', args=[99999])).status_code, 404)

        other = User.objects.create_user(username='other_driver', password='driver1234', role='driver')
        DriverProfile.objects.create(user=other, vehicle_number='KA-02-2003')
        self.client.force_authenticate(other)
        response = self.client.get(reverse('driver-rides', args=[self.profile.id]))
        self.assertEqual(response.status_code, 403)

    def test_available_drivers_list(self):
        self.client.force_authenticate(self.rider)
        response = self.client.get('/api/driver/')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['count'], 1)
