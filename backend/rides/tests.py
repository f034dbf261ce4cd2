from datetime import timedelta
from decimal import Decimal
from unittest.mock import patch

from django.core.management import call_command
from django.test import TestCase, override_settings
from django.urls import reverse
from django.utils import timezone
from rest_framework.test import APIClient, APIRequestFactory, force_authenticate

from accounts.models import User
from drivers import services as driver_registry
from drivers.models import DriverProfile, VehicleClass
from payments.models import Payment, PaymentStatus
from services import ride_management
from services.ride_management import (
	Location,
	DriverNotAvailableError,
	InvalidOtpError,
	NotRideParticipantError,
	OtpAttemptsExceededError,
	RideClosedError,
	RideNotAvailableError,
	RideNotFoundError,
	RideStateError,
	RiderNotFoundError,
)
from .checks import check_cancellation_policy
from .models import Ride, RideStatus
from .views import accept_ride, start_ride


PICKUP = Location(12.97, 77.59, 'MG Road')
DROP = Location(12.93, 77.62, 'Koramangala')


class RideFixturesMixin:
	def setUp(self):
		self.rider = User.objects.create_user(
			username='rider',
			password='rider1234',
			role='rider',
			phone_number='9000000000'
		)
		self.driver_one = User.objects.create_user(
			username='driver_one',
			password='driver1234',
			role='driver',
			phone_number='9000000001'
		)
		self.driver_two = User.objects.create_user(
			username='driver_two',
			password='driver1234',
			role='driver',
			phone_number='9000000002'
		)
		self.stranger = User.objects.create_user(
			username='stranger',
			password='stranger1234',
			role='rider'
		)

		self.profile_one = DriverProfile.objects.create(
			user=self.driver_one,
			vehicle_number='KA-01-1001',
			vehicle_class=VehicleClass.CAR,
			is_available=True
		)
		self.profile_two = DriverProfile.objects.create(
			user=self.driver_two,
			vehicle_number='KA-01-1002',
			vehicle_class=VehicleClass.AUTO,
			is_available=True
		)

	def _request(self, vehicle_class='CAR'):
		return ride_management.request_ride(self.rider.id, PICKUP, DROP, vehicle_class).ride

	def _accepted(self):
		ride = self._request()
		ride_management.accept_ride(ride.id, self.driver_one)
		ride.refresh_from_db()
		return ride

	def _started(self):
		ride = self._accepted()
		ride_management.start_ride(ride.id, ride.otp_code, actor=self.driver_one)
		ride.refresh_from_db()
		return ride


class RequestRideTests(RideFixturesMixin, TestCase):
	def test_request_locks_distance_fare_and_otp(self):
		ride = self._request()

		self.assertEqual(ride.status, RideStatus.REQUESTED)
		self.assertIsNone(ride.driver)
		self.assertEqual(ride.distance_km, Decimal('5.5'))
		self.assertEqual(ride.fare, Decimal('129.00'))
		self.assertEqual(len(ride.otp_code), 4)
		self.assertTrue(ride.otp_code.isdigit())
		self.assertIsNone(ride.otp_consumed_at)

	def test_unknown_vehicle_class_is_priced_as_car(self):
		ride = self._request('SPACESHIP')

		self.assertEqual(ride.vehicle_class, VehicleClass.CAR)
		self.assertEqual(ride.fare, Decimal('129.00'))

	def test_vehicle_class_is_case_insensitive(self):
		ride = self._request('bike')

		self.assertEqual(ride.vehicle_class, VehicleClass.BIKE)
		self.assertEqual(ride.fare, Decimal('74.00'))

	def test_unknown_rider_is_rejected(self):
		with self.assertRaises(RiderNotFoundError):
			ride_management.request_ride(99999, PICKUP, DROP)
		self.assertFalse(Ride.objects.exists())

	@override_settings(RIDE_OTP_LENGTH=6)
	def test_otp_length_is_configurable(self):
		ride = self._request()
		self.assertEqual(len(ride.otp_code), 6)

	def test_new_ride_is_in_available_pool(self):
		ride = self._request()
		self.assertIn(ride, list(ride_management.list_available_rides()))

	def test_pool_is_newest_first(self):
		first = self._request()
		second = self._request()
		Ride.objects.filter(pk=first.pk).update(created_at=timezone.now() - timedelta(minutes=5))

		pool = list(ride_management.list_available_rides())
		self.assertEqual(pool, [second, first])


class AcceptRideTests(RideFixturesMixin, TestCase):
	def test_accept_binds_driver_and_marks_unavailable(self):
		ride = self._request()

		result = ride_management.accept_ride(ride.id, self.driver_one)

		self.assertTrue(result.success)
		ride.refresh_from_db()
		self.profile_one.refresh_from_db()
		self.assertEqual(ride.status, RideStatus.ACCEPTED)
		self.assertEqual(ride.driver, self.profile_one)
		self.assertIsNotNone(ride.accepted_at)
		self.assertFalse(self.profile_one.is_available)
		self.assertNotIn(ride, list(ride_management.list_available_rides()))

	def test_second_driver_loses_and_stays_available(self):
		ride = self._request()
		ride_management.accept_ride(ride.id, self.driver_one)

		with self.assertRaises(RideNotAvailableError):
			ride_management.accept_ride(ride.id, self.driver_two)

		ride.refresh_from_db()
		self.profile_two.refresh_from_db()
		self.assertEqual(ride.driver, self.profile_one)
		self.assertTrue(self.profile_two.is_available)

	def test_lost_race_rolls_back_driver_claim(self):
		ride = self._request()
		real_claim = driver_registry.claim_driver

		def claim_after_someone_else_won(driver_id):
			# Another driver takes the ride between the read and the write
			Ride.objects.filter(pk=ride.pk).update(status=RideStatus.ACCEPTED, driver=self.profile_two)
			return real_claim(driver_id)

		with patch('drivers.services.claim_driver', side_effect=claim_after_someone_else_won):
			with self.assertRaises(RideNotAvailableError):
				ride_management.accept_ride(ride.id, self.driver_one)

		self.profile_one.refresh_from_db()
		self.assertTrue(self.profile_one.is_available)

	def test_unavailable_driver_cannot_accept(self):
		driver_registry.set_availability(self.profile_one.id, False)
		ride = self._request()

		with self.assertRaises(DriverNotAvailableError):
			ride_management.accept_ride(ride.id, self.driver_one)

		ride.refresh_from_db()
		self.assertEqual(ride.status, RideStatus.REQUESTED)

	def test_driver_with_active_ride_cannot_accept_another(self):
		self._accepted()
		other = self._request()

		with self.assertRaises(DriverNotAvailableError):
			ride_management.accept_ride(other.id, self.driver_one)

	def test_accept_missing_ride(self):
		with self.assertRaises(RideNotFoundError):
			ride_management.accept_ride(424242, self.driver_one)


class StartRideTests(RideFixturesMixin, TestCase):
	def test_wrong_otp_leaves_ride_accepted(self):
		ride = self._accepted()
		wrong = '0000' if ride.otp_code != '0000' else '1111'

		with self.assertRaises(InvalidOtpError):
			ride_management.start_ride(ride.id, wrong, actor=self.driver_one)

		ride.refresh_from_db()
		self.assertEqual(ride.status, RideStatus.ACCEPTED)
		self.assertIsNone(ride.started_at)
		self.assertIsNone(ride.otp_consumed_at)
		self.assertEqual(ride.otp_failed_attempts, 1)

	def test_correct_otp_starts_ride_and_consumes_code(self):
		ride = self._accepted()

		ride_management.start_ride(ride.id, f'  {ride.otp_code} ', actor=self.driver_one)

		ride.refresh_from_db()
		self.assertEqual(ride.status, RideStatus.STARTED)
		self.assertIsNotNone(ride.started_at)
		self.assertIsNotNone(ride.otp_consumed_at)

	def test_otp_cannot_be_reused(self):
		ride = self._started()

		with self.assertRaises(RideStateError):
			ride_management.start_ride(ride.id, ride.otp_code, actor=self.driver_one)

	def test_cannot_start_requested_ride(self):
		ride = self._request()

		with self.assertRaises(RideStateError):
			ride_management.start_ride(ride.id, ride.otp_code)

	def test_only_bound_driver_can_start(self):
		ride = self._accepted()

		with self.assertRaises(NotRideParticipantError):
			ride_management.start_ride(ride.id, ride.otp_code, actor=self.driver_two)

	@override_settings(RIDE_OTP_MAX_ATTEMPTS=2)
	def test_lockout_after_too_many_wrong_codes(self):
		ride = self._accepted()
		wrong = '0000' if ride.otp_code != '0000' else '1111'

		for _ in range(2):
			with self.assertRaises(InvalidOtpError):
				ride_management.start_ride(ride.id, wrong, actor=self.driver_one)

		with self.assertRaises(OtpAttemptsExceededError):
			ride_management.start_ride(ride.id, ride.otp_code, actor=self.driver_one)


class CompleteRideTests(RideFixturesMixin, TestCase):
	def test_complete_releases_driver_and_records_payment(self):
		ride = self._started()

		with self.captureOnCommitCallbacks(execute=True):
			ride_management.complete_ride(ride.id, actor=self.driver_one)

		ride.refresh_from_db()
		self.profile_one.refresh_from_db()
		self.rider.refresh_from_db()
		self.driver_one.refresh_from_db()

		self.assertEqual(ride.status, RideStatus.COMPLETED)
		self.assertIsNotNone(ride.ended_at)
		self.assertEqual(ride.fare, Decimal('129.00'))
		self.assertTrue(self.profile_one.is_available)
		self.assertEqual(self.rider.completed_rides, 1)
		self.assertEqual(self.driver_one.completed_rides, 1)

		payment = Payment.objects.get(ride=ride)
		self.assertEqual(payment.amount, ride.fare)
		self.assertEqual(payment.status, PaymentStatus.PENDING)

	def test_payment_hook_failure_does_not_undo_completion(self):
		ride = self._started()

		with patch('payments.hooks.celery_payment_hook', side_effect=RuntimeError('broker down')):
			with self.captureOnCommitCallbacks(execute=True):
				ride_management.complete_ride(ride.id, actor=self.driver_one)

		ride.refresh_from_db()
		self.assertEqual(ride.status, RideStatus.COMPLETED)

	def test_accepted_ride_cannot_be_completed(self):
		ride = self._accepted()

		with self.assertRaises(RideStateError):
			ride_management.complete_ride(ride.id, actor=self.driver_one)

	def test_completed_ride_is_closed(self):
		ride = self._started()
		ride_management.complete_ride(ride.id)

		with self.assertRaises(RideClosedError):
			ride_management.complete_ride(ride.id)
		with self.assertRaises(RideClosedError):
			ride_management.cancel_ride(ride.id, actor=self.rider)


class CancelRideTests(RideFixturesMixin, TestCase):
	def test_rider_cancels_requested_ride(self):
		driver_registry.set_availability(self.profile_two.id, False)
		ride = self._request()
		pool_before = driver_registry.find_available()

		result = ride_management.cancel_ride(ride.id, actor=self.rider, reason='changed plans')

		ride.refresh_from_db()
		self.assertEqual(ride.status, RideStatus.CANCELLED)
		self.assertEqual(ride.cancelled_by, 'rider')
		self.assertEqual(ride.cancellation_reason, 'changed plans')
		self.assertEqual(ride.cancellation_charge, Decimal('0.00'))
		self.assertFalse(result.extra['was_assigned'])

		self.assertEqual(driver_registry.find_available(), pool_before)
		self.profile_one.refresh_from_db()
		self.profile_two.refresh_from_db()
		self.assertTrue(self.profile_one.is_available)
		self.assertFalse(self.profile_two.is_available)

	def test_cancel_accepted_ride_releases_driver(self):
		ride = self._accepted()

		ride_management.cancel_ride(ride.id, actor=self.driver_one)

		ride.refresh_from_db()
		self.profile_one.refresh_from_db()
		self.assertEqual(ride.cancelled_by, 'driver')
		self.assertTrue(self.profile_one.is_available)

	@override_settings(RIDE_CANCELLATION_FEE='25.00')
	def test_cancellation_fee_for_accepted_ride(self):
		ride = self._accepted()

		ride_management.cancel_ride(ride.id, actor=self.rider)

		ride.refresh_from_db()
		self.assertEqual(ride.cancellation_charge, Decimal('25.00'))
		self.assertEqual(ride.fare, Decimal('129.00'))

	def test_mid_trip_cancel_retains_fare(self):
		ride = self._started()

		ride_management.cancel_ride(ride.id, actor=self.rider)

		ride.refresh_from_db()
		self.profile_one.refresh_from_db()
		self.assertEqual(ride.status, RideStatus.CANCELLED)
		self.assertEqual(ride.cancellation_charge, ride.fare)
		self.assertTrue(self.profile_one.is_available)

	@override_settings(RIDE_STARTED_CANCELLATION_POLICY='zero')
	def test_mid_trip_cancel_zero_policy(self):
		ride = self._started()

		ride_management.cancel_ride(ride.id, actor=self.rider)

		ride.refresh_from_db()
		self.assertEqual(ride.cancellation_charge, Decimal('0.00'))
		self.assertEqual(ride.fare, Decimal('129.00'))

	def test_stranger_cannot_cancel(self):
		ride = self._request()

		with self.assertRaises(NotRideParticipantError):
			ride_management.cancel_ride(ride.id, actor=self.stranger)

		ride.refresh_from_db()
		self.assertEqual(ride.status, RideStatus.REQUESTED)

	def test_unbound_driver_cannot_cancel(self):
		ride = self._accepted()

		with self.assertRaises(NotRideParticipantError):
			ride_management.cancel_ride(ride.id, actor=self.driver_two)

	def test_cancel_twice_is_rejected(self):
		ride = self._request()
		ride_management.cancel_ride(ride.id, actor=self.rider)

		with self.assertRaises(RideClosedError):
			ride_management.cancel_ride(ride.id, actor=self.rider)


class RideQueryTests(RideFixturesMixin, TestCase):
	def test_rides_for_driver(self):
		ride = self._accepted()
		self._request()

		rides = ride_management.get_rides_for_driver(self.profile_one.id)

		self.assertEqual(rides, [ride])
		self.assertEqual(ride_management.get_rides_for_driver(self.profile_two.id), [])

	def test_rides_for_rider(self):
		first = self._request()
		second = self._request()

		self.assertEqual(set(ride_management.get_rides_for_rider(self.rider)), {first, second})
		self.assertEqual(ride_management.get_rides_for_rider(self.stranger), [])

	def test_current_driver_ride(self):
		ride = self._accepted()
		self.assertEqual(ride_management.get_current_driver_ride(self.profile_one), ride)
		self.assertIsNone(ride_management.get_current_driver_ride(self.profile_two))

	def test_get_ride_status_missing(self):
		with self.assertRaises(RideNotFoundError):
			ride_management.get_ride_status(424242)


class StaleRideSweepTests(RideFixturesMixin, TestCase):
	def test_command_cancels_only_old_requested_rides(self):
		stale = self._request()
		fresh = self._request()
		taken = self._accepted()
		old = timezone.now() - timedelta(minutes=45)
		Ride.objects.filter(pk__in=[stale.pk, taken.pk]).update(created_at=old)

		call_command('cancel_stale_rides', minutes=30)

		stale.refresh_from_db()
		fresh.refresh_from_db()
		taken.refresh_from_db()
		self.assertEqual(stale.status, RideStatus.CANCELLED)
		self.assertEqual(stale.cancelled_by, 'system')
		self.assertEqual(fresh.status, RideStatus.REQUESTED)
		self.assertEqual(taken.status, RideStatus.ACCEPTED)

	def test_celery_task_returns_count(self):
		from .tasks import cancel_stale_rides_task

		stale = self._request()
		Ride.objects.filter(pk=stale.pk).update(created_at=timezone.now() - timedelta(hours=2))

		self.assertEqual(cancel_stale_rides_task.delay(30).get(), 1)


class RideApiTests(RideFixturesMixin, TestCase):
	def setUp(self):
		super().setUp()
		self.client = APIClient()
		self.factory = APIRequestFactory()

	def test_rider_requests_ride(self):
		self.client.force_authenticate(self.rider)
		response = self.client.post(reverse('rides:request-ride'), {
			'pickup_latitude': '12.970000',
			'pickup_longitude': '77.590000',
			'drop_latitude': '12.930000',
			'drop_longitude': '77.620000',
			'vehicle_class': 'car',
		}, format='json')

		self.assertEqual(response.status_code, 201)
		self.assertEqual(response.data['ride']['status'], 'requested')
		self.assertEqual(response.data['ride']['fare'], '129.00')
		self.assertIn('otp', response.data['ride'])

	def test_driver_cannot_request_ride(self):
		self.client.force_authenticate(self.driver_one)
		response = self.client.post(reverse('rides:request-ride'), {
			'pickup_latitude': '12.97',
			'pickup_longitude': '77.59',
			'drop_latitude': '12.93',
			'drop_longitude': '77.62',
		}, format='json')

		self.assertEqual(response.status_code, 403)

	def test_quote_matches_booking(self):
		self.client.force_authenticate(self.rider)
		response = self.client.get(reverse('rides:quote-fare'), {
			'pickup_lat': 12.97, 'pickup_lon': 77.59, 'drop_lat': 12.93, 'drop_lon': 77.62,
		})

		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.data['distance_km'], Decimal('5.5'))
		self.assertEqual(response.data['car_fare'], Decimal('129.00'))
		self.assertEqual(response.data['bike_fare'], Decimal('74.00'))
		self.assertEqual(response.data['auto_fare'], Decimal('96.00'))
		self.assertEqual(response.data['premier_fare'], Decimal('167.50'))

	def test_quote_requires_coordinates(self):
		self.client.force_authenticate(self.rider)
		response = self.client.get(reverse('rides:quote-fare'), {'pickup_lat': 12.97})
		self.assertEqual(response.status_code, 400)

	def test_accept_view_hides_otp_from_driver(self):
		ride = self._request()
		request = self.factory.post('/api/rides/%d/accept/' % ride.id)
		force_authenticate(request, user=self.driver_one)
		response = accept_ride(request, ride_id=ride.id)

		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.data['ride']['status'], 'accepted')
		self.assertNotIn('otp', response.data['ride'])
		self.assertEqual(response.data['ride']['driver']['id'], self.profile_one.id)

	def test_accept_taken_ride_is_conflict(self):
		ride = self._accepted()
		request = self.factory.post('/api/rides/%d/accept/' % ride.id)
		force_authenticate(request, user=self.driver_two)
		response = accept_ride(request, ride_id=ride.id)

		self.assertEqual(response.status_code, 409)
		self.assertFalse(response.data['success'])
		self.assertEqual(response.data['error'], 'ride_not_available')

	def test_start_with_wrong_otp_is_bad_request(self):
		ride = self._accepted()
		wrong = '0000' if ride.otp_code != '0000' else '1111'
		request = self.factory.post('/api/rides/%d/start/' % ride.id, {'otp': wrong}, format='json')
		force_authenticate(request, user=self.driver_one)
		response = start_ride(request, ride_id=ride.id)

		self.assertEqual(response.status_code, 400)
		self.assertEqual(response.data['error'], 'invalid_otp')

	def test_full_trip_over_http(self):
		ride = self._request()

		self.client.force_authenticate(self.driver_one)
		self.assertEqual(self.client.post(reverse('rides:accept-ride', args=[ride.id])).status_code, 200)
		response = self.client.post(reverse('rides:start-ride', args=[ride.id]), {'otp': ride.otp_code}, format='json')
		self.assertEqual(response.status_code, 200)
		response = self.client.post(reverse('rides:complete-ride', args=[ride.id]))
		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.data['ride']['status'], 'completed')

	def test_rider_sees_otp_in_detail_driver_does_not(self):
		ride = self._request()

		self.client.force_authenticate(self.rider)
		self.assertEqual(self.client.get(reverse('rides:ride-detail', args=[ride.id])).data['otp'], ride.otp_code)

		self.client.force_authenticate(self.driver_one)
		self.assertNotIn('otp', self.client.get(reverse('rides:ride-detail', args=[ride.id])).data)

	def test_ride_detail_is_limited_to_participants(self):
		ride = self._request()

		self.client.force_authenticate(self.stranger)
		response = self.client.get(reverse('rides:ride-detail', args=[ride.id]))
		self.assertEqual(response.status_code, 403)
		self.assertEqual(response.data['error'], 'not_ride_participant')

		ride_management.accept_ride(ride.id, self.driver_one)

		self.client.force_authenticate(self.driver_two)
		self.assertEqual(self.client.get(reverse('rides:ride-detail', args=[ride.id])).status_code, 403)

		self.client.force_authenticate(self.driver_one)
		self.assertEqual(self.client.get(reverse('rides:ride-detail', args=[ride.id])).status_code, 200)

	def test_missing_ride_is_not_found(self):
		self.client.force_authenticate(self.rider)
		response = self.client.get(reverse('rides:ride-detail', args=[424242]))
		self.assertEqual(response.status_code, 404)
		self.assertEqual(response.data['error'], 'ride_not_found')

	def test_available_rides_for_drivers_only(self):
		self._request()

		self.client.force_authenticate(self.driver_one)
		response = self.client.get(reverse('rides:available-rides'))
		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.data['count'], 1)

		self.client.force_authenticate(self.rider)
		self.assertEqual(self.client.get(reverse('rides:available-rides')).status_code, 403)

	def test_my_rides(self):
		self._request()
		self.client.force_authenticate(self.rider)
		response = self.client.get(reverse('rides:my-rides'))
		self.assertEqual(response.data['count'], 1)

	def test_cancel_completed_ride_is_conflict(self):
		ride = self._started()
		ride_management.complete_ride(ride.id)

		self.client.force_authenticate(self.rider)
		response = self.client.post(reverse('rides:cancel-ride', args=[ride.id]), {}, format='json')
		self.assertEqual(response.status_code, 409)


class CancellationPolicyCheckTests(TestCase):
	def test_known_policies_pass(self):
		for policy in ('retain', 'zero'):
			with self.subTest(policy=policy), override_settings(RIDE_STARTED_CANCELLATION_POLICY=policy):
				self.assertEqual(check_cancellation_policy(None), [])

	def test_unknown_policy_is_reported(self):
		for policy in ('Retain', 'refund', ''):
			with self.subTest(policy=policy), override_settings(RIDE_STARTED_CANCELLATION_POLICY=policy):
				errors = check_cancellation_policy(None)
				self.assertEqual([error.id for error in errors], ['rides.E001'])
