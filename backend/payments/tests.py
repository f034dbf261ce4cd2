from decimal import Decimal
from unittest.mock import patch

from django.test import TestCase, override_settings
from rest_framework.test import APIClient

from accounts.models import User
from drivers.models import DriverProfile
from payments import services
from payments.hooks import celery_payment_hook, inline_payment_hook
from payments.models import Payment, PaymentStatus
from services import ride_management
from services.ride_management import Location


class PaymentTests(TestCase):
    def setUp(self):
        self.rider = User.objects.create_user(username='rider', password='rider1234', role='rider')
        self.driver = User.objects.create_user(username='driver', password='driver1234', role='driver')
        self.stranger = User.objects.create_user(username='stranger', password='x1234567', role='rider')
        DriverProfile.objects.create(user=self.driver, vehicle_number='KA-03-3001')

        ride = ride_management.request_ride(self.rider.id, Location(12.97, 77.59), Location(12.93, 77.62)).ride
        ride_management.accept_ride(ride.id, self.driver)
        ride_management.start_ride(ride.id, ride.otp_code)
        ride_management.complete_ride(ride.id)
        ride.refresh_from_db()
        self.ride = ride

    def test_record_is_idempotent(self):
        first = services.record_ride_payment(self.ride.id, self.ride.fare)
        second = services.record_ride_payment(self.ride.id, self.ride.fare)

        self.assertEqual(first.pk, second.pk)
        self.assertEqual(Payment.objects.count(), 1)
        self.assertTrue(first.transaction_id.startswith('PAY-'))
        self.assertEqual(len(first.transaction_id), 16)

    def test_record_requires_completed_ride(self):
        open_ride = ride_management.request_ride(self.rider.id, Location(12.97, 77.59), Location(12.93, 77.62)).ride

        with self.assertRaises(services.PaymentStateError):
            services.record_ride_payment(open_ride.id, open_ride.fare)

    def test_celery_hook_creates_pending_payment(self):
        celery_payment_hook(self.ride.id, self.ride.fare)

        payment = services.get_by_ride(self.ride.id)
        self.assertEqual(payment.status, PaymentStatus.PENDING)
        self.assertEqual(payment.amount, Decimal('129.00'))

    def test_celery_hook_swallows_broker_errors(self):
        with patch('payments.tasks.record_ride_payment') as task:
            task.delay.side_effect = ConnectionError('no broker')
            celery_payment_hook(self.ride.id, self.ride.fare)
        self.assertFalse(Payment.objects.exists())

    def test_inline_hook_records_payment_directly(self):
        inline_payment_hook(self.ride.id, self.ride.fare)
        inline_payment_hook(self.ride.id, self.ride.fare)

        payment = services.get_by_ride(self.ride.id)
        self.assertEqual(payment.status, PaymentStatus.PENDING)
        self.assertEqual(payment.amount, self.ride.fare)
        self.assertEqual(Payment.objects.count(), 1)

    @override_settings(RIDE_PAYMENT_HOOK='payments.hooks.inline_payment_hook')
    def test_completion_uses_configured_inline_hook(self):
        ride = ride_management.request_ride(self.rider.id, Location(12.97, 77.59), Location(12.93, 77.62)).ride
        ride_management.accept_ride(ride.id, self.driver)
        ride_management.start_ride(ride.id, ride.otp_code)

        with patch('payments.tasks.record_ride_payment') as task:
            with self.captureOnCommitCallbacks(execute=True):
                ride_management.complete_ride(ride.id)

        task.delay.assert_not_called()
        ride.refresh_from_db()
        payment = services.get_by_ride(ride.id)
        self.assertEqual(payment.amount, ride.fare)
        self.assertEqual(payment.status, PaymentStatus.PENDING)

    def test_complete_payment_once(self):
        payment = services.record_ride_payment(self.ride.id, self.ride.fare)

        completed = services.complete_payment(payment.transaction_id, 'upi')
        self.assertEqual(completed.status, PaymentStatus.COMPLETED)
        self.assertEqual(completed.payment_method, 'upi')

        with self.assertRaises(services.PaymentStateError):
            services.complete_payment(payment.transaction_id)

    def test_unknown_transaction(self):
        with self.assertRaises(services.PaymentNotFoundError):
            services.get_by_transaction('PAY-DOESNOTEXIST')

    def test_api(self):
        payment = services.record_ride_payment(self.ride.id, self.ride.fare)
        client = APIClient()

        client.force_authenticate(self.stranger)
        self.assertEqual(client.get(f'/api/payments/{payment.transaction_id}/').status_code, 403)

        client.force_authenticate(self.rider)
        response = client.get(f'/api/payments/rides/{self.ride.id}/')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['transaction_id'], payment.transaction_id)

        response = client.post(f'/api/payments/{payment.transaction_id}/complete/', {'payment_method': 'card'}, format='json')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['payment']['status'], 'completed')

        response = client.post(f'/api/payments/{payment.transaction_id}/complete/', {}, format='json')
        self.assertEqual(response.status_code, 409)

        self.assertEqual(client.get('/api/payments/rides/99999/').status_code, 404)
