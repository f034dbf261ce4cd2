from django.test import TestCase
from rest_framework.test import APIClient

from accounts.models import User
from accounts.services import describe_user, resolve_user_by_id
from common.exceptions import RiderNotFoundError
from drivers.models import DriverProfile, VehicleClass


class AuthApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()

    def test_register_rider_returns_tokens(self):
        response = self.client.post('/api/auth/register/', {
            'username': 'asha',
            'password': 'secret1234',
            'phone_number': '9000000010',
        }, format='json')

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data['user']['role'], User.ROLE_RIDER)
        self.assertIn('access', response.data['tokens'])

    def test_register_driver_creates_profile(self):
        response = self.client.post('/api/auth/register/', {
            'username': 'ravi',
            'password': 'secret1234',
            'role': 'driver',
            'vehicle_number': 'KA-05-5005',
            'vehicle_class': 'AUTO',
        }, format='json')

        self.assertEqual(response.status_code, 201)
        profile = DriverProfile.objects.get(user__username='ravi')
        self.assertEqual(profile.vehicle_class, VehicleClass.AUTO)
        self.assertTrue(profile.is_available)

    def test_driver_needs_vehicle_number(self):
        response = self.client.post('/api/auth/register/', {
            'username': 'ravi',
            'password': 'secret1234',
            'role': 'driver',
        }, format='json')
        self.assertEqual(response.status_code, 400)

    def test_login_and_refresh(self):
        User.objects.create_user(username='asha', password='secret1234')

        response = self.client.post('/api/auth/login/', {'username': 'asha', 'password': 'secret1234'}, format='json')
        self.assertEqual(response.status_code, 200)

        refresh = response.data['tokens']['refresh']
        response = self.client.post('/api/auth/refresh/', {'refresh': refresh}, format='json')
        self.assertEqual(response.status_code, 200)
        self.assertIn('access', response.data)

    def test_bad_login(self):
        User.objects.create_user(username='asha', password='secret1234')
        response = self.client.post('/api/auth/login/', {'username': 'asha', 'password': 'nope'}, format='json')
        self.assertEqual(response.status_code, 400)

    def test_bad_refresh_token(self):
        response = self.client.post('/api/auth/refresh/', {'refresh': 'garbage'}, format='json')
        self.assertEqual(response.status_code, 401)

    def test_me(self):
        user = User.objects.create_user(username='asha', password='secret1234', first_name='Asha')
        self.client.force_authenticate(user)
        response = self.client.get('/api/auth/me/')
        self.assertEqual(response.data['username'], 'asha')


class IdentityLookupTests(TestCase):
    def test_resolve_user(self):
        user = User.objects.create_user(username='asha', password='x', first_name='Asha', phone_number='99')
        self.assertEqual(resolve_user_by_id(user.id), user)
        self.assertEqual(describe_user(user), {'id': user.id, 'name': 'Asha', 'phone': '99'})

    def test_missing_user(self):
        with self.assertRaises(RiderNotFoundError):
            resolve_user_by_id(12345)
