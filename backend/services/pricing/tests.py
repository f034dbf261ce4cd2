from decimal import Decimal

from django.test import SimpleTestCase

from common.utils import distance_km, round_distance
from drivers.models import VehicleClass
from services.pricing import estimate_fare, quote_fares, resolve_vehicle_class, route_distance


class DistanceTests(SimpleTestCase):
    def test_same_point_is_zero(self):
        self.assertEqual(distance_km(12.97, 77.59, 12.97, 77.59), 0.0)
        self.assertEqual(route_distance(12.97, 77.59, 12.97, 77.59), Decimal('0.0'))

    def test_distance_is_symmetric(self):
        self.assertAlmostEqual(
            distance_km(12.97, 77.59, 12.93, 77.62),
            distance_km(12.93, 77.62, 12.97, 77.59),
        )

    def test_route_distance_rounds_to_tenths(self):
        self.assertAlmostEqual(distance_km(12.97, 77.59, 12.93, 77.62), 5.509, places=2)
        self.assertEqual(route_distance(12.97, 77.59, 12.93, 77.62), Decimal('5.5'))

    def test_round_half_up(self):
        self.assertEqual(round_distance(2.25), Decimal('2.3'))
        self.assertEqual(round_distance(2.24), Decimal('2.2'))


class FareTests(SimpleTestCase):
    def test_zero_distance_costs_base_fare(self):
        for vc in VehicleClass:
            self.assertEqual(estimate_fare(Decimal('0.0'), vc), Decimal('30.00'))

    def test_rates_per_class(self):
        distance = Decimal('10.0')
        self.assertEqual(estimate_fare(distance, VehicleClass.BIKE), Decimal('110.00'))
        self.assertEqual(estimate_fare(distance, VehicleClass.AUTO), Decimal('150.00'))
        self.assertEqual(estimate_fare(distance, VehicleClass.CAR), Decimal('210.00'))
        self.assertEqual(estimate_fare(distance, VehicleClass.PREMIER), Decimal('280.00'))

    def test_unknown_class_falls_back_to_car(self):
        self.assertEqual(resolve_vehicle_class('HOVERCRAFT'), VehicleClass.CAR)
        self.assertEqual(resolve_vehicle_class(None), VehicleClass.CAR)
        self.assertEqual(resolve_vehicle_class(' premier '), VehicleClass.PREMIER)
        self.assertEqual(estimate_fare(Decimal('5.5'), 'HOVERCRAFT'), Decimal('129.00'))

    def test_fare_grows_with_distance(self):
        fares = [estimate_fare(Decimal(d), VehicleClass.AUTO) for d in ('1.0', '1.1', '7.5', '40.0')]
        self.assertEqual(fares, sorted(fares))

    def test_quote_covers_every_class(self):
        quote = quote_fares(12.97, 77.59, 12.93, 77.62).as_dict()

        self.assertEqual(quote['distance_km'], Decimal('5.5'))
        self.assertEqual(quote['bike_fare'], Decimal('74.00'))
        self.assertEqual(quote['auto_fare'], Decimal('96.00'))
        self.assertEqual(quote['car_fare'], Decimal('129.00'))
        self.assertEqual(quote['premier_fare'], Decimal('167.50'))
