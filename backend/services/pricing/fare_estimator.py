"""
Fare estimation.

A ride is priced once, at request time, from the rounded route distance and
the vehicle class. Quotes shown before booking go through the same code so a
quote and the fare locked into the ride always agree.
"""

from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Union

from common.utils import distance_km, round_distance
from drivers.models import VehicleClass

BASE_FARE = Decimal("30.00")

RATE_PER_KM: Dict[str, Decimal] = {
    VehicleClass.BIKE: Decimal("8.0"),
    VehicleClass.AUTO: Decimal("12.0"),
    VehicleClass.CAR: Decimal("18.0"),
    VehicleClass.PREMIER: Decimal("25.0"),
}

DEFAULT_VEHICLE_CLASS = VehicleClass.CAR

_CENTS = Decimal("0.01")


@dataclass
class FareQuote:
    """Pre-booking estimate for every vehicle class."""
    distance_km: Decimal
    fares: Dict[str, Decimal] = field(default_factory=dict)

    def as_dict(self) -> Dict[str, Union[Decimal, Dict[str, Decimal]]]:
        return {
            "distance_km": self.distance_km,
            "bike_fare": self.fares[VehicleClass.BIKE],
            "auto_fare": self.fares[VehicleClass.AUTO],
            "car_fare": self.fares[VehicleClass.CAR],
            "premier_fare": self.fares[VehicleClass.PREMIER],
        }


def resolve_vehicle_class(vehicle_class) -> VehicleClass:
    """
    Map free-form input onto a known class.

    Unrecognised or missing input falls back to CAR instead of failing.
    """
    if vehicle_class:
        try:
            return VehicleClass(str(vehicle_class).strip().upper())
        except ValueError:
            pass
    return DEFAULT_VEHICLE_CLASS


def estimate_fare(distance, vehicle_class) -> Decimal:
    """
    Price a distance for one vehicle class.

    fare = BASE_FARE + distance * rate, rounded half-up to two decimals.
    """
    rate = RATE_PER_KM[resolve_vehicle_class(vehicle_class)]
    total = BASE_FARE + Decimal(str(distance)) * rate
    return total.quantize(_CENTS, rounding=ROUND_HALF_UP)


def route_distance(pickup_lat, pickup_lon, drop_lat, drop_lon) -> Decimal:
    """Great-circle distance between pickup and drop, rounded to 0.1 km."""
    return round_distance(distance_km(pickup_lat, pickup_lon, drop_lat, drop_lon))


def quote_fares(pickup_lat, pickup_lon, drop_lat, drop_lon) -> FareQuote:
    """Fare for every supported class plus the rounded distance."""
    distance = route_distance(pickup_lat, pickup_lon, drop_lat, drop_lon)
    return FareQuote(
        distance_km=distance,
        fares={vc: estimate_fare(distance, vc) for vc in VehicleClass},
    )
