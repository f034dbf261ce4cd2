"""
Geographic utility functions.

This module provides the great-circle distance used for pricing rides.
"""

from decimal import Decimal, ROUND_HALF_UP
from math import radians, cos, sin, atan2, sqrt

EARTH_RADIUS_KM = 6371.0


def distance_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Calculate distance between two points in kilometers using the Haversine formula.

    No range validation is done here; callers validate coordinates.

    Args:
        lat1: Latitude of first point
        lon1: Longitude of first point
        lat2: Latitude of second point
        lon2: Longitude of second point

    Returns:
        Distance in kilometers (never negative)
    """
    lat1, lon1, lat2, lon2 = map(radians, [float(lat1), float(lon1), float(lat2), float(lon2)])
    dlat = lat2 - lat1
    dlon = lon2 - lon1
    a = sin(dlat / 2) ** 2 + cos(lat1) * cos(lat2) * sin(dlon / 2) ** 2
    c = 2 * atan2(sqrt(a), sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def round_distance(km: float) -> Decimal:
    """Round a distance to one decimal place, half-up."""
    return Decimal(str(km)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
