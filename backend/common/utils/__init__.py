"""Common utility functions."""

from .geo import EARTH_RADIUS_KM, distance_km, round_distance

__all__ = [
    "EARTH_RADIUS_KM",
    "distance_km",
    "round_distance",
]
