"""
Pricing service.

This module handles:
    - Per-class fare estimation
    - Fare quotes across all vehicle classes
"""

from .fare_estimator import (
    BASE_FARE,
    RATE_PER_KM,
    FareQuote,
    estimate_fare,
    quote_fares,
    resolve_vehicle_class,
    route_distance,
)

__all__ = [
    "BASE_FARE",
    "RATE_PER_KM",
    "FareQuote",
    "estimate_fare",
    "quote_fares",
    "resolve_vehicle_class",
    "route_distance",
]
