"""
Payment hooks called by the ride lifecycle once a ride completes.

A hook is any callable taking (ride_id, fare); the active one is named by
the RIDE_PAYMENT_HOOK setting.
"""

import logging

logger = logging.getLogger(__name__)


def celery_payment_hook(ride_id, fare):
    """Hand the locked fare to the payments worker."""
    from payments.tasks import record_ride_payment

    try:
        # str keeps the Decimal exact through the JSON serializer
        record_ride_payment.delay(ride_id, str(fare))
    except Exception:
        logger.exception("Failed to enqueue payment for ride %s", ride_id)


def inline_payment_hook(ride_id, fare):
    """Record the payment in-process; handy without a broker."""
    from payments import services

    services.record_ride_payment(ride_id, fare)
