"""Celery tasks for payment bookkeeping."""

import logging

from celery import shared_task

logger = logging.getLogger(__name__)


@shared_task
def record_ride_payment(ride_id: int, amount: str):
    """Create the pending payment for a ride that just completed."""
    from payments import services

    payment = services.record_ride_payment(ride_id, amount)
    return payment.transaction_id
