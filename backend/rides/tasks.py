"""Celery tasks for ride-related background processing."""

from celery import shared_task
import logging

logger = logging.getLogger(__name__)


@shared_task
def cancel_stale_rides_task(max_age_minutes: int = None):
    """
    Periodic sweep (celery beat) that cancels REQUESTED rides nobody
    accepted in time, so riders are not left waiting forever.
    """
    from services.ride_management import cancel_stale_requests

    cancelled = cancel_stale_requests(max_age_minutes)
    if cancelled:
        logger.info("Cancelled %s stale ride request(s)", cancelled)
    return cancelled
