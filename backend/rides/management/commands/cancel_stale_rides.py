from django.conf import settings
from django.core.management.base import BaseCommand
from django.utils import timezone
from datetime import timedelta
import logging

from rides.models import Ride, RideStatus
from services.ride_management import cancel_stale_requests

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = "Cancel ride requests that no driver accepted in time."

    def add_arguments(self, parser):
        parser.add_argument(
            "--minutes",
            type=int,
            default=None,
            help="Cancel requests older than this many minutes (default: RIDE_STALE_REQUEST_MINUTES).",
        )
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Show how many rides would be cancelled without cancelling them.",
        )

    def handle(self, *args, **options):
        minutes = options["minutes"]
        if minutes is None:
            minutes = getattr(settings, "RIDE_STALE_REQUEST_MINUTES", 30)

        if options["dry_run"]:
            cutoff = timezone.now() - timedelta(minutes=minutes)
            count = Ride.objects.filter(status=RideStatus.REQUESTED, created_at__lt=cutoff).count()
            self.stdout.write(
                self.style.WARNING(
                    f"DRY RUN: Would cancel {count} ride request(s) older than {minutes} minutes."
                )
            )
            return

        cancelled = cancel_stale_requests(minutes)
        logger.info("Stale sweep cancelled %s ride(s)", cancelled)
        self.stdout.write(
            self.style.SUCCESS(f"Cancelled {cancelled} ride request(s) older than {minutes} minutes.")
        )
