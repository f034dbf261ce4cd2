from django.db import models
from django.conf import settings

from drivers.models import VehicleClass


class RideStatus(models.TextChoices):
    REQUESTED = 'requested', 'Requested'
    ACCEPTED = 'accepted', 'Accepted'
    STARTED = 'started', 'Started'
    COMPLETED = 'completed', 'Completed'
    CANCELLED = 'cancelled', 'Cancelled'


class Ride(models.Model):
    """A single ride from request to completion or cancellation."""

    ACTIVE_STATUSES = (RideStatus.REQUESTED, RideStatus.ACCEPTED, RideStatus.STARTED)
    TERMINAL_STATUSES = (RideStatus.COMPLETED, RideStatus.CANCELLED)

    # Forward-only state machine
    TRANSITIONS = {
        RideStatus.REQUESTED: (RideStatus.ACCEPTED, RideStatus.CANCELLED),
        RideStatus.ACCEPTED: (RideStatus.STARTED, RideStatus.CANCELLED),
        RideStatus.STARTED: (RideStatus.COMPLETED, RideStatus.CANCELLED),
        RideStatus.COMPLETED: (),
        RideStatus.CANCELLED: (),
    }

    CANCELLED_BY_CHOICES = [
        ('rider', 'Rider'),
        ('driver', 'Driver'),
        ('system', 'System'),
    ]

    rider = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='rides'
    )

    # Set once on acceptance; the driver has no back-pointer to its ride
    driver = models.ForeignKey(
        'drivers.DriverProfile',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='rides'
    )

    status = models.CharField(max_length=20, choices=RideStatus.choices, default=RideStatus.REQUESTED)
    vehicle_class = models.CharField(max_length=10, choices=VehicleClass.choices, default=VehicleClass.CAR)

    # Pickup location
    pickup_latitude = models.DecimalField(max_digits=9, decimal_places=6)
    pickup_longitude = models.DecimalField(max_digits=9, decimal_places=6)
    pickup_address = models.TextField(blank=True, default='')

    # Drop location
    drop_latitude = models.DecimalField(max_digits=9, decimal_places=6)
    drop_longitude = models.DecimalField(max_digits=9, decimal_places=6)
    drop_address = models.TextField(blank=True, default='')

    # Locked at request time
    distance_km = models.DecimalField(max_digits=8, decimal_places=1)
    fare = models.DecimalField(max_digits=10, decimal_places=2)

    # OTP binding
    otp_code = models.CharField(max_length=6)
    otp_issued_at = models.DateTimeField()
    otp_consumed_at = models.DateTimeField(null=True, blank=True)
    otp_failed_attempts = models.PositiveIntegerField(default=0)

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    accepted_at = models.DateTimeField(null=True, blank=True)
    started_at = models.DateTimeField(null=True, blank=True)
    ended_at = models.DateTimeField(null=True, blank=True)

    cancelled_by = models.CharField(max_length=10, choices=CANCELLED_BY_CHOICES, blank=True, default='')
    cancellation_reason = models.TextField(blank=True, default='')
    cancellation_charge = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)

    class Meta:
        db_table = 'rides'
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['status', 'created_at'], name='rides_status_created_idx'),
        ]

    def __str__(self):
        return f"Ride #{self.id} - {self.rider} - {self.status}"

    @property
    def is_terminal(self):
        return self.status in self.TERMINAL_STATUSES

    @property
    def otp_consumed(self):
        return self.otp_consumed_at is not None

    def can_transition_to(self, new_status) -> bool:
        return new_status in self.TRANSITIONS.get(RideStatus(self.status), ())
