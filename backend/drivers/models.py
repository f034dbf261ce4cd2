from django.db import models
from django.utils import timezone
from django.conf import settings

User = settings.AUTH_USER_MODEL


class VehicleClass(models.TextChoices):
    BIKE = 'BIKE', 'Bike'
    AUTO = 'AUTO', 'Auto'
    CAR = 'CAR', 'Car'
    PREMIER = 'PREMIER', 'Premier'


class DriverProfile(models.Model):
    """Driver-specific details and availability flag"""
    
    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='driver_profile')
    
    # Vehicle details
    vehicle_number = models.CharField(max_length=20, unique=True)
    vehicle_class = models.CharField(max_length=10, choices=VehicleClass.choices, default=VehicleClass.CAR)
    
    # Only ever flipped by a conditional update (see drivers.services)
    is_available = models.BooleanField(default=True)
    rating = models.FloatField(default=5.0)

    # Last heartbeat position
    current_latitude = models.DecimalField(max_digits=10, decimal_places=6, null=True, blank=True)
    current_longitude = models.DecimalField(max_digits=10, decimal_places=6, null=True, blank=True)
    last_location_update = models.DateTimeField(default=timezone.now)
    
    class Meta:
        db_table = 'driver_profiles'
        
    def __str__(self):
        return f"{self.user.username} - {self.vehicle_number}"
