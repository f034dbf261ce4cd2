from django.db import models
from django.contrib.auth.models import AbstractUser


class User(AbstractUser):
    """Extended user model with role selection"""
    ROLE_RIDER = 'rider'
    ROLE_DRIVER = 'driver'
    ROLE_CHOICES = [
        (ROLE_RIDER, 'Rider'),
        (ROLE_DRIVER, 'Driver'),
    ]
    
    # Role & basic info
    role = models.CharField(max_length=10, choices=ROLE_CHOICES, default=ROLE_RIDER)
    phone_number = models.CharField(max_length=15, blank=True)
    profile_picture = models.ImageField(upload_to='profile_pictures/', null=True, blank=True)
    completed_rides = models.IntegerField(default=0)
    
    class Meta:
        db_table = 'users'

    @property
    def display_name(self):
        return self.get_full_name() or self.username
        
    def __str__(self):
        return f"{self.username} ({self.get_role_display()})"
