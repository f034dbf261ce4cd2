"""Tells what to show in the Django admin interface for rides app"""

from django.contrib import admin
from .models import Ride


@admin.register(Ride)
class RideAdmin(admin.ModelAdmin):
    """Ride admin"""
    list_display = ['id', 'rider', 'driver', 'status', 'vehicle_class', 'distance_km', 'fare',
                    'created_at', 'accepted_at', 'ended_at']
    list_filter = ['status', 'vehicle_class', 'created_at']
    search_fields = ['rider__username', 'driver__user__username', 'pickup_address', 'drop_address']
    readonly_fields = ['created_at', 'accepted_at', 'started_at', 'ended_at', 'otp_issued_at',
                       'otp_consumed_at', 'distance_km', 'fare']
    exclude = ['otp_code']
    date_hierarchy = 'created_at'
