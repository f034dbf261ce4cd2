from rest_framework import serializers

from accounts.serializers import UserBasicSerializer
from drivers.models import VehicleClass
from drivers.serializers import DriverBasicSerializer
from .models import Ride


class RideSerializer(serializers.ModelSerializer):
    """
    Serializer for rides.

    The OTP is only included for the rider (or when the caller passes
    show_otp=True in the context, as rider notifications do); drivers learn
    it from the rider in person.
    """
    rider = UserBasicSerializer(read_only=True)
    driver = DriverBasicSerializer(read_only=True)
    otp = serializers.CharField(source='otp_code', read_only=True)

    class Meta:
        model = Ride
        fields = ['id', 'rider', 'driver', 'status', 'vehicle_class',
                  'pickup_latitude', 'pickup_longitude', 'pickup_address',
                  'drop_latitude', 'drop_longitude', 'drop_address',
                  'distance_km', 'fare', 'otp', 'created_at', 'accepted_at',
                  'started_at', 'ended_at', 'cancelled_by', 'cancellation_reason',
                  'cancellation_charge']
        read_only_fields = fields

    def to_representation(self, instance):
        data = super().to_representation(instance)
        if not self._may_see_otp(instance):
            data.pop('otp', None)
        return data

    def _may_see_otp(self, instance):
        if self.context.get('show_otp'):
            return True
        request = self.context.get('request')
        user = getattr(request, 'user', None)
        return user is not None and user.is_authenticated and user.id == instance.rider_id


class RideRequestCreateSerializer(serializers.Serializer):
    """Serializer for creating ride requests"""
    pickup_latitude = serializers.DecimalField(max_digits=9, decimal_places=6, min_value=-90, max_value=90)
    pickup_longitude = serializers.DecimalField(max_digits=9, decimal_places=6, min_value=-180, max_value=180)
    pickup_address = serializers.CharField(max_length=255, required=False, allow_blank=True, default='')
    drop_latitude = serializers.DecimalField(max_digits=9, decimal_places=6, min_value=-90, max_value=90)
    drop_longitude = serializers.DecimalField(max_digits=9, decimal_places=6, min_value=-180, max_value=180)
    drop_address = serializers.CharField(max_length=255, required=False, allow_blank=True, default='')
    # Free text on purpose: unknown classes are priced as CAR
    vehicle_class = serializers.CharField(max_length=20, required=False, allow_blank=True, default=VehicleClass.CAR)


class StartRideSerializer(serializers.Serializer):
    """OTP read out by the rider at pickup."""
    otp = serializers.CharField(max_length=12, trim_whitespace=True)


class RideCancelSerializer(serializers.Serializer):
    """Serializer for ride cancellation"""
    reason = serializers.CharField(required=False, allow_blank=True, default='')


class FareQuoteQuerySerializer(serializers.Serializer):
    pickup_lat = serializers.FloatField(min_value=-90, max_value=90)
    pickup_lon = serializers.FloatField(min_value=-180, max_value=180)
    drop_lat = serializers.FloatField(min_value=-90, max_value=90)
    drop_lon = serializers.FloatField(min_value=-180, max_value=180)
