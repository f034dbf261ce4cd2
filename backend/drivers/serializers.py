from rest_framework import serializers
from drivers.models import DriverProfile
from accounts.serializers import UserSerializer


class DriverProfileSerializer(serializers.ModelSerializer):
    """
    Full driver profile serializer
    """
    user = UserSerializer(read_only=True)

    class Meta:
        model = DriverProfile
        fields = [
            "id",
            "user",
            "vehicle_number",
            "vehicle_class",
            "is_available",
            "rating",
            "current_latitude",
            "current_longitude",
            "last_location_update",
        ]
        read_only_fields = ["id", "is_available", "rating", "last_location_update"]

    def to_representation(self, instance):
        """Ensure user serializer gets request context for URL generation"""
        representation = super().to_representation(instance)
        if 'user' in representation and instance.user:
            request = self.context.get('request')
            user_serializer = UserSerializer(instance.user, context={'request': request})
            representation['user'] = user_serializer.data
        return representation


class DriverBasicSerializer(serializers.ModelSerializer):
    """
    Lite version of driver info for ride details
    (sent to riders once a driver is bound).
    """
    user_id = serializers.IntegerField(source="user.id", read_only=True)
    name = serializers.CharField(source="user.display_name", read_only=True)
    phone_number = serializers.CharField(source="user.phone_number", read_only=True)

    class Meta:
        model = DriverProfile
        fields = [
            "id",
            "user_id",
            "name",
            "phone_number",
            "vehicle_number",
            "vehicle_class",
            "rating",
            "current_latitude",
            "current_longitude",
        ]


class DriverAvailabilitySerializer(serializers.Serializer):
    """
    Serializer for the driver's on/off duty toggle.
    """
    is_available = serializers.BooleanField()


class LocationUpdateSerializer(serializers.Serializer):
    """
    Serializer for updating driver GPS location.
    """
    latitude = serializers.DecimalField(max_digits=10, decimal_places=6, min_value=-90, max_value=90)
    longitude = serializers.DecimalField(max_digits=10, decimal_places=6, min_value=-180, max_value=180)
