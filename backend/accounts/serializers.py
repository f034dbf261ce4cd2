from rest_framework import serializers
from django.contrib.auth import authenticate

from .models import User
from drivers.models import DriverProfile, VehicleClass


class UserSerializer(serializers.ModelSerializer):
    profile_picture_url = serializers.SerializerMethodField(read_only=True)

    class Meta:
        model = User
        fields = [
            "id",
            "username",
            "email",
            "first_name",
            "last_name",
            "role",
            "phone_number",
            "completed_rides",
            "profile_picture",
            "profile_picture_url",
        ]
        read_only_fields = ["id", "role", "completed_rides", "profile_picture_url"]
        extra_kwargs = {
            "profile_picture": {"write_only": True, "required": False}
        }

    def get_profile_picture_url(self, obj):
        """Absolute URL when a request is available, relative otherwise."""
        if obj.profile_picture:
            request = self.context.get("request")
            if request:
                return request.build_absolute_uri(obj.profile_picture.url)
            return obj.profile_picture.url
        return None


class UserBasicSerializer(serializers.ModelSerializer):
    """
    Basic user representation used inside ride responses.
    """
    name = serializers.CharField(source="display_name", read_only=True)

    class Meta:
        model = User
        fields = ['id', 'username', 'name', 'phone_number']


class LoginSerializer(serializers.Serializer):
    username = serializers.CharField()
    password = serializers.CharField(write_only=True)

    def validate(self, data):
        user = authenticate(username=data["username"], password=data["password"])
        if not user:
            raise serializers.ValidationError("Invalid username or password")
        return user


class RegisterSerializer(serializers.ModelSerializer):
    password = serializers.CharField(write_only=True)
    vehicle_number = serializers.CharField(required=False)
    vehicle_class = serializers.ChoiceField(
        choices=VehicleClass.choices, required=False, default=VehicleClass.CAR
    )

    class Meta:
        model = User
        fields = ['username', 'password', 'email', 'first_name', 'last_name', 'role',
                  'phone_number', 'vehicle_number', 'vehicle_class']
    
    def validate_email(self, value):
        if value and User.objects.filter(email=value).exists():
            raise serializers.ValidationError("Email already exists")
        return value

    def validate_vehicle_number(self, value):
        if value and DriverProfile.objects.filter(vehicle_number=value).exists():
            raise serializers.ValidationError("Vehicle number already registered")
        return value
    
    def validate(self, data):
        # If registering as driver, vehicle_number is required
        if data.get('role') == User.ROLE_DRIVER and not data.get('vehicle_number'):
            raise serializers.ValidationError({
                'vehicle_number': 'Vehicle number is required for drivers'
            })
        return data
    
    def create(self, validated_data):
        vehicle_number = validated_data.pop('vehicle_number', None)
        vehicle_class = validated_data.pop('vehicle_class', VehicleClass.CAR)
        
        user = User.objects.create_user(
            username=validated_data['username'],
            email=validated_data.get('email', ''),
            password=validated_data['password'],
            first_name=validated_data.get('first_name', ''),
            last_name=validated_data.get('last_name', ''),
            role=validated_data.get('role', User.ROLE_RIDER),
            phone_number=validated_data.get('phone_number', ''),
        )
        
        # Create driver profile if role is driver
        if user.role == User.ROLE_DRIVER and vehicle_number:
            DriverProfile.objects.create(
                user=user,
                vehicle_number=vehicle_number,
                vehicle_class=vehicle_class,
            )
        
        return user
