from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated

from accounts.permissions import IsDriver
from common.exceptions import RideflowError, error_response
from drivers.serializers import (
    DriverProfileSerializer,
    DriverBasicSerializer,
    DriverAvailabilitySerializer,
    LocationUpdateSerializer,
)
from rides.serializers import RideSerializer
from services import ride_management

from drivers import services


class DriverProfileView(APIView):
    permission_classes = [IsDriver]

    def get(self, request):
        try:
            profile = services.get_by_user(request.user)
        except RideflowError as exc:
            return error_response(exc)

        serializer = DriverProfileSerializer(profile, context={"request": request})
        return Response(serializer.data)


#    NOTE: WS can replace this in future, but HTTP fallback remains.
class DriverAvailabilityView(APIView):
    permission_classes = [IsDriver]

    def get(self, request):
        try:
            profile = services.get_by_user(request.user)
        except RideflowError as exc:
            return error_response(exc)

        return Response({"is_available": profile.is_available})

    def put(self, request):
        serializer = DriverAvailabilitySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        available = serializer.validated_data["is_available"]

        try:
            profile = services.get_by_user(request.user)
            profile = services.set_availability(profile.id, available)
        except RideflowError as exc:
            return error_response(exc)

        return Response({
            "message": "You are now available" if available else "You are now off duty",
            "is_available": profile.is_available,
        })


#    A candidate to move fully to WS. Keep HTTP fallback.
class DriverLocationUpdateView(APIView):
    permission_classes = [IsDriver]

    def post(self, request):
        serializer = LocationUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        lat = serializer.validated_data["latitude"]
        lon = serializer.validated_data["longitude"]

        try:
            profile = services.get_by_user(request.user)
        except RideflowError as exc:
            return error_response(exc)

        services.update_location(profile, lat, lon)

        return Response({
            "message": "Location updated",
            "latitude": float(lat),
            "longitude": float(lon),
            "is_available": profile.is_available,
        })


class AvailableDriversView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        drivers = services.available_drivers()
        serializer = DriverBasicSerializer(drivers, many=True)
        return Response({"count": len(serializer.data), "drivers": serializer.data})


class DriverCurrentRideView(APIView):
    permission_classes = [IsDriver]

    def get(self, request):
        try:
            profile = services.get_by_user(request.user)
        except RideflowError as exc:
            return error_response(exc)

        ride = ride_management.get_current_driver_ride(profile)
        if not ride:
            return Response({"message": "No active ride"}, status=404)

        serializer = RideSerializer(ride, context={"request": request})
        return Response(serializer.data)


class DriverRidesView(APIView):
    """All rides bound to the calling driver, newest first."""
    permission_classes = [IsDriver]

    def get(self, request, driver_id):
        try:
            rides = ride_management.get_rides_for_driver(driver_id, viewer=request.user)
        except RideflowError as exc:
            return error_response(exc)

        serializer = RideSerializer(rides, many=True, context={"request": request})
        return Response({"count": len(rides), "rides": serializer.data})
