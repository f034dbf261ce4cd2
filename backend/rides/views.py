import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounts.permissions import IsRider, IsDriver
from common.exceptions import RideflowError, error_response
from services import ride_management
from services.pricing import quote_fares
from .serializers import (
    RideSerializer,
    RideRequestCreateSerializer,
    StartRideSerializer,
    RideCancelSerializer,
    FareQuoteQuerySerializer,
)

logger = logging.getLogger(__name__)


def _ride_response(request, result, http_status=status.HTTP_200_OK, **extra):
    serializer = RideSerializer(result.ride, context={'request': request})
    return Response({
        'success': True,
        'message': result.message,
        'ride': serializer.data,
        **(result.extra or {}),
        **extra,
    }, status=http_status)


# ==================== Rider Ride APIs ====================

@api_view(['GET'])
@permission_classes([IsAuthenticated])
def quote_fare(request):
    """Fare for every vehicle class between two points, before booking."""
    serializer = FareQuoteQuerySerializer(data=request.query_params)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    quote = quote_fares(data['pickup_lat'], data['pickup_lon'], data['drop_lat'], data['drop_lon'])
    return Response(quote.as_dict())


@api_view(['POST'])
@permission_classes([IsRider])
def request_ride(request):
    """Create a new ride request; it goes straight into the open pool."""
    serializer = RideRequestCreateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    pickup = ride_management.Location(
        latitude=data['pickup_latitude'],
        longitude=data['pickup_longitude'],
        address=data['pickup_address'],
    )
    drop = ride_management.Location(
        latitude=data['drop_latitude'],
        longitude=data['drop_longitude'],
        address=data['drop_address'],
    )

    try:
        result = ride_management.request_ride(request.user.id, pickup, drop, data['vehicle_class'])
    except RideflowError as exc:
        return error_response(exc)

    return _ride_response(request, result, status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsRider])
def my_rides(request):
    """Ride history of the calling rider, newest first."""
    rides = ride_management.get_rides_for_rider(request.user)
    serializer = RideSerializer(rides, many=True, context={'request': request})
    return Response({'count': len(rides), 'rides': serializer.data})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def ride_detail(request, ride_id):
    """Current state of one ride for its rider or driver (polling fallback for the websocket)."""
    try:
        ride = ride_management.get_ride_status(ride_id, viewer=request.user)
    except RideflowError as exc:
        return error_response(exc)

    serializer = RideSerializer(ride, context={'request': request})
    return Response(serializer.data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def cancel_ride(request, ride_id):
    """Cancel by the rider or by the bound driver."""
    serializer = RideCancelSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        result = ride_management.cancel_ride(
            ride_id,
            actor=request.user,
            reason=serializer.validated_data['reason'],
        )
    except RideflowError as exc:
        return error_response(exc)

    return _ride_response(request, result)


# ==================== Driver Ride APIs ====================

@api_view(['GET'])
@permission_classes([IsDriver])
def available_rides(request):
    """Open pool of REQUESTED rides, newest first."""
    rides = ride_management.list_available_rides()
    serializer = RideSerializer(rides, many=True, context={'request': request})
    return Response({'count': len(serializer.data), 'rides': serializer.data})


@api_view(['POST'])
@permission_classes([IsDriver])
def accept_ride(request, ride_id):
    """Claim a ride from the pool."""
    try:
        result = ride_management.accept_ride(ride_id, request.user)
    except RideflowError as exc:
        return error_response(exc)

    return _ride_response(request, result)


@api_view(['POST'])
@permission_classes([IsDriver])
def start_ride(request, ride_id):
    """Start the trip once the rider's OTP matches."""
    serializer = StartRideSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        result = ride_management.start_ride(
            ride_id,
            serializer.validated_data['otp'],
            actor=request.user,
        )
    except RideflowError as exc:
        return error_response(exc)

    return _ride_response(request, result)


@api_view(['POST'])
@permission_classes([IsDriver])
def complete_ride(request, ride_id):
    """Finish the trip and hand the fare to payments."""
    try:
        result = ride_management.complete_ride(ride_id, actor=request.user)
    except RideflowError as exc:
        return error_response(exc)

    return _ride_response(request, result)
