from django.urls import path
from .views import (
    AvailableDriversView,
    DriverProfileView,
    DriverAvailabilityView,
    DriverLocationUpdateView,
    DriverCurrentRideView,
    DriverRidesView,
)

urlpatterns = [
    path("", AvailableDriversView.as_view(), name="available-drivers"),
    path("profile/", DriverProfileView.as_view(), name="driver-profile"),
    path("availability/", DriverAvailabilityView.as_view(), name="driver-availability"),
    path("location/", DriverLocationUpdateView.as_view(), name="driver-location"),
    path("current-ride/", DriverCurrentRideView.as_view(), name="driver-current-ride"),
    path("<int:driver_id>/rides/", DriverRidesView.as_view(), name="driver-rides"),
]
