from django.urls import path
from . import views

app_name = 'rides'

urlpatterns = [
    # Rider APIs
    path('quote/', views.quote_fare, name='quote-fare'),
    path('request/', views.request_ride, name='request-ride'),
    path('mine/', views.my_rides, name='my-rides'),

    # Driver APIs
    path('available/', views.available_rides, name='available-rides'),

    # Shared ride actions
    path('<int:ride_id>/', views.ride_detail, name='ride-detail'),
    path('<int:ride_id>/accept/', views.accept_ride, name='accept-ride'),
    path('<int:ride_id>/start/', views.start_ride, name='start-ride'),
    path('<int:ride_id>/complete/', views.complete_ride, name='complete-ride'),
    path('<int:ride_id>/cancel/', views.cancel_ride, name='cancel-ride'),
]
