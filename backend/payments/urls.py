from django.urls import path
from . import views

app_name = 'payments'

urlpatterns = [
    path('rides/<int:ride_id>/', views.payment_for_ride, name='payment-for-ride'),
    path('<str:transaction_id>/complete/', views.complete_payment, name='complete-payment'),
    path('<str:transaction_id>/', views.payment_detail, name='payment-detail'),
]
