from django.urls import path
from .views import CreateBookingView, PriceComparisonView, PriceEstimateView, VehicleRatesView

app_name = 'fares'

urlpatterns = [
    path('api/price/', PriceEstimateView.as_view(), name='price_estimate'),
    path('api/price/compare/', PriceComparisonView.as_view(), name='price_compare'),
    path('api/vehicles/', VehicleRatesView.as_view(), name='vehicle_rates'),
    path('api/bookings/', CreateBookingView.as_view(), name='create_booking'),
]
