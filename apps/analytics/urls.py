"""URL routing for analytics endpoints."""

from django.urls import path  # type: ignore

from .views import (
    BookingStatsView,
    DashboardView,
    OccupancyReportView,
    PaymentStatsView,
    RevenueReportView,
)


urlpatterns = [
    # Do not prefix with 'analytics/' here; the prefix is set in config.urls
    path('dashboard/', DashboardView.as_view(), name='analytics-dashboard'),
    path('bookings/stats/', BookingStatsView.as_view(), name='analytics-booking-stats'),
    path('payments/stats/', PaymentStatsView.as_view(), name='analytics-payment-stats'),
    path('reports/revenue/', RevenueReportView.as_view(), name='analytics-revenue'),
    path('reports/occupancy/', OccupancyReportView.as_view(), name='analytics-occupancy'),
]
