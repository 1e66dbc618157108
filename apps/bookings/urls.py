"""URL routing for the booking domain."""

from __future__ import annotations

from django.urls import path  # type: ignore

from .views import (
    AdminBookingViewSet,
    BookingByReferenceView,
    BookingCreateView,
    BookingQuoteView,
)

admin_list = AdminBookingViewSet.as_view({"get": "list"})
admin_detail = AdminBookingViewSet.as_view({"get": "retrieve"})
admin_status = AdminBookingViewSet.as_view({"patch": "update_status"})
admin_payment = AdminBookingViewSet.as_view({"patch": "update_payment"})
admin_total = AdminBookingViewSet.as_view({"patch": "override_total"})

urlpatterns = [
    path("", BookingCreateView.as_view(), name="booking-list"),
    path("quote/", BookingQuoteView.as_view(), name="booking-quote"),
    path("reference/<str:reference>/", BookingByReferenceView.as_view(), name="booking-by-reference"),
    # Admin
    path("admin/", admin_list, name="booking-admin-list"),
    path("admin/<uuid:pk>/", admin_detail, name="booking-admin-detail"),
    path("<uuid:pk>/status/", admin_status, name="booking-status"),
    path("<uuid:pk>/payment/", admin_payment, name="booking-payment"),
    path("<uuid:pk>/total/", admin_total, name="booking-total"),
]
