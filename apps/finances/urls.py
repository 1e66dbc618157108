"""URL routing for the finance domain."""

from __future__ import annotations

from django.urls import path  # type: ignore

from .views import (
    AdminPaymentListView,
    BookingPaymentsView,
    OfflinePaymentView,
    PaymentConfirmView,
    PaymentFailedView,
)

urlpatterns = [
    path("confirm/", PaymentConfirmView.as_view(), name="payment-confirm"),
    path("failed/", PaymentFailedView.as_view(), name="payment-failed"),
    path("offline/", OfflinePaymentView.as_view(), name="payment-offline"),
    path("booking/<str:reference>/", BookingPaymentsView.as_view(), name="payment-by-booking"),
    path("admin/", AdminPaymentListView.as_view(), name="payment-admin-list"),
]
