"""API views for payment processing.

The gateway integration itself lives outside this service. It verifies the
gateway signature and then reports the outcome here, so the confirm and
failure callbacks are restricted to staff credentials. Guests may only
choose to pay at the property, which needs nothing but their reference.
"""

from __future__ import annotations

import logging

from django.shortcuts import get_object_or_404  # type: ignore
from django_filters.rest_framework import DjangoFilterBackend  # type: ignore
from rest_framework import generics, permissions  # type: ignore
from rest_framework.filters import OrderingFilter  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from apps.bookings.models import Booking
from apps.bookings.serializers import BookingSerializer
from shared.application.message_bus import message_bus

from .filters import PaymentFilterSet
from .models import Payment
from .serializers import (
    AdminPaymentSerializer,
    OfflinePaymentSerializer,
    PaymentConfirmSerializer,
    PaymentFailedSerializer,
    PaymentSerializer,
)

logger = logging.getLogger(__name__)


class PaymentCallbackView(APIView):
    """Validates the payload, dispatches its command and returns the booking."""

    serializer_class = None
    message = ""

    def post(self, request):  # type: ignore
        serializer = self.serializer_class(data=request.data)
        serializer.is_valid(raise_exception=True)
        booking = message_bus.handle_command(serializer.to_command())

        instance = (
            Booking.objects.select_related("cottage", "package")
            .prefetch_related("safari_bookings__safari_type")
            .get(pk=booking.id)
        )
        return Response({"success": True, "message": self.message, "data": BookingSerializer(instance).data})


class PaymentConfirmView(PaymentCallbackView):
    permission_classes = [permissions.IsAdminUser]
    serializer_class = PaymentConfirmSerializer
    message = "Payment confirmed"


class PaymentFailedView(PaymentCallbackView):
    permission_classes = [permissions.IsAdminUser]
    serializer_class = PaymentFailedSerializer
    message = "Payment failure recorded"


class OfflinePaymentView(PaymentCallbackView):
    permission_classes = [permissions.AllowAny]
    serializer_class = OfflinePaymentSerializer
    message = "Booking confirmed, payment will be collected at the property"


class BookingPaymentsView(generics.ListAPIView):
    """Payment attempts recorded for one booking (staff only)."""

    permission_classes = [permissions.IsAdminUser]
    serializer_class = PaymentSerializer
    pagination_class = None

    def get_queryset(self):  # type: ignore
        reference = str(self.kwargs["reference"]).strip().upper()
        booking = get_object_or_404(Booking, reference=reference)
        return Payment.objects.filter(booking=booking).order_by("created_at")


class AdminPaymentListView(generics.ListAPIView):
    """All payment attempts, newest first, filterable by status, method and date."""

    queryset = Payment.objects.select_related("booking").all()
    serializer_class = AdminPaymentSerializer
    permission_classes = [permissions.IsAdminUser]
    filter_backends = [DjangoFilterBackend, OrderingFilter]
    filterset_class = PaymentFilterSet
    ordering_fields = ["created_at", "amount"]
    ordering = ["-created_at"]
