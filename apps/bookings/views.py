"""API views for the booking domain.

Views only translate HTTP to commands and back. Domain errors raised by the
handlers are turned into responses by ``shared.infrastructure.drf``.
"""

from __future__ import annotations

import logging

from django.shortcuts import get_object_or_404  # type: ignore
from django_filters.rest_framework import DjangoFilterBackend  # type: ignore
from rest_framework import generics, permissions, status, viewsets  # type: ignore
from rest_framework.filters import OrderingFilter  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from shared.application.message_bus import message_bus

from .filters import BookingFilterSet
from .models import Booking
from .serializers import (
    AdminBookingSerializer,
    BookingCreateSerializer,
    BookingSerializer,
    BookingStatusUpdateSerializer,
    PaymentStatusUpdateSerializer,
    QuoteRequestSerializer,
    TotalOverrideSerializer,
)

logger = logging.getLogger(__name__)


def quote_payload(quote) -> dict:
    return {
        "cottage": {
            "id": str(quote.cottage.id),
            "name": quote.cottage.name,
            "type": quote.cottage.type,
            "max_guests": quote.cottage.max_guests,
        },
        "package": {"id": str(quote.package.id), "name": quote.package.name} if quote.package else None,
        "dates": {
            "check_in": quote.dates.start_date.isoformat(),
            "check_out": quote.dates.end_date.isoformat(),
            "nights": quote.dates.nights,
        },
        "price": quote.price.as_display(),
        "total_amount": quote.price.display_total,
    }


class BookingQuoteView(APIView):
    """Price breakdown for a stay, without reserving anything."""

    permission_classes = [permissions.AllowAny]

    def post(self, request):  # type: ignore
        serializer = QuoteRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        quote = message_bus.handle_command(serializer.to_command())
        return Response({"success": True, "data": quote_payload(quote)})


class BookingCreateView(APIView):
    permission_classes = [permissions.AllowAny]

    def post(self, request):  # type: ignore
        serializer = BookingCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        booking = message_bus.handle_command(serializer.to_command())

        instance = Booking.objects.select_related("cottage", "package").get(pk=booking.id)
        data = BookingSerializer(instance).data
        return Response(
            {"success": True, "message": "Booking created successfully", "data": data},
            status=status.HTTP_201_CREATED,
        )


class BookingByReferenceView(generics.RetrieveAPIView):
    """Customer lookup by booking reference."""

    permission_classes = [permissions.AllowAny]
    serializer_class = BookingSerializer
    queryset = Booking.objects.select_related("cottage", "package").prefetch_related("safari_bookings__safari_type")
    lookup_field = "reference"

    def get_object(self):  # type: ignore
        reference = str(self.kwargs["reference"]).strip().upper()
        return get_object_or_404(self.get_queryset(), reference=reference)


class AdminBookingViewSet(viewsets.ReadOnlyModelViewSet):
    """Admin listing plus the status, payment and total transitions."""

    queryset = (
        Booking.objects.select_related("cottage", "package")
        .prefetch_related("safari_bookings__safari_type", "payments")
        .all()
    )
    serializer_class = AdminBookingSerializer
    permission_classes = [permissions.IsAdminUser]
    filter_backends = [DjangoFilterBackend, OrderingFilter]
    filterset_class = BookingFilterSet
    ordering_fields = ["created_at", "check_in", "total_amount"]
    ordering = ["-created_at"]

    def _respond(self, booking_id):
        instance = self.get_queryset().get(pk=booking_id)
        return Response({"success": True, "data": self.get_serializer(instance).data})

    def update_status(self, request, pk=None):  # type: ignore
        serializer = BookingStatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        booking = message_bus.handle_command(serializer.to_command(pk))
        logger.info(f"Admin {request.user.pk} set booking {booking.reference} to {booking.status.value}")
        return self._respond(booking.id)

    def update_payment(self, request, pk=None):  # type: ignore
        serializer = PaymentStatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        booking = message_bus.handle_command(serializer.to_command(pk))
        logger.info(
            f"Admin {request.user.pk} set booking {booking.reference} payment to {booking.payment_status.value}"
        )
        return self._respond(booking.id)

    def override_total(self, request, pk=None):  # type: ignore
        serializer = TotalOverrideSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        booking = message_bus.handle_command(serializer.to_command(pk))
        logger.info(f"Admin {request.user.pk} overrode total of {booking.reference}")
        return self._respond(booking.id)
