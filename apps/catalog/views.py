"""Catalog API views."""

from __future__ import annotations

import logging
from datetime import date

from django.utils import timezone  # type: ignore
from rest_framework import permissions, serializers, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from apps.bookings.application.queries import cottage_calendar, safari_available_dates, safari_slots
from apps.bookings.repositories import DjangoLedger
from apps.bookings.serializers import AvailabilityRequestSerializer, SafariSelectionValidationSerializer
from shared.application.message_bus import message_bus
from shared.domain.exceptions import InvalidInput

from .models import Cottage, Package, SafariType
from .repositories import DjangoCatalog
from .serializers import CottageSerializer, PackageSerializer, SafariTypeSerializer

logger = logging.getLogger(__name__)


def month_params(request) -> tuple[int, int]:
    """Year and month from the query string, defaulting to the current month."""
    today = timezone.localdate()
    try:
        year = int(request.query_params.get("year", today.year))
        month = int(request.query_params.get("month", today.month))
    except (TypeError, ValueError):
        raise serializers.ValidationError({"month": "year and month must be integers"})
    return year, month


class IsAdminOrReadOnly(permissions.BasePermission):
    """Anyone can browse the catalog; only staff can change it."""

    def has_permission(self, request, view):  # type: ignore
        if request.method in permissions.SAFE_METHODS:
            return True
        user = request.user
        return bool(user and user.is_authenticated and user.is_staff)


class SoftDeleteModelViewSet(viewsets.ModelViewSet):
    """Hides inactive rows from the public and deactivates instead of deleting."""

    permission_classes = [IsAdminOrReadOnly]

    def get_queryset(self):  # type: ignore
        qs = super().get_queryset()
        user = self.request.user
        if user.is_authenticated and user.is_staff:
            return qs
        return qs.active()

    def perform_destroy(self, instance):  # type: ignore
        instance.is_active = False
        instance.save(update_fields=["is_active", "updated_at"])
        logger.info(f"{instance.__class__.__name__} {instance.pk} deactivated by {self.request.user.pk}")


class CottageViewSet(SoftDeleteModelViewSet):
    queryset = Cottage.objects.all()
    serializer_class = CottageSerializer
    lookup_field = "type"
    lookup_url_kwarg = "cottage_type"

    @action(detail=True, methods=["post"], permission_classes=[permissions.AllowAny])
    def availability(self, request, cottage_type=None):  # type: ignore
        serializer = AvailabilityRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        report = message_bus.handle_command(serializer.to_command(cottage_type))

        data = {
            "available": report.available,
            "cottage": {
                "id": str(report.cottage.id),
                "name": report.cottage.name,
                "type": report.cottage.type,
                "base_price": str(report.cottage.base_price),
                "max_guests": report.cottage.max_guests,
                "amenities": list(report.cottage.amenities),
            },
            "dates": {
                "check_in": report.dates.start_date.isoformat(),
                "check_out": report.dates.end_date.isoformat(),
                "nights": report.dates.nights,
            },
            "guests": serializer.validated_data["guests"],
        }
        if report.available:
            data["price"] = report.price.as_display()
            data["total_price"] = report.price.display_total
            message = "Cottage is available for your selected dates"
        else:
            user = request.user
            is_staff = bool(user and user.is_authenticated and user.is_staff)
            data["conflicting_bookings"] = len(report.result.conflicts)
            data["conflicts"] = [
                period.to_dict() if is_staff else period.to_public_dict()
                for period in report.result.conflicts
            ]
            message = "Cottage is not available for the selected dates"
        return Response({"success": True, "message": message, "data": data})

    @action(detail=True, methods=["get"], permission_classes=[permissions.AllowAny])
    def calendar(self, request, cottage_type=None):  # type: ignore
        year, month = month_params(request)
        cottage, periods = cottage_calendar(DjangoCatalog(), DjangoLedger(), cottage_type, year, month)
        return Response({
            "success": True,
            "data": {
                "cottage_type": cottage.type,
                "year": year,
                "month": month,
                "booked_periods": [p.to_public_dict() for p in periods],
            },
        })


class PackageViewSet(SoftDeleteModelViewSet):
    queryset = Package.objects.all()
    serializer_class = PackageSerializer


class SafariTypeViewSet(SoftDeleteModelViewSet):
    queryset = SafariType.objects.all()
    serializer_class = SafariTypeSerializer

    @action(
        detail=True,
        methods=["get"],
        url_path=r"slots/(?P<on_date>\d{4}-\d{2}-\d{2})",
        permission_classes=[permissions.AllowAny],
    )
    def slots(self, request, pk=None, on_date=None):  # type: ignore
        try:
            slot_date = date.fromisoformat(on_date)
        except ValueError:
            raise InvalidInput(f"Invalid date: {on_date}")
        if slot_date < timezone.localdate():
            raise InvalidInput("Cannot book safari for past dates")

        safari, slots = safari_slots(DjangoCatalog(), DjangoLedger(), pk, slot_date)
        return Response({
            "success": True,
            "data": {
                "safari_id": str(safari.id),
                "date": slot_date.isoformat(),
                "time_slots": [slot.to_dict() for slot in slots],
            },
        })

    @action(detail=True, methods=["get"], url_path="available-dates", permission_classes=[permissions.AllowAny])
    def available_dates(self, request, pk=None):  # type: ignore
        year, month = month_params(request)
        safari, days = safari_available_dates(
            DjangoCatalog(), DjangoLedger(), pk, year, month, timezone.localdate()
        )
        return Response({
            "success": True,
            "data": {
                "safari_id": str(safari.id),
                "year": year,
                "month": month,
                "available_dates": [
                    {
                        "date": day.isoformat(),
                        "time_slots": [slot.to_dict() for slot in slots if slot.available],
                    }
                    for day, slots in days
                ],
            },
        })

    @action(
        detail=False,
        methods=["post"],
        url_path="validate-selection",
        permission_classes=[permissions.AllowAny],
    )
    def validate_selection(self, request):  # type: ignore
        serializer = SafariSelectionValidationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        report = message_bus.handle_command(serializer.to_command(timezone.localdate()))

        message = (
            "All safari selections are available"
            if report.all_valid
            else "Some safari selections are not available"
        )
        return Response({
            "success": report.all_valid,
            "message": message,
            "data": {
                "validation_results": report.results,
                "total_price": str(report.total_price),
                "all_valid": report.all_valid,
            },
        })
