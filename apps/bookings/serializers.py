"""Serializers for the booking domain."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from apps.finances.serializers import PaymentSerializer

from .application.command_handlers import (
    CheckAvailabilityCommand,
    CreateBookingCommand,
    OverrideTotalCommand,
    QuotePriceCommand,
    SafariSelection,
    UpdateBookingStatusCommand,
    UpdatePaymentStatusCommand,
    ValidateSafariSelectionCommand,
)
from .domain.entities import BookingStatus, GuestContact, PaymentStatus
from .models import Booking, SafariBooking


class SafariSelectionSerializer(serializers.Serializer):
    safari_id = serializers.UUIDField()
    date = serializers.DateField()
    time_slot = serializers.CharField(max_length=50)
    participants = serializers.IntegerField(min_value=1)


class GuestDetailsSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=150)
    email = serializers.EmailField()
    phone = serializers.CharField(max_length=30, required=False, allow_blank=True, default="")


class AvailabilityRequestSerializer(serializers.Serializer):
    check_in = serializers.DateField()
    check_out = serializers.DateField()
    guests = serializers.IntegerField(min_value=1)
    package_id = serializers.UUIDField(required=False, allow_null=True)

    def to_command(self, cottage_type: str) -> CheckAvailabilityCommand:
        data = self.validated_data
        return CheckAvailabilityCommand(
            cottage_type=cottage_type,
            check_in=data["check_in"],
            check_out=data["check_out"],
            guests=data["guests"],
            package_id=data.get("package_id"),
        )


class QuoteRequestSerializer(serializers.Serializer):
    """Stay and extras; shared by the quote and booking endpoints."""

    cottage_type = serializers.SlugField(max_length=100)
    check_in = serializers.DateField()
    check_out = serializers.DateField()
    adults = serializers.IntegerField(min_value=1)
    children = serializers.IntegerField(min_value=0, required=False, default=0)
    package_id = serializers.UUIDField(required=False, allow_null=True)
    safaris = SafariSelectionSerializer(many=True, required=False, default=list)

    def _selections(self) -> list[SafariSelection]:
        return [
            SafariSelection(
                safari_type_id=item["safari_id"],
                date=item["date"],
                time_slot=item["time_slot"],
                participants=item["participants"],
            )
            for item in self.validated_data.get("safaris", [])
        ]

    def to_command(self) -> QuotePriceCommand:
        data = self.validated_data
        return QuotePriceCommand(
            cottage_type=data["cottage_type"],
            check_in=data["check_in"],
            check_out=data["check_out"],
            adults=data["adults"],
            children=data.get("children", 0),
            package_id=data.get("package_id"),
            safaris=self._selections(),
        )


class SafariSelectionValidationSerializer(serializers.Serializer):
    safaris = SafariSelectionSerializer(many=True, allow_empty=False)

    def to_command(self, today) -> ValidateSafariSelectionCommand:
        return ValidateSafariSelectionCommand(
            safaris=[
                SafariSelection(
                    safari_type_id=item["safari_id"],
                    date=item["date"],
                    time_slot=item["time_slot"],
                    participants=item["participants"],
                )
                for item in self.validated_data["safaris"]
            ],
            today=today,
        )


class BookingCreateSerializer(QuoteRequestSerializer):
    """Guest booking request. The total is the one the quote showed."""

    guest_details = GuestDetailsSerializer()
    total_amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)
    special_requests = serializers.CharField(required=False, allow_blank=True, default="")
    payment_method = serializers.CharField(max_length=30, required=False, allow_blank=True, default="")

    def to_command(self) -> CreateBookingCommand:  # type: ignore[override]
        data = self.validated_data
        return CreateBookingCommand(
            cottage_type=data["cottage_type"],
            check_in=data["check_in"],
            check_out=data["check_out"],
            adults=data["adults"],
            children=data.get("children", 0),
            guest=GuestContact.from_dict(data["guest_details"]),
            total_amount=data["total_amount"],
            package_id=data.get("package_id"),
            safaris=self._selections(),
            special_requests=data.get("special_requests", ""),
            payment_method=data.get("payment_method", ""),
        )


class BookingStatusUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Booking.Status.choices)
    admin_notes = serializers.CharField(required=False, allow_blank=True)

    def to_command(self, booking_id) -> UpdateBookingStatusCommand:
        data = self.validated_data
        return UpdateBookingStatusCommand(
            booking_id=booking_id,
            status=BookingStatus(data["status"]),
            admin_notes=data.get("admin_notes"),
        )


class PaymentStatusUpdateSerializer(serializers.Serializer):
    payment_status = serializers.ChoiceField(choices=Booking.PaymentStatus.choices)
    payment_method = serializers.CharField(max_length=30, required=False, allow_blank=True, default="")
    external_order_id = serializers.CharField(max_length=100, required=False, allow_blank=True, default="")
    external_payment_id = serializers.CharField(max_length=100, required=False, allow_blank=True, default="")
    reason = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")

    def to_command(self, booking_id) -> UpdatePaymentStatusCommand:
        data = self.validated_data
        return UpdatePaymentStatusCommand(
            booking_id=booking_id,
            payment_status=PaymentStatus(data["payment_status"]),
            payment_method=data["payment_method"],
            external_order_id=data["external_order_id"],
            external_payment_id=data["external_payment_id"],
            reason=data["reason"],
        )


class TotalOverrideSerializer(serializers.Serializer):
    total_amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)
    admin_notes = serializers.CharField(required=False, allow_blank=True)

    def to_command(self, booking_id) -> OverrideTotalCommand:
        data = self.validated_data
        return OverrideTotalCommand(
            booking_id=booking_id,
            total_amount=data["total_amount"],
            admin_notes=data.get("admin_notes"),
        )


class SafariBookingSerializer(serializers.ModelSerializer):
    safari_id = serializers.ReadOnlyField(source="safari_type_id")
    safari_name = serializers.ReadOnlyField(source="safari_type.name")

    class Meta:
        model = SafariBooking
        fields = ["id", "safari_id", "safari_name", "date", "time_slot", "participants", "unit_price"]
        read_only_fields = fields


class BookingSerializer(serializers.ModelSerializer):
    """Customer-facing view of a booking."""

    cottage_type = serializers.ReadOnlyField(source="cottage.type")
    cottage_name = serializers.ReadOnlyField(source="cottage.name")
    package_name = serializers.SerializerMethodField()
    nights = serializers.ReadOnlyField()
    safaris = SafariBookingSerializer(source="safari_bookings", many=True, read_only=True)

    class Meta:
        model = Booking
        fields = [
            "id",
            "reference",
            "cottage_type",
            "cottage_name",
            "package",
            "package_name",
            "check_in",
            "check_out",
            "nights",
            "adults",
            "children",
            "total_amount",
            "currency",
            "status",
            "payment_status",
            "payment_method",
            "guest_details",
            "special_requests",
            "safaris",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_package_name(self, obj: Booking) -> str:
        return obj.package.name if obj.package_id else ""


class AdminBookingSerializer(BookingSerializer):
    payments = PaymentSerializer(many=True, read_only=True)

    class Meta(BookingSerializer.Meta):
        fields = BookingSerializer.Meta.fields + ["admin_notes", "payments"]
        read_only_fields = fields
