"""Serializers for the finance domain (payments and gateway callbacks)."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from apps.bookings.application.command_handlers import (
    ConfirmPaymentCommand,
    OfflinePaymentCommand,
    PaymentFailedCommand,
)

from .models import Payment


class PaymentSerializer(serializers.ModelSerializer):
    class Meta:
        model = Payment
        fields = [
            "id",
            "amount",
            "currency",
            "method",
            "status",
            "external_order_id",
            "external_payment_id",
            "failure_reason",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class AdminPaymentSerializer(PaymentSerializer):
    """Payment row with enough of its booking to follow up with the guest."""

    booking_reference = serializers.CharField(source="booking.reference", read_only=True)
    guest_name = serializers.SerializerMethodField()
    guest_email = serializers.SerializerMethodField()

    class Meta(PaymentSerializer.Meta):
        fields = PaymentSerializer.Meta.fields + ["booking_reference", "guest_name", "guest_email"]
        read_only_fields = fields

    def get_guest_name(self, obj: Payment) -> str:
        return (obj.booking.guest_details or {}).get("name", "")

    def get_guest_email(self, obj: Payment) -> str:
        return (obj.booking.guest_details or {}).get("email", "")


class BookingReferenceField(serializers.CharField):
    def to_internal_value(self, data):
        return super().to_internal_value(data).strip().upper()


class PaymentConfirmSerializer(serializers.Serializer):
    """Payload posted by the payment integration once the gateway signature is checked."""

    booking_reference = BookingReferenceField(max_length=20)
    external_order_id = serializers.CharField(max_length=100)
    external_payment_id = serializers.CharField(max_length=100)
    verified_signature_ok = serializers.BooleanField()
    payment_method = serializers.ChoiceField(choices=Payment.Method.choices, default=Payment.Method.ONLINE)

    def to_command(self) -> ConfirmPaymentCommand:
        data = self.validated_data
        return ConfirmPaymentCommand(
            booking_reference=data["booking_reference"],
            external_order_id=data["external_order_id"],
            external_payment_id=data["external_payment_id"],
            verified_signature_ok=data["verified_signature_ok"],
            payment_method=data["payment_method"],
        )


class PaymentFailedSerializer(serializers.Serializer):
    booking_reference = BookingReferenceField(max_length=20)
    external_order_id = serializers.CharField(max_length=100, required=False, allow_blank=True, default="")
    reason = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")

    def to_command(self) -> PaymentFailedCommand:
        data = self.validated_data
        return PaymentFailedCommand(
            booking_reference=data["booking_reference"],
            external_order_id=data["external_order_id"],
            reason=data["reason"],
        )


class OfflinePaymentSerializer(serializers.Serializer):
    booking_reference = BookingReferenceField(max_length=20)

    def to_command(self) -> OfflinePaymentCommand:
        return OfflinePaymentCommand(booking_reference=self.validated_data["booking_reference"])
