"""Admin registration for bookings."""

from __future__ import annotations

from django.contrib import admin

from apps.finances.models import Payment

from .models import Booking, SafariBooking


class SafariBookingInline(admin.TabularInline):
    model = SafariBooking
    extra = 0
    fields = ("safari_type", "date", "time_slot", "participants", "unit_price")
    readonly_fields = fields


class PaymentInline(admin.TabularInline):
    model = Payment
    extra = 0
    fields = ("amount", "method", "status", "external_order_id", "external_payment_id", "created_at")
    readonly_fields = fields


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    """Read-mostly: status changes go through the API so events fire."""

    list_display = (
        "reference",
        "cottage",
        "guest_name",
        "status",
        "payment_status",
        "check_in",
        "check_out",
        "total_amount",
        "created_at",
    )
    list_filter = ("status", "payment_status", "cottage", "check_in")
    search_fields = ("reference", "guest_details__name", "guest_details__email")
    readonly_fields = (
        "reference",
        "cottage",
        "package",
        "check_in",
        "check_out",
        "total_amount",
        "status",
        "payment_status",
        "created_at",
        "updated_at",
    )
    inlines = (SafariBookingInline, PaymentInline)
