"""Admin registrations for payments."""

from __future__ import annotations

from django.contrib import admin

from .models import Payment


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ("booking", "amount", "currency", "method", "status", "created_at")
    list_filter = ("status", "method")
    search_fields = ("booking__reference", "external_order_id", "external_payment_id")
    readonly_fields = ("created_at", "updated_at")
