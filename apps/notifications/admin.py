"""Admin registration for notifications."""

from __future__ import annotations

from django.contrib import admin

from .models import Notification


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ("title", "kind", "booking_reference", "is_read", "created_at")
    list_filter = ("kind", "is_read")
    search_fields = ("title", "booking_reference")
