"""Admin registrations for the catalog."""

from __future__ import annotations

from django.contrib import admin

from .models import Cottage, Package, SafariType


class CatalogAdmin(admin.ModelAdmin):
    """Catalog rows are deactivated, never deleted, while bookings point at them."""

    def has_delete_permission(self, request, obj=None):  # type: ignore
        return False


@admin.register(Cottage)
class CottageAdmin(CatalogAdmin):
    list_display = ("name", "type", "base_price", "max_guests", "is_active")
    list_filter = ("is_active",)
    search_fields = ("name", "type")
    prepopulated_fields = {"type": ("name",)}
    readonly_fields = ("created_at", "updated_at")


@admin.register(Package)
class PackageAdmin(CatalogAdmin):
    list_display = ("name", "price_multiplier", "includes_safari", "max_safaris", "is_active")
    list_filter = ("is_active", "includes_safari")
    search_fields = ("name", "type")


@admin.register(SafariType)
class SafariTypeAdmin(CatalogAdmin):
    list_display = ("name", "price", "max_guests", "duration", "is_active")
    list_filter = ("is_active",)
    search_fields = ("name",)
