"""Catalog models: cottages, packages and safari types."""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.core.validators import MinValueValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils.text import slugify  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class ActiveQuerySet(models.QuerySet):
    def active(self):
        return self.filter(is_active=True)


class Cottage(models.Model):
    """A bookable accommodation unit with a fixed nightly price."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=150)
    type = models.SlugField(
        max_length=100,
        unique=True,
        blank=True,
        help_text=_("External key used by the booking widget, e.g. 'glass-cottage'."),
    )
    description = models.TextField(blank=True)
    base_price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
    )
    max_guests = models.PositiveSmallIntegerField(default=4)
    amenities = models.JSONField(default=list, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ActiveQuerySet.as_manager()

    class Meta:
        verbose_name = _("Cottage")
        verbose_name_plural = _("Cottages")
        ordering = ["base_price", "name"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(base_price__gt=0),
                name="cottage_positive_price",
            ),
        ]

    def __str__(self) -> str:
        return self.name

    def save(self, *args, **kwargs):  # type: ignore
        if not self.type:
            self.type = slugify(self.name)
        super().save(*args, **kwargs)


class Package(models.Model):
    """Pricing bundle applied as a multiplier on the stay, optionally with safaris."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=150)
    type = models.SlugField(max_length=100, blank=True)
    description = models.TextField(blank=True)
    price_multiplier = models.DecimalField(
        max_digits=6,
        decimal_places=3,
        validators=[MinValueValidator(Decimal("0.001"))],
    )
    includes_safari = models.BooleanField(default=False)
    max_safaris = models.PositiveSmallIntegerField(default=0)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ActiveQuerySet.as_manager()

    class Meta:
        verbose_name = _("Package")
        verbose_name_plural = _("Packages")
        ordering = ["price_multiplier", "name"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(price_multiplier__gt=0),
                name="package_positive_multiplier",
            ),
        ]

    def __str__(self) -> str:
        return self.name


class SafariType(models.Model):
    """A guided activity sold per participant in fixed daily time slots."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=150)
    description = models.TextField(blank=True)
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
        help_text=_("Price per participant."),
    )
    duration = models.CharField(max_length=50, blank=True, help_text=_("e.g. '3 hours'"))
    max_guests = models.PositiveSmallIntegerField(default=6, help_text=_("Seats per time slot."))
    time_slots = models.JSONField(default=list, blank=True, help_text=_("List of slot labels, e.g. ['06:00', '15:00']."))
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ActiveQuerySet.as_manager()

    class Meta:
        verbose_name = _("Safari type")
        verbose_name_plural = _("Safari types")
        ordering = ["price", "name"]

    def __str__(self) -> str:
        return self.name
