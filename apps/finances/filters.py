"""FilterSet for the admin payment list."""

from __future__ import annotations

import django_filters  # type: ignore

from .models import Payment


class PaymentFilterSet(django_filters.FilterSet):
    status = django_filters.ChoiceFilter(choices=Payment.Status.choices)
    payment_method = django_filters.ChoiceFilter(field_name="method", choices=Payment.Method.choices)
    booking = django_filters.CharFilter(field_name="booking__reference", lookup_expr="iexact")
    date_from = django_filters.DateFilter(field_name="created_at", lookup_expr="date__gte")
    date_to = django_filters.DateFilter(field_name="created_at", lookup_expr="date__lte")

    class Meta:
        model = Payment
        fields = ["status", "payment_method", "booking"]
