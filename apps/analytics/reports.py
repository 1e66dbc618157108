"""
Aggregates over the booking and payment ledgers for staff reporting.

Everything here is read-only ORM aggregation. Amounts are returned as
strings with two decimals, the way the API serializers render money.
"""

from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal
from typing import Optional

from django.db.models import Avg, Count, Q, Sum  # type: ignore
from django.db.models.functions import TruncDate, TruncDay, TruncMonth, TruncWeek, TruncYear  # type: ignore
from django.utils import timezone  # type: ignore

from apps.bookings.models import Booking
from apps.catalog.models import Cottage
from apps.finances.models import Payment

STATS_WINDOW_DAYS = 30
RECENT_BOOKINGS = 10
CENT = Decimal("0.01")

# Bookings that count as earned revenue
REVENUE_STATUSES = (Booking.Status.CONFIRMED, Booking.Status.COMPLETED)
# Bookings that hold cottage nights
OCCUPYING_STATUSES = (Booking.Status.PENDING, Booking.Status.CONFIRMED, Booking.Status.COMPLETED)

PERIODS = {
    "daily": TruncDay,
    "weekly": TruncWeek,
    "monthly": TruncMonth,
    "yearly": TruncYear,
}


def amount(value) -> str:
    if value is None:
        value = 0
    return str(Decimal(str(value)).quantize(CENT))


def window_start(days: int):
    return timezone.now() - timedelta(days=days)


def _with_amounts(row: dict, *keys: str) -> dict:
    return {**row, **{key: amount(row[key]) for key in keys}}


def booking_overview(queryset) -> dict:
    """Status counts plus revenue from paid bookings"""
    paid = Q(payment_status=Booking.PaymentStatus.PAID)
    row = queryset.aggregate(
        total_bookings=Count("id"),
        pending_bookings=Count("id", filter=Q(status=Booking.Status.PENDING)),
        confirmed_bookings=Count("id", filter=Q(status=Booking.Status.CONFIRMED)),
        cancelled_bookings=Count("id", filter=Q(status=Booking.Status.CANCELLED)),
        completed_bookings=Count("id", filter=Q(status=Booking.Status.COMPLETED)),
        paid_bookings=Count("id", filter=paid),
        total_revenue=Sum("total_amount", filter=paid),
        avg_booking_value=Avg("total_amount", filter=paid),
    )
    return _with_amounts(row, "total_revenue", "avg_booking_value")


def recent_bookings(limit: int = RECENT_BOOKINGS) -> list[dict]:
    rows = Booking.objects.select_related("cottage").order_by("-created_at")[:limit]
    return [
        {
            "id": str(booking.id),
            "reference": booking.reference,
            "cottage_name": booking.cottage.name,
            "guest_name": (booking.guest_details or {}).get("name", ""),
            "guest_email": (booking.guest_details or {}).get("email", ""),
            "guest_phone": (booking.guest_details or {}).get("phone", ""),
            "check_in": booking.check_in.isoformat(),
            "check_out": booking.check_out.isoformat(),
            "status": booking.status,
            "payment_status": booking.payment_status,
            "total_amount": amount(booking.total_amount),
            "created_at": booking.created_at.isoformat(),
        }
        for booking in rows
    ]


def booking_stats(days: int = STATS_WINDOW_DAYS) -> dict:
    recent = Booking.objects.filter(created_at__gte=window_start(days))
    return {
        "period_days": days,
        "overview": booking_overview(recent),
        "recent_bookings": recent_bookings(),
    }


def payment_stats(days: int = STATS_WINDOW_DAYS) -> dict:
    """Attempt counts by status and method, plus successful revenue per day"""
    recent = Payment.objects.filter(created_at__gte=window_start(days))
    successful = Q(status=Payment.Status.SUCCESSFUL)
    overview = recent.aggregate(
        total_payments=Count("id"),
        successful_payments=Count("id", filter=successful),
        pending_payments=Count("id", filter=Q(status=Payment.Status.PENDING)),
        failed_payments=Count("id", filter=Q(status=Payment.Status.FAILED)),
        refunded_payments=Count("id", filter=Q(status=Payment.Status.REFUNDED)),
        online_payments=Count("id", filter=Q(method=Payment.Method.ONLINE)),
        pay_at_property_payments=Count("id", filter=Q(method=Payment.Method.PAY_AT_PROPERTY)),
        total_revenue=Sum("amount", filter=successful),
        avg_transaction_value=Avg("amount", filter=successful),
    )
    daily = (
        recent.filter(successful)
        .annotate(day=TruncDate("created_at"))
        .values("day")
        .annotate(revenue=Sum("amount"), transactions=Count("id"))
        .order_by("-day")
    )
    return {
        "period_days": days,
        "overview": _with_amounts(overview, "total_revenue", "avg_transaction_value"),
        "daily_revenue": [
            {"date": row["day"].isoformat(), "revenue": amount(row["revenue"]), "transactions": row["transactions"]}
            for row in daily
        ],
    }


def revenue_report(period: str, start_date: Optional[date] = None, end_date: Optional[date] = None) -> list[dict]:
    """
    Confirmed and completed bookings grouped by when they were made.

    ``period`` is one of ``PERIODS``; each row is labelled with the first
    day of its bucket. Newest bucket first.
    """
    bookings = Booking.objects.filter(status__in=REVENUE_STATUSES)
    if start_date:
        bookings = bookings.filter(created_at__date__gte=start_date)
    if end_date:
        bookings = bookings.filter(created_at__date__lte=end_date)

    rows = (
        bookings.annotate(bucket=PERIODS[period]("created_at"))
        .values("bucket")
        .annotate(
            total_bookings=Count("id"),
            revenue=Sum("total_amount"),
            avg_booking_value=Avg("total_amount"),
        )
        .order_by("-bucket")
    )
    return [
        {
            "period": timezone.localtime(row["bucket"]).date().isoformat(),
            "total_bookings": row["total_bookings"],
            "revenue": amount(row["revenue"]),
            "avg_booking_value": amount(row["avg_booking_value"]),
        }
        for row in rows
    ]


def occupancy_report(start_date: date, end_date: date) -> list[dict]:
    """
    Booked nights per active cottage between two dates, both included.

    Pending, confirmed and completed stays hold nights. A stay that runs
    past either edge only counts the nights inside the window.
    """
    after_end = end_date + timedelta(days=1)
    window_nights = (after_end - start_date).days
    report = []
    for cottage in Cottage.objects.active().order_by("name"):
        stays = Booking.objects.filter(cottage=cottage, check_in__lt=after_end, check_out__gt=start_date)
        booked_nights = sum(
            (min(check_out, after_end) - max(check_in, start_date)).days
            for check_in, check_out in stays.filter(status__in=OCCUPYING_STATUSES).values_list("check_in", "check_out")
        )
        counts = stays.aggregate(
            total_bookings=Count("id"),
            confirmed_bookings=Count("id", filter=Q(status__in=REVENUE_STATUSES)),
        )
        report.append({
            "cottage_type": cottage.type,
            "cottage_name": cottage.name,
            **counts,
            "booked_nights": booked_nights,
            "available_nights": window_nights,
            "occupancy_rate": round(booked_nights * 100 / window_nights, 2),
        })
    return report


def first_of_month_back(today: date, months: int) -> date:
    """First day of the month ``months`` before the one containing ``today``"""
    index = today.year * 12 + today.month - 1 - months
    return date(index // 12, index % 12 + 1, 1)


def dashboard(today: Optional[date] = None) -> dict:
    today = today or timezone.localdate()
    recent = Booking.objects.filter(created_at__gte=window_start(STATS_WINDOW_DAYS))
    return {
        "overview": {
            **booking_overview(recent),
            "active_cottages": Cottage.objects.active().count(),
            "upcoming_check_ins": Booking.objects.filter(
                check_in__gte=today, status__in=(Booking.Status.PENDING, Booking.Status.CONFIRMED)
            ).count(),
        },
        "recent_bookings": recent_bookings(),
        "cottage_occupancy": occupancy_report(today - timedelta(days=STATS_WINDOW_DAYS - 1), today),
        "monthly_revenue": revenue_report("monthly", start_date=first_of_month_back(today, 11)),
    }
