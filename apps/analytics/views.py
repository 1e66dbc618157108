"""API views for analytics.

Staff-only endpoints with aggregated booking and payment figures: the
dashboard, the booking and payment statistics for the last days and the
revenue and occupancy reports.
"""

from __future__ import annotations

from datetime import timedelta

from django.utils import timezone  # type: ignore
from rest_framework.permissions import IsAdminUser  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from . import reports
from .serializers import DateWindowSerializer, RevenueReportSerializer, StatsWindowSerializer


class StaffReportView(APIView):
    permission_classes = [IsAdminUser]
    params_class = None

    def params(self, request) -> dict:
        serializer = self.params_class(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        return serializer.validated_data


class DashboardView(StaffReportView):
    """Overview counts, recent bookings, occupancy and monthly revenue."""

    def get(self, request, format=None):  # type: ignore
        return Response({"success": True, "data": reports.dashboard()})


class BookingStatsView(StaffReportView):
    params_class = StatsWindowSerializer

    def get(self, request, format=None):  # type: ignore
        return Response({"success": True, "data": reports.booking_stats(self.params(request)["days"])})


class PaymentStatsView(StaffReportView):
    params_class = StatsWindowSerializer

    def get(self, request, format=None):  # type: ignore
        return Response({"success": True, "data": reports.payment_stats(self.params(request)["days"])})


class RevenueReportView(StaffReportView):
    params_class = RevenueReportSerializer

    def get(self, request, format=None):  # type: ignore
        params = self.params(request)
        rows = reports.revenue_report(params["period"], params.get("start_date"), params.get("end_date"))
        return Response({"success": True, "data": {"period": params["period"], "report": rows}})


class OccupancyReportView(StaffReportView):
    """Defaults to the last 30 days up to today."""

    params_class = DateWindowSerializer

    def get(self, request, format=None):  # type: ignore
        params = self.params(request)
        end_date = params.get("end_date") or timezone.localdate()
        start_date = params.get("start_date") or end_date - timedelta(days=reports.STATS_WINDOW_DAYS - 1)
        if end_date < start_date:
            end_date = start_date
        return Response({
            "success": True,
            "data": {
                "start_date": start_date.isoformat(),
                "end_date": end_date.isoformat(),
                "report": reports.occupancy_report(start_date, end_date),
            },
        })
