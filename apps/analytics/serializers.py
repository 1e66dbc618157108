"""Query-string parameters for the reporting endpoints."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .reports import PERIODS, STATS_WINDOW_DAYS


class StatsWindowSerializer(serializers.Serializer):
    days = serializers.IntegerField(min_value=1, max_value=366, required=False, default=STATS_WINDOW_DAYS)


class DateWindowSerializer(serializers.Serializer):
    start_date = serializers.DateField(required=False)
    end_date = serializers.DateField(required=False)

    def validate(self, attrs):  # type: ignore
        start, end = attrs.get("start_date"), attrs.get("end_date")
        if start and end and end < start:
            raise serializers.ValidationError({"end_date": "end_date must not be before start_date"})
        return attrs


class RevenueReportSerializer(DateWindowSerializer):
    period = serializers.ChoiceField(choices=sorted(PERIODS), required=False, default="monthly")
