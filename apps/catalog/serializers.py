"""Serializers for the catalog."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .models import Cottage, Package, SafariType


class StringListField(serializers.ListField):
    child = serializers.CharField(max_length=100)


class CottageSerializer(serializers.ModelSerializer):
    amenities = StringListField(required=False, default=list)

    class Meta:
        model = Cottage
        fields = [
            "id",
            "name",
            "type",
            "description",
            "base_price",
            "max_guests",
            "amenities",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "created_at", "updated_at"]
        extra_kwargs = {"type": {"required": False}}

    def validate_max_guests(self, value: int) -> int:
        if value < 1:
            raise serializers.ValidationError("A cottage must sleep at least one guest.")
        return value


class PackageSerializer(serializers.ModelSerializer):
    class Meta:
        model = Package
        fields = [
            "id",
            "name",
            "type",
            "description",
            "price_multiplier",
            "includes_safari",
            "max_safaris",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "created_at", "updated_at"]

    def validate(self, attrs):  # type: ignore
        includes = attrs.get("includes_safari", getattr(self.instance, "includes_safari", False))
        max_safaris = attrs.get("max_safaris", getattr(self.instance, "max_safaris", 0))
        if includes and max_safaris < 1:
            raise serializers.ValidationError(
                {"max_safaris": "Packages that include safaris must include at least one."}
            )
        return attrs


class SafariTypeSerializer(serializers.ModelSerializer):
    time_slots = StringListField(required=False, default=list)

    class Meta:
        model = SafariType
        fields = [
            "id",
            "name",
            "description",
            "price",
            "duration",
            "max_guests",
            "time_slots",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "created_at", "updated_at"]

    def validate_time_slots(self, value: list[str]) -> list[str]:
        cleaned = [slot.strip() for slot in value if slot.strip()]
        if len(set(cleaned)) != len(cleaned):
            raise serializers.ValidationError("Time slots must be unique.")
        return cleaned

    def validate_max_guests(self, value: int) -> int:
        if value < 1:
            raise serializers.ValidationError("A safari slot must seat at least one guest.")
        return value
