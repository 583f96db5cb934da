"""Serializers for the booking domain.

Input serializers validate the shape of requests only; every business
rule (interval validity, conflicts, pricing) is enforced by the engine.
Output serializers read domain objects, not ORM rows.
"""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings  # type: ignore
from rest_framework import serializers  # type: ignore

from shared.domain.value_objects import Money


class BookingCreateSerializer(serializers.Serializer):
    """Бронирование дат объекта пользователем."""

    property_id = serializers.UUIDField()
    user_id = serializers.UUIDField(required=False)
    start_date = serializers.DateField()
    end_date = serializers.DateField()
    price_override = serializers.DecimalField(
        max_digits=10,
        decimal_places=2,
        min_value=Decimal("0"),
        required=False,
    )

    def validate(self, attrs):  # type: ignore
        override = attrs.pop("price_override", None)
        if override is not None:
            currency = getattr(settings, "BOOKING_ENGINE", {}).get("CURRENCY", "USD")
            try:
                attrs["price_override"] = Money(override, currency)
            except ValueError as e:
                raise serializers.ValidationError({"price_override": str(e)}) from e
        return attrs


class BookingConfirmSerializer(serializers.Serializer):
    """Данные подтверждения оплаты."""

    payment_reference = serializers.CharField(max_length=255, required=False, allow_blank=True)
    start_date = serializers.DateField(required=False)
    end_date = serializers.DateField(required=False)

    def validate(self, attrs):  # type: ignore
        if ("start_date" in attrs) != ("end_date" in attrs):
            raise serializers.ValidationError("start_date and end_date must be sent together.")
        return attrs


class BookingCancelSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")


class AvailabilityQuerySerializer(serializers.Serializer):
    start_date = serializers.DateField()
    end_date = serializers.DateField()


class BookingSerializer(serializers.Serializer):
    """Read representation of a domain booking."""

    id = serializers.UUIDField(read_only=True)
    property_id = serializers.UUIDField(read_only=True)
    user_id = serializers.UUIDField(read_only=True)
    start_date = serializers.DateField(source="dates.start_date", read_only=True)
    end_date = serializers.DateField(source="dates.end_date", read_only=True)
    nights = serializers.IntegerField(read_only=True)
    status = serializers.CharField(source="status.value", read_only=True)
    nightly_rate = serializers.DecimalField(
        source="nightly_rate.amount", max_digits=10, decimal_places=2, read_only=True
    )
    total_price = serializers.DecimalField(
        source="total_price.amount", max_digits=10, decimal_places=2, read_only=True
    )
    currency = serializers.CharField(source="total_price.currency", read_only=True)
    payment_reference = serializers.CharField(read_only=True, allow_null=True)
    cancellation_reason = serializers.CharField(read_only=True)
    confirmed_at = serializers.DateTimeField(read_only=True, allow_null=True)
    canceled_at = serializers.DateTimeField(read_only=True, allow_null=True)
    created_at = serializers.DateTimeField(read_only=True)
    updated_at = serializers.DateTimeField(read_only=True)
