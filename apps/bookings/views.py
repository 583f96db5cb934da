"""API views for the booking domain."""

from __future__ import annotations

import logging
from uuid import UUID

from rest_framework import exceptions, permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.throttling import AnonRateThrottle  # type: ignore
from rest_framework.views import APIView  # type: ignore

from shared.domain.errors import DomainError, ErrorCode
from shared.domain.value_objects import DateRange
from apps.bookings.domain.entities import Booking
from apps.bookings.domain.errors import ConflictError

from .serializers import (
    AvailabilityQuerySerializer,
    BookingCancelSerializer,
    BookingConfirmSerializer,
    BookingCreateSerializer,
    BookingSerializer,
)
from .services import get_coordinator

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    ErrorCode.INVALID_INTERVAL: status.HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_PRICE: status.HTTP_400_BAD_REQUEST,
    ErrorCode.BOOKING_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.PROPERTY_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.BOOKING_CONFLICT: status.HTTP_409_CONFLICT,
    ErrorCode.INVALID_TRANSITION: status.HTTP_409_CONFLICT,
    ErrorCode.BOOKING_CLOSED: status.HTTP_409_CONFLICT,
    ErrorCode.PERSISTENCE_ERROR: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorCode.LOCK_TIMEOUT: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def error_response(error: DomainError) -> Response:
    payload = {"code": error.code.value, "detail": error.message}
    if isinstance(error, ConflictError):
        payload["conflicting_booking_ids"] = [str(i) for i in error.conflicting_booking_ids]
    http_status = ERROR_STATUS.get(error.code, status.HTTP_400_BAD_REQUEST)
    if http_status >= 500:
        logger.error(f"Booking engine failure: {error}")
    return Response(payload, status=http_status)


def _booking_id(pk) -> UUID:
    try:
        return UUID(str(pk))
    except ValueError:
        raise exceptions.NotFound("Booking not found.")


def _is_staff(user) -> bool:
    return getattr(user, "is_staff", False) or getattr(user, "is_superuser", False)


class IsBookingStakeholder(permissions.BasePermission):
    """Гость бронирования и администраторы имеют доступ к бронированию."""

    def has_object_permission(self, request, view, obj: Booking):  # type: ignore
        user = request.user
        if not user.is_authenticated:
            return False
        if _is_staff(user):
            return True
        return obj.user_id == user.pk


class IsPaymentCollaborator(permissions.BasePermission):
    """Подтверждать оплату может только платёжный сервис или персонал."""

    message = "Only the payment service may confirm bookings."

    def has_permission(self, request, view):  # type: ignore
        user = request.user
        if not user.is_authenticated:
            return False
        if _is_staff(user):
            return True
        return hasattr(user, "can_collect_payments") and user.can_collect_payments()


class BookingViewSet(viewsets.ViewSet):
    """Бронирование, подтверждение оплаты и отмена."""

    permission_classes = [permissions.IsAuthenticated, IsBookingStakeholder]
    lookup_value_regex = "[0-9a-fA-F-]{32,36}"

    def handle_exception(self, exc):  # type: ignore
        if isinstance(exc, DomainError):
            return error_response(exc)
        return super().handle_exception(exc)

    def get_object(self, pk) -> Booking:
        booking = get_coordinator().get_booking(_booking_id(pk))
        self.check_object_permissions(self.request, booking)
        return booking

    def create(self, request):  # type: ignore
        serializer = BookingCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        user_id = data.get("user_id", request.user.pk)
        if user_id != request.user.pk and not _is_staff(request.user):
            raise exceptions.PermissionDenied("Bookings can only be made for yourself.")
        booking = get_coordinator().reserve(
            data["property_id"],
            user_id,
            data["start_date"],
            data["end_date"],
            price_override=data.get("price_override"),
        )
        return Response(BookingSerializer(booking).data, status=status.HTTP_201_CREATED)

    def retrieve(self, request, pk=None):  # type: ignore
        return Response(BookingSerializer(self.get_object(pk)).data)

    @action(
        detail=True,
        methods=["post"],
        permission_classes=[permissions.IsAuthenticated, IsPaymentCollaborator],
    )
    def confirm(self, request, pk=None):  # type: ignore
        serializer = BookingConfirmSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        dates = None
        if "start_date" in data:
            dates = DateRange(data["start_date"], data["end_date"])
        booking = get_coordinator().confirm(
            _booking_id(pk),
            dates=dates,
            payment_reference=data.get("payment_reference") or None,
        )
        return Response(BookingSerializer(booking).data)

    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):  # type: ignore
        serializer = BookingCancelSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        booking = self.get_object(pk)
        booking = get_coordinator().cancel(booking.id, serializer.validated_data["reason"])
        return Response(BookingSerializer(booking).data)


class PropertyAvailabilityView(APIView):
    """Свободен ли объект на запрошенные даты."""

    permission_classes = [permissions.IsAuthenticatedOrReadOnly]
    throttle_classes = [AnonRateThrottle]

    def handle_exception(self, exc):  # type: ignore
        if isinstance(exc, DomainError):
            return error_response(exc)
        return super().handle_exception(exc)

    def get(self, request, property_id):  # type: ignore
        query = AvailabilityQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        start_date = query.validated_data["start_date"]
        end_date = query.validated_data["end_date"]

        conflicting = get_coordinator().conflicts(property_id, start_date, end_date)
        return Response({
            "property_id": str(property_id),
            "start_date": start_date.isoformat(),
            "end_date": end_date.isoformat(),
            "available": not conflicting,
            "conflicting_booking_ids": [str(b.id) for b in conflicting],
        })
