"""Admin registration for bookings."""

from __future__ import annotations

from django.contrib import admin

from .models import Booking


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    """Read-only view: status changes go through the booking engine."""

    list_display = (
        "id",
        "property",
        "user_id",
        "status",
        "start_date",
        "end_date",
        "total_price",
        "currency",
        "created_at",
    )
    list_filter = ("status", "start_date", "end_date")
    search_fields = ("id", "user_id", "property__name", "payment_reference")
    date_hierarchy = "start_date"
    list_select_related = ("property",)

    def get_readonly_fields(self, request, obj=None):  # type: ignore
        return [field.name for field in self.model._meta.fields]

    def has_add_permission(self, request):  # type: ignore
        return False

    def has_delete_permission(self, request, obj=None):  # type: ignore
        return False
