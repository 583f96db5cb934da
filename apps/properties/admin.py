"""Admin registration for properties."""

from __future__ import annotations

from django.contrib import admin

from .models import Property


@admin.register(Property)
class PropertyAdmin(admin.ModelAdmin):
    list_display = ("name", "location", "price_per_night", "currency", "created_at")
    search_fields = ("name", "location")
    readonly_fields = ("id", "created_at", "updated_at")
