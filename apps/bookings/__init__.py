"""Bookings app package.

This app encapsulates the booking domain: the reservation engine that
prevents overlapping stays (domain and application layers), its
persistence adapters, and the thin Django surface around it (ORM model,
API views and the hold expiry task).
"""
