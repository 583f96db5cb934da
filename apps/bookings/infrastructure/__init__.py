"""Persistence adapters for the booking engine."""
