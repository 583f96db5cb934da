from django.apps import AppConfig


class BookingsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.bookings"
    label = "bookings"

    def ready(self) -> None:
        from .handlers import register_event_handlers

        register_event_handlers()
