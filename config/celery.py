import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings.dev")

app = Celery("booking_engine")

app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()


# ============================================================================
# CELERY BEAT SCHEDULE (Periodic Tasks)
# ============================================================================

app.conf.beat_schedule = {
    # Cancel unpaid pending holds - every minute
    "expire-pending-bookings": {
        "task": "bookings.expire_pending_bookings",
        "schedule": 60.0,
        "options": {"expires": 50},
    },
}

app.conf.timezone = "UTC"
