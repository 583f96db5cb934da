"""Test settings: in-memory SQLite, eager Celery, quiet logging."""

from .base import *  # noqa: F401,F403

DEBUG = False

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True

# Past start dates allowed so fixed calendar dates in tests never go stale
BOOKING_ENGINE = {**BOOKING_ENGINE, 'ALLOW_PAST_START': True}  # noqa: F405

LOGGING["handlers"]["console"]["level"] = "WARNING"  # noqa: F405

# Let pytest's caplog see engine records
for _name in ("apps", "shared"):
    LOGGING["loggers"][_name]["propagate"] = True  # noqa: F405
