from __future__ import annotations

from .base import *  # noqa: F403,F405

# ------------------------------------------------------------
# Test overrides
# ------------------------------------------------------------

DEBUG = False

# File-backed SQLite so threaded TransactionTestCase tests share one database.
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": BASE_DIR / "clinic_test.sqlite3",
        "OPTIONS": {
            "timeout": 20,
            "transaction_mode": "IMMEDIATE",
        },
        "TEST": {
            "NAME": BASE_DIR / "test_clinic.sqlite3",
        },
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

EMAIL_BACKEND = "django.core.mail.backends.locmem.EmailBackend"

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = "memory://"
CELERY_RESULT_BACKEND = "cache+memory://"

LOGGING["handlers"]["console"]["level"] = "WARNING"
LOGGING["root"]["handlers"] = ["console"]
LOGGING["loggers"]["django"]["handlers"] = ["console"]
LOGGING["loggers"]["clinic_backend"]["handlers"] = ["console"]
LOGGING["handlers"].pop("file")
