from __future__ import annotations

import os
from datetime import timedelta
from pathlib import Path

import dj_database_url
from celery.schedules import schedule
from dotenv import load_dotenv

# ------------------------------------------------------------
# Paths / Env
# ------------------------------------------------------------

# base.py lives in: <BASE_DIR>/clinic_backend/settings/base.py
BASE_DIR = Path(__file__).resolve().parents[2]

# .env is optional and never overrides the real environment.
load_dotenv(dotenv_path=BASE_DIR / ".env", override=False)


def _env(key: str, default: str | None = None) -> str | None:
    return os.getenv(key, default)


def _env_bool(key: str, default: bool = False) -> bool:
    raw = os.getenv(key)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(key: str, default: int) -> int:
    raw = os.getenv(key)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        return default


# ------------------------------------------------------------
# Core
# ------------------------------------------------------------

SECRET_KEY = _env(
    "DJANGO_SECRET_KEY",
    "django-insecure-clinic-backoffice-change-me-7f3a9c1e5b2d8",
)

DEBUG = _env_bool("DJANGO_DEBUG", default=False)

ALLOWED_HOSTS = [
    host.strip()
    for host in _env("DJANGO_ALLOWED_HOSTS", "localhost,127.0.0.1,[::1]").split(",")
    if host.strip()
]


# ------------------------------------------------------------
# Apps / Middleware
# ------------------------------------------------------------

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    # Third-party
    "rest_framework",
    "corsheaders",
    # Clinic
    "clinic_backend.core",
    "clinic_backend.patients",
    "clinic_backend.medical",
    "clinic_backend.appointments",
    "clinic_backend.billing",
]

MIDDLEWARE = [
    "corsheaders.middleware.CorsMiddleware",  # must be before CommonMiddleware
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "clinic_backend.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    }
]

WSGI_APPLICATION = "clinic_backend.wsgi.application"


# ------------------------------------------------------------
# Database (DATABASE_URL, SQLite file by default)
# ------------------------------------------------------------

db_cfg = dj_database_url.config(
    env="DATABASE_URL",
    default=f"sqlite:///{BASE_DIR / 'clinic.sqlite3'}",
    conn_max_age=_env_int("DB_CONN_MAX_AGE", 60),
)

db_cfg.setdefault("OPTIONS", {})
if db_cfg.get("ENGINE") == "django.db.backends.sqlite3":
    # IMMEDIATE makes every atomic() block take the write lock up front, so
    # booking and invoice numbering serialize the same way they do on Postgres.
    db_cfg["OPTIONS"].setdefault("timeout", _env_int("SQLITE_TIMEOUT", 20))
    db_cfg["OPTIONS"].setdefault("transaction_mode", "IMMEDIATE")
elif db_cfg.get("ENGINE") == "django.db.backends.postgresql":
    db_cfg["OPTIONS"].setdefault("connect_timeout", _env_int("DB_CONNECT_TIMEOUT", 10))

DATABASES = {"default": db_cfg}


# ------------------------------------------------------------
# Auth
# ------------------------------------------------------------

AUTH_USER_MODEL = "core.User"

AUTH_PASSWORD_VALIDATORS = [
    {"NAME": "django.contrib.auth.password_validation.UserAttributeSimilarityValidator"},
    {"NAME": "django.contrib.auth.password_validation.MinimumLengthValidator"},
    {"NAME": "django.contrib.auth.password_validation.CommonPasswordValidator"},
    {"NAME": "django.contrib.auth.password_validation.NumericPasswordValidator"},
]


# ------------------------------------------------------------
# REST / JWT
# ------------------------------------------------------------

REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": (
        "rest_framework_simplejwt.authentication.JWTAuthentication",
    ),
    "DEFAULT_PERMISSION_CLASSES": (
        "rest_framework.permissions.IsAuthenticated",
    ),
    "EXCEPTION_HANDLER": "clinic_backend.core.exception_handler.clinic_exception_handler",
}

JWT_SIGNING_KEY = _env("JWT_SIGNING_KEY", SECRET_KEY)

SIMPLE_JWT = {
    "ACCESS_TOKEN_LIFETIME": timedelta(minutes=_env_int("JWT_ACCESS_MINUTES", 30)),
    "REFRESH_TOKEN_LIFETIME": timedelta(days=_env_int("JWT_REFRESH_DAYS", 7)),
    "ALGORITHM": _env("JWT_ALGORITHM", "HS256"),
    "SIGNING_KEY": JWT_SIGNING_KEY,
}


# ------------------------------------------------------------
# I18N / TZ
# ------------------------------------------------------------

LANGUAGE_CODE = _env("DJANGO_LANGUAGE_CODE", "en-us")
TIME_ZONE = _env("DJANGO_TIME_ZONE", "UTC")
USE_I18N = True
USE_TZ = True


# ------------------------------------------------------------
# Static
# ------------------------------------------------------------

STATIC_URL = "/static/"
STATIC_ROOT = BASE_DIR / "staticfiles"

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"


# ------------------------------------------------------------
# CORS / CSRF
# ------------------------------------------------------------

CORS_ALLOW_ALL_ORIGINS = _env_bool("CORS_ALLOW_ALL_ORIGINS", default=DEBUG)
CORS_ALLOW_CREDENTIALS = _env_bool("CORS_ALLOW_CREDENTIALS", default=True)

CORS_ALLOWED_ORIGINS = [
    origin.strip() for origin in _env("CORS_ALLOWED_ORIGINS", "").split(",") if origin.strip()
]

CSRF_TRUSTED_ORIGINS = [
    origin.strip()
    for origin in _env(
        "CSRF_TRUSTED_ORIGINS",
        "http://localhost:3000,http://127.0.0.1:3000,http://localhost:8000,http://127.0.0.1:8000",
    ).split(",")
    if origin.strip()
]


# ------------------------------------------------------------
# Email
# ------------------------------------------------------------

EMAIL_BACKEND = _env("EMAIL_BACKEND", "django.core.mail.backends.smtp.EmailBackend")
EMAIL_HOST = _env("EMAIL_HOST", "localhost")
EMAIL_PORT = _env_int("EMAIL_PORT", 25)
EMAIL_HOST_USER = _env("EMAIL_HOST_USER", "")
EMAIL_HOST_PASSWORD = _env("EMAIL_HOST_PASSWORD", "")
EMAIL_USE_TLS = _env_bool("EMAIL_USE_TLS", default=False)
DEFAULT_FROM_EMAIL = _env("DEFAULT_FROM_EMAIL", "no-reply@clinic.local")


# ------------------------------------------------------------
# Clinic
# ------------------------------------------------------------

CLINIC_NAME = _env("CLINIC_NAME", "Dental Clinic")
BILLING_CURRENCY_SYMBOL = _env("BILLING_CURRENCY_SYMBOL", "$")
INVOICE_NUMBER_MAX_ATTEMPTS = _env_int("INVOICE_NUMBER_MAX_ATTEMPTS", 5)

# The reminder window is [now + lead - sweep, now + lead + sweep]; the beat
# entry below runs every `sweep` minutes. Change both through this one value.
APPOINTMENT_REMINDER_LEAD_HOURS = _env_int("APPOINTMENT_REMINDER_LEAD_HOURS", 24)
APPOINTMENT_REMINDER_SWEEP_MINUTES = _env_int("APPOINTMENT_REMINDER_SWEEP_MINUTES", 60)


# ------------------------------------------------------------
# Celery
# ------------------------------------------------------------

REDIS_HOST = _env("REDIS_HOST", "localhost")
REDIS_PORT = _env("REDIS_PORT", "6379")

CELERY_BROKER_URL = _env("CELERY_BROKER_URL") or f"redis://{REDIS_HOST}:{REDIS_PORT}/0"
CELERY_RESULT_BACKEND = _env("CELERY_RESULT_BACKEND") or CELERY_BROKER_URL

CELERY_TASK_ALWAYS_EAGER = _env_bool("CELERY_TASK_ALWAYS_EAGER", default=False)
CELERY_TASK_EAGER_PROPAGATES = _env_bool("CELERY_TASK_EAGER_PROPAGATES", default=True)

CELERY_BEAT_SCHEDULE = {
    "send-appointment-reminders": {
        "task": "clinic_backend.appointments.tasks.send_appointment_reminders",
        "schedule": schedule(run_every=timedelta(minutes=APPOINTMENT_REMINDER_SWEEP_MINUTES)),
    },
}


# ------------------------------------------------------------
# Logging
# ------------------------------------------------------------

LOG_LEVEL = _env("LOG_LEVEL", "INFO")
LOG_DIR = Path(_env("DJANGO_LOG_DIR", str(BASE_DIR / "logs")))

try:
    LOG_DIR.mkdir(parents=True, exist_ok=True)
except OSError:
    # Read-only filesystem; fall back to /tmp for the rotating file.
    LOG_DIR = Path("/tmp")

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "kv": {
            "format": "%(asctime)s level=%(levelname)s logger=%(name)s msg=%(message)s",
        }
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "kv",
            "level": LOG_LEVEL,
            "stream": "ext://sys.stdout",
        },
        "file": {
            "class": "logging.handlers.RotatingFileHandler",
            "formatter": "kv",
            "level": LOG_LEVEL,
            "filename": str(LOG_DIR / "clinic.log"),
            "maxBytes": 10 * 1024 * 1024,
            "backupCount": 5,
        },
    },
    "root": {
        "handlers": ["console", "file"],
        "level": LOG_LEVEL,
    },
    "loggers": {
        "django": {
            "handlers": ["console", "file"],
            "level": _env("DJANGO_LOG_LEVEL", "INFO"),
            "propagate": False,
        },
        "django.db.backends": {
            "handlers": ["console"],
            "level": _env("DJANGO_DB_LOG_LEVEL", "WARNING"),
            "propagate": False,
        },
        "clinic_backend": {
            "handlers": ["console", "file"],
            "level": _env("CLINIC_LOG_LEVEL", LOG_LEVEL),
            "propagate": False,
        },
    },
}
