"""
Django settings for as_project.

Every deploy-time value is read from the environment,
with a development default next to it.
"""
import os
from datetime import timedelta
from decimal import Decimal
from pathlib import Path

from celery.schedules import crontab

from .logconfig import build_logging_config, configure_structlog

BASE_DIR = Path(__file__).resolve().parent.parent


def env_bool(name, default):
    return os.environ.get(name, str(default)).lower() in ("1", "true", "yes")


SECRET_KEY = os.environ.get(
    "DJANGO_SECRET_KEY", "dev-only-secret-key-change-me-in-production"
)
DEBUG = env_bool("DJANGO_DEBUG", True)
ALLOWED_HOSTS = os.environ.get("DJANGO_ALLOWED_HOSTS", "*").split(",")

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "books_core",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    # attaches request.business (must run after authentication)
    "books_core.middleware.CurrentBusinessMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "as_project.urls"
WSGI_APPLICATION = "as_project.wsgi.application"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

DATABASES = {
    "default": {
        "ENGINE": os.environ.get(
            "DJANGO_DB_ENGINE", "django.db.backends.sqlite3"),
        "NAME": os.environ.get("DJANGO_DB_NAME", str(BASE_DIR / "db.sqlite3")),
        "USER": os.environ.get("DJANGO_DB_USER", ""),
        "PASSWORD": os.environ.get("DJANGO_DB_PASSWORD", ""),
        "HOST": os.environ.get("DJANGO_DB_HOST", ""),
        "PORT": os.environ.get("DJANGO_DB_PORT", ""),
    }
}

# Custom user carries the default business
AUTH_USER_MODEL = "books_core.User"

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

STATIC_URL = "static/"

# ---------- Celery ----------
CELERY_BROKER_URL = os.environ.get(
    "CELERY_BROKER_URL", "redis://localhost:6379/0")
CELERY_RESULT_BACKEND = os.environ.get("CELERY_RESULT_BACKEND", None)
CELERY_TASK_ALWAYS_EAGER = env_bool("CELERY_TASK_ALWAYS_EAGER", False)
CELERY_TASK_DEFAULT_QUEUE = "books"
# audits walk every party of a business; take one at a time
CELERY_WORKER_PREFETCH_MULTIPLIER = 1
CELERY_BEAT_SCHEDULE = {
    "mark-overdue-documents": {
        "task": "books_core.tasks.mark_overdue_documents",
        "schedule": crontab(hour=1, minute=0),
    },
    "audit-ledger-drift": {
        "task": "books_core.tasks.audit_all_businesses",
        "schedule": timedelta(hours=6),
    },
}

# ---------- Books ----------
# |difference| below this counts as a balanced reconciliation
RECONCILIATION_TOLERANCE = Decimal(
    os.environ.get("RECONCILIATION_TOLERANCE", "0.01"))

# ---------- TallyAI assistant ----------
ASSISTANT_BASE_URL = os.environ.get("ASSISTANT_BASE_URL") or None
ASSISTANT_TIMEOUT_SECONDS = float(
    os.environ.get("ASSISTANT_TIMEOUT_SECONDS", "30"))
# requests per user per hour
ASSISTANT_RATE_LIMIT = int(os.environ.get("ASSISTANT_RATE_LIMIT", "100"))
ASSISTANT_RATE_WINDOW = timedelta(hours=1)
ASSISTANT_MAX_RETRIES = int(os.environ.get("ASSISTANT_MAX_RETRIES", "3"))
ASSISTANT_RETRY_INITIAL_DELAY = 1.0
ASSISTANT_RETRY_MAX_DELAY = 5.0

# ---------- Logging ----------
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
LOG_FORMAT = os.environ.get("LOG_FORMAT", "console")
LOGGING = build_logging_config(LOG_LEVEL, LOG_FORMAT)
configure_structlog()
