"""
Django settings for deploy-bot.

Everything is driven by environment variables (optionally loaded from .env by
config.env.load_env). Deploy knobs are grouped by collaborator: Slack, GitHub,
ECR, ArgoCD, and the polling loop itself.
"""

from __future__ import annotations

import os
from pathlib import Path

from config.env import load_env

BASE_DIR = Path(__file__).resolve().parent.parent

load_env(BASE_DIR)


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.environ.get(name)
    return int(value) if value else default


def _env_float(name: str, default: float) -> float:
    value = os.environ.get(name)
    return float(value) if value else default


SECRET_KEY = os.environ.get("DJANGO_SECRET_KEY", "insecure-dev-key-change-me")
DEBUG = _env_bool("DJANGO_DEBUG", False)
ALLOWED_HOSTS = [h for h in os.environ.get("DJANGO_ALLOWED_HOSTS", "*").split(",") if h]

INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "apps.notify",
    "apps.deploys",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.middleware.common.CommonMiddleware",
]

ROOT_URLCONF = "config.urls"
WSGI_APPLICATION = "config.wsgi.application"

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": BASE_DIR / "db.sqlite3",
    }
}

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"
USE_TZ = True
TIME_ZONE = "UTC"

# Per-application deploy locks live in the cache, so multi-worker setups need
# a shared backend (Redis).
DEPLOY_CACHE_URL = os.environ.get("DEPLOY_CACHE_URL", "")
if DEPLOY_CACHE_URL:
    CACHES = {
        "default": {
            "BACKEND": "django.core.cache.backends.redis.RedisCache",
            "LOCATION": DEPLOY_CACHE_URL,
        }
    }
else:
    CACHES = {
        "default": {
            "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
            "LOCATION": "deploy-bot",
        }
    }

# --- Celery ---
CELERY_BROKER_URL = os.environ.get("CELERY_BROKER_URL", "redis://localhost:6379/0")
CELERY_RESULT_BACKEND = os.environ.get("CELERY_RESULT_BACKEND", CELERY_BROKER_URL)
CELERY_TASK_ALWAYS_EAGER = _env_bool("CELERY_TASK_ALWAYS_EAGER", False)
CELERY_TASK_SERIALIZER = "json"
CELERY_RESULT_SERIALIZER = "json"
CELERY_ACCEPT_CONTENT = ["json"]

# --- Slack ---
SLACK_BOT_TOKEN = os.environ.get("SLACK_BOT_TOKEN", "")
SLACK_SIGNING_SECRET = os.environ.get("SLACK_SIGNING_SECRET", "")
SLACK_NO_RETRY = os.environ.get("SLACK_NO_RETRY", "1")
SLACK_API_URL = os.environ.get("SLACK_API_URL", "https://slack.com/api")

# --- GitHub ---
GITHUB_API_URL = os.environ.get("GITHUB_API_URL", "https://api.github.com")
GITHUB_TOKEN = os.environ.get("GITHUB_TOKEN", "")
GITHUB_OWNER = os.environ.get("GITHUB_OWNER", "")
GITHUB_WEBHOOK_SECRET = os.environ.get("GITHUB_WEBHOOK_SECRET", "")
GITOPS_REPO = os.environ.get("GITOPS_REPO", "gitops")
GITOPS_BRANCH = os.environ.get("GITOPS_BRANCH", "main")

# --- ECR ---
AWS_REGION = os.environ.get("AWS_REGION", "us-east-1")
DEPLOY_ECR_REPOSITORY_TEMPLATE = os.environ.get("DEPLOY_ECR_REPOSITORY_TEMPLATE", "{app}")
DEPLOY_IMAGE_TAG_LENGTH = _env_int("DEPLOY_IMAGE_TAG_LENGTH", 7)

# --- ArgoCD ---
ARGOCD_SERVER = os.environ.get("ARGOCD_SERVER", "")
ARGOCD_UI_URL = os.environ.get("ARGOCD_UI_URL", ARGOCD_SERVER)
ARGOCD_JWT = os.environ.get("ARGOCD_JWT", "")
ARGOCD_VERIFY_TLS = _env_bool("ARGOCD_VERIFY_TLS", True)

# --- Deploy pipeline ---
DEPLOY_MAIN_BRANCH = os.environ.get("DEPLOY_MAIN_BRANCH", "main")
DEPLOY_MANIFEST_PATH_TEMPLATE = os.environ.get("DEPLOY_MANIFEST_PATH_TEMPLATE", "{app}/values.yaml")
DEPLOY_MANIFEST_TAG_PATH = os.environ.get("DEPLOY_MANIFEST_TAG_PATH", "image.tag")
DEPLOY_HTTP_TIMEOUT_SECONDS = _env_float("DEPLOY_HTTP_TIMEOUT_SECONDS", 15.0)
DEPLOY_GRACE_SECONDS = _env_float("DEPLOY_GRACE_SECONDS", 2.0)
DEPLOY_RELAY_GRACE_SECONDS = _env_float("DEPLOY_RELAY_GRACE_SECONDS", 5.0)
DEPLOY_POLL_INTERVAL_SECONDS = _env_float("DEPLOY_POLL_INTERVAL_SECONDS", 4.0)
DEPLOY_MAX_POLL_ITERATIONS = _env_int("DEPLOY_MAX_POLL_ITERATIONS", 6)
DEPLOY_SYNC_THRESHOLD = _env_int("DEPLOY_SYNC_THRESHOLD", 2)
DEPLOY_NARRATION_GATE = _env_int("DEPLOY_NARRATION_GATE", 2)
DEPLOY_APPLICATION_LOCK_ENABLED = _env_bool("DEPLOY_APPLICATION_LOCK_ENABLED", True)
DEPLOY_LOCK_TIMEOUT_SECONDS = _env_int("DEPLOY_LOCK_TIMEOUT_SECONDS", 900)
DEPLOY_RELAY_CHANNEL = os.environ.get("DEPLOY_RELAY_CHANNEL", "")

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "%(asctime)s %(levelname)s %(name)s %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "verbose",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": LOG_LEVEL,
    },
    "loggers": {
        "apps": {
            "handlers": ["console"],
            "level": LOG_LEVEL,
            "propagate": False,
        },
    },
}
