"""Celery application bootstrap for deploy-bot.

Every Slack mention becomes one `apps.deploys.tasks.run_deployment` task, so
concurrent deployments run in separate workers and never share state.

Run workers with something like:
- celery -A config worker -l info --concurrency 8

Broker/result backend are configured via Django settings (see config/settings.py).
"""

from __future__ import annotations

import os

from celery import Celery

from config.env import load_env

load_env()

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("deploy-bot")

# Load Celery config from Django settings using CELERY_* namespace.
app.config_from_object("django.conf:settings", namespace="CELERY")

app.autodiscover_tasks()
