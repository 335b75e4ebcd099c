"""Django app configuration for the deploys app."""

from django.apps import AppConfig


class DeploysConfig(AppConfig):
    """Configuration for the Deployment Orchestration app."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.deploys"
    verbose_name = "Deployment Orchestration"
