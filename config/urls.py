"""Root URL configuration for deploy-bot."""

from django.urls import include, path

urlpatterns = [
    path("", include("apps.deploys.urls")),
]
