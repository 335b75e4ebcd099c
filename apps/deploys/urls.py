"""
URL configuration for the deploys app.
"""

from django.urls import path

from apps.deploys.views import GitShotView, SlackEventsView

app_name = "deploys"

urlpatterns = [
    path("slack/events/", SlackEventsView.as_view(), name="slack_events"),
    path("deploys/gitshot/", GitShotView.as_view(), name="gitshot"),
]
