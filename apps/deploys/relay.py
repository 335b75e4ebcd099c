"""
GitHub push relay.

ArgoCD only polls Git every few minutes. When the GitOps repository receives
a push, GitHub calls us; we hand the same body to ArgoCD's webhook endpoint so
it refreshes now, trigger a sync of the application whose manifest changed,
and narrate its status through the shared reconciler.
"""

from __future__ import annotations

import logging
import re
from typing import Any

from django.conf import settings

from apps.deploys.clients import ArgoCDClient, ServiceError
from apps.deploys.dtos import Verdict
from apps.deploys.reconciler import StatusReconciler
from apps.notify.services import NotificationSink

logger = logging.getLogger(__name__)


def _manifest_pattern(template: str) -> re.Pattern[str]:
    escaped = re.escape(template).replace(re.escape("{app}"), r"(?P<app>[^/]+)")
    return re.compile(escaped)


def application_from_push(payload: dict[str, Any], template: str | None = None) -> str | None:
    """Name of the first application whose manifest the push touched."""
    template = template or getattr(settings, "DEPLOY_MANIFEST_PATH_TEMPLATE", "{app}/values.yaml")
    pattern = _manifest_pattern(template)

    commits: list[Any] = []
    if isinstance(payload.get("head_commit"), dict):
        commits.append(payload["head_commit"])
    commits.extend(c for c in payload.get("commits") or [] if isinstance(c, dict))

    for commit in commits:
        for key in ("modified", "added"):
            for path in commit.get(key) or []:
                match = pattern.fullmatch(str(path))
                if match:
                    return match.group("app")
    return None


def relay_sink() -> NotificationSink:
    channel = getattr(settings, "DEPLOY_RELAY_CHANNEL", "")
    if channel:
        return NotificationSink.for_slack(channel)
    return NotificationSink.for_log()


def relay_push(
    body: bytes,
    application: str | None,
    sink: NotificationSink,
    event: str = "push",
    argocd: ArgoCDClient | None = None,
    reconciler: StatusReconciler | None = None,
) -> Verdict | None:
    """Forward, sync and reconcile. Returns the verdict, or None when nothing was polled."""
    argocd = argocd or ArgoCDClient()

    try:
        argocd.forward_webhook(body, event=event)
    except ServiceError as e:
        logger.error(f"Failed to forward GitHub webhook to ArgoCD: {e}")
        sink.send(f"_Error forwarding gitshot to Argocd: `{e}`_", severity="critical")
        return None

    if not application:
        logger.info("Push did not touch an application manifest; nothing to sync")
        return None

    try:
        argocd.sync(application)
    except ServiceError as e:
        logger.error(f"Failed to sync {application}: {e}")
        sink.send(f"_Error syncing {application} in Argocd: `{e}`_", severity="critical")
        return None
    sink.send(f"_`{application}` sync underway_")

    reconciler = reconciler or StatusReconciler(argocd=argocd)
    return reconciler.reconcile_after_relay(application, sink).verdict
