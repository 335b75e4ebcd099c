"""ArgoCD API client: sync trigger, application status, webhook relay."""

from __future__ import annotations

import ssl
import urllib.parse
from typing import Any

from django.conf import settings

from apps.deploys.clients.base import JsonHttpClient


class ArgoCDClient(JsonHttpClient):
    service_name = "ArgoCD"

    def __init__(
        self,
        server: str | None = None,
        token: str | None = None,
        verify_tls: bool | None = None,
        ui_url: str | None = None,
        timeout: float | None = None,
    ):
        server = server if server is not None else getattr(settings, "ARGOCD_SERVER", "")
        token = token if token is not None else getattr(settings, "ARGOCD_JWT", "")
        verify_tls = (
            verify_tls if verify_tls is not None else getattr(settings, "ARGOCD_VERIFY_TLS", True)
        )

        ssl_context = None
        if not verify_tls:
            # In-cluster ArgoCD commonly serves a self-signed certificate.
            ssl_context = ssl.create_default_context()
            ssl_context.check_hostname = False
            ssl_context.verify_mode = ssl.CERT_NONE

        super().__init__(
            server,
            headers={"Authorization": f"Bearer {token}"},
            timeout=(
                timeout
                if timeout is not None
                else float(getattr(settings, "DEPLOY_HTTP_TIMEOUT_SECONDS", 15.0))
            ),
            ssl_context=ssl_context,
        )
        self.ui_url = (ui_url or getattr(settings, "ARGOCD_UI_URL", "") or server).rstrip("/")

    def _app_path(self, application: str) -> str:
        return f"api/v1/applications/{urllib.parse.quote(application)}"

    def sync(self, application: str) -> None:
        """Ask ArgoCD to reconcile the application. The response body is not inspected."""
        self.request("POST", f"{self._app_path(application)}/sync", payload={})

    def get_application(self, application: str) -> dict[str, Any]:
        return self.request("GET", self._app_path(application))

    def forward_webhook(self, body: bytes, event: str = "push") -> None:
        """Relay a GitHub webhook body to ArgoCD so it refreshes immediately."""
        self.request(
            "POST",
            "api/webhook",
            data=body,
            headers={"Content-Type": "application/json", "X-GitHub-Event": event},
        )

    def application_url(self, application: str) -> str:
        return f"{self.ui_url}/applications/{urllib.parse.quote(application)}"
