"""
Webhook views: Slack app mentions in, GitHub pushes relayed to ArgoCD.

Both endpoints acknowledge immediately and leave the work to Celery; Slack
gives up on an event after three seconds.
"""

import json
import logging
import threading
from typing import Any

from django.conf import settings
from django.http import HttpResponse, JsonResponse
from django.utils.decorators import method_decorator
from django.views import View
from django.views.decorators.csrf import csrf_exempt

from apps.deploys.relay import application_from_push
from apps.deploys.verification import verify_github_signature, verify_slack_signature

logger = logging.getLogger(__name__)


def dispatch_task(task, ctx: dict[str, Any]) -> str | None:
    """Enqueue `task`; if the broker is unreachable, run it on a daemon thread."""
    try:
        async_res = task.delay(ctx)
        return async_res.id
    except Exception as enqueue_err:
        # Don't drop a deployment because the broker is down.
        logger.warning(
            "Celery enqueue of %s failed; running in a background thread: %s",
            task.name,
            enqueue_err,
        )
        threading.Thread(target=task, args=(ctx,), daemon=True).start()
        return None


@method_decorator(csrf_exempt, name="dispatch")
class SlackEventsView(View):
    """
    Slack Events API endpoint.

    POST /slack/events/
    """

    def post(self, request):
        from apps.deploys.tasks import run_deployment

        body = request.body
        if not verify_slack_signature(
            getattr(settings, "SLACK_SIGNING_SECRET", ""),
            request.headers.get("X-Slack-Request-Timestamp"),
            body,
            request.headers.get("X-Slack-Signature"),
        ):
            logger.warning("Rejected Slack event with a missing or invalid signature")
            return JsonResponse({"status": "error", "message": "invalid signature"}, status=401)

        try:
            payload = json.loads(body)
        except json.JSONDecodeError as e:
            logger.warning(f"Invalid JSON payload: {e}")
            return JsonResponse({"status": "error", "message": "Invalid JSON payload"}, status=400)

        if payload.get("type") == "url_verification":
            return HttpResponse(payload.get("challenge", ""), content_type="text/plain")

        response = JsonResponse({"status": "ignored"})
        response["X-Slack-No-Retry"] = str(getattr(settings, "SLACK_NO_RETRY", "1"))

        # Slack redelivers when our ack was slow; the first delivery already started a run.
        if request.headers.get("X-Slack-Retry-Num"):
            logger.info("Ignoring Slack retry %s", request.headers.get("X-Slack-Retry-Num"))
            return response

        event = payload.get("event") or {}
        if payload.get("type") != "event_callback" or event.get("type") != "app_mention":
            return response

        ctx = {
            "text": event.get("text", ""),
            "channel": event.get("channel", ""),
            "thread_ts": event.get("thread_ts") or event.get("ts"),
            "user": event.get("user", ""),
        }
        task_id = dispatch_task(run_deployment, ctx)

        response = JsonResponse({"status": "queued", "task_id": task_id})
        response["X-Slack-No-Retry"] = str(getattr(settings, "SLACK_NO_RETRY", "1"))
        return response

    def get(self, request):
        """Health check endpoint."""
        return JsonResponse({"status": "ok", "message": "Slack events endpoint is ready"})


@method_decorator(csrf_exempt, name="dispatch")
class GitShotView(View):
    """
    GitHub push webhook relay.

    POST /deploys/gitshot/
    """

    def post(self, request):
        from apps.deploys.tasks import relay_push_event

        body = request.body
        secret = getattr(settings, "GITHUB_WEBHOOK_SECRET", "")
        if secret and not verify_github_signature(
            secret, body, request.headers.get("X-Hub-Signature-256")
        ):
            logger.warning("Rejected GitHub webhook with a missing or invalid signature")
            return JsonResponse({"status": "error", "message": "invalid signature"}, status=401)

        event = request.headers.get("X-GitHub-Event", "push")
        if event == "ping":
            return JsonResponse({"status": "pong"})
        if event != "push":
            return JsonResponse({"status": "ignored", "event": event})

        try:
            payload = json.loads(body)
        except json.JSONDecodeError as e:
            logger.warning(f"Invalid JSON payload: {e}")
            return JsonResponse({"status": "error", "message": "Invalid JSON payload"}, status=400)

        application = application_from_push(payload) if isinstance(payload, dict) else None
        task_id = dispatch_task(
            relay_push_event,
            {"body": body.decode("utf-8"), "event": event, "application": application},
        )
        return JsonResponse(
            {"status": "queued", "task_id": task_id, "application": application}, status=202
        )

    def get(self, request):
        """Health check endpoint."""
        return JsonResponse({"status": "ok", "message": "GitHub relay endpoint is ready"})
