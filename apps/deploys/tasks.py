"""Celery tasks: one task per deployment request or relayed push.

A worker slot is held for the whole run, including the polling sleeps; size
worker concurrency for the number of deployments expected in flight.
"""

from __future__ import annotations

import logging
from typing import Any

from celery import shared_task

from apps.deploys.dtos import DeploymentRequest
from apps.deploys.exceptions import InvalidRequest
from apps.deploys.orchestrator import DeploymentOrchestrator
from apps.deploys.parsing import parse_mention
from apps.deploys.relay import relay_push, relay_sink
from apps.notify.services import NotificationSink

logger = logging.getLogger(__name__)


@shared_task(bind=True)
def run_deployment(self, ctx: dict[str, Any]) -> dict[str, Any]:
    """Entry-point task for an app mention.

    ctx keys: text, channel, thread_ts, user.
    """
    sink = NotificationSink.for_slack(ctx.get("channel", ""), ctx.get("thread_ts"))

    try:
        request: DeploymentRequest = parse_mention(ctx.get("text", ""))
    except InvalidRequest as e:
        logger.info(f"Rejected mention from {ctx.get('user')}: {e}")
        sink.send(e.narration)
        return {"status": "FAILED", "error_type": e.error_type, "error": str(e)}

    logger.info(
        f"Deployment requested by {ctx.get('user')}: {request.application}@{request.ref}"
    )
    result = DeploymentOrchestrator().run(request, sink, run_id=self.request.id)
    return result.to_dict()


@shared_task
def relay_push_event(ctx: dict[str, Any]) -> dict[str, Any]:
    """Forward a GitHub push to ArgoCD, sync the touched app, and narrate its status.

    ctx keys: body (raw JSON text), event, application.
    """
    verdict = relay_push(
        ctx.get("body", "").encode("utf-8"),
        ctx.get("application"),
        relay_sink(),
        event=ctx.get("event", "push"),
    )
    return {
        "application": ctx.get("application"),
        "verdict": verdict.value if verdict else None,
    }
