"""
Monitoring signals for deployment runs.

Structured log records at every stage boundary, so a run can be followed in
the log aggregator by `run_id` independently of what reached Slack.

Signals:
- deploy.run.started / deploy.run.completed
- deploy.stage.started / deploy.stage.succeeded / deploy.stage.failed
- deploy.stage.duration
- deploy.poll.iteration
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger("apps.deploys.signals")


@dataclass
class SignalTags:
    """Tags attached to every deploy signal."""

    run_id: str
    application: str
    stage: str  # resolve, artifact, checks, manifest, commit, sync, run
    ref: str = ""
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        base = {
            "run_id": self.run_id,
            "application": self.application,
            "stage": self.stage,
            "ref": self.ref,
        }
        base.update(self.extra)
        return base

    def for_stage(self, stage: str) -> "SignalTags":
        return SignalTags(
            run_id=self.run_id,
            application=self.application,
            stage=stage,
            ref=self.ref,
            extra=dict(self.extra),
        )


def emit(signal_name: str, tags: SignalTags, value: float | None = None, **extra: Any) -> None:
    data = {"signal": signal_name, "value": value, **tags.to_dict(), **extra}
    logger.info(f"[SIGNAL] {signal_name}", extra={"signal_data": data})


def emit_run_started(tags: SignalTags) -> None:
    emit("deploy.run.started", tags)


def emit_run_completed(tags: SignalTags, duration_ms: float, status: str) -> None:
    emit("deploy.run.completed", tags, value=duration_ms, final_status=status)


def emit_stage_started(tags: SignalTags) -> None:
    emit("deploy.stage.started", tags)


def emit_stage_succeeded(tags: SignalTags, duration_ms: float) -> None:
    emit("deploy.stage.succeeded", tags, duration_ms=duration_ms)
    emit("deploy.stage.duration", tags, value=duration_ms)


def emit_stage_failed(tags: SignalTags, error_type: str, error_message: str, duration_ms: float) -> None:
    emit(
        "deploy.stage.failed",
        tags,
        error_type=error_type,
        error_message=error_message,
        duration_ms=duration_ms,
    )
    emit("deploy.stage.duration", tags, value=duration_ms)


def emit_poll_iteration(tags: SignalTags, iteration: int, verdict: str, synced: int) -> None:
    emit("deploy.poll.iteration", tags, value=iteration, verdict=verdict, synced=synced)


class StageTimer:
    """Context manager for timing one pipeline stage."""

    def __init__(self, tags: SignalTags):
        self.tags = tags
        self.start_time: float = 0.0
        self.duration_ms: float = 0.0

    def __enter__(self) -> "StageTimer":
        self.start_time = time.perf_counter()
        emit_stage_started(self.tags)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.duration_ms = (time.perf_counter() - self.start_time) * 1000

        if exc_type is None:
            emit_stage_succeeded(self.tags, self.duration_ms)
        else:
            emit_stage_failed(
                self.tags,
                error_type=getattr(exc_val, "error_type", exc_type.__name__),
                error_message=str(exc_val),
                duration_ms=self.duration_ms,
            )
        # Don't suppress exceptions
        return False
