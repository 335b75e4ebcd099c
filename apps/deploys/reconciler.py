"""
Status reconciliation against ArgoCD.

After a sync is triggered, ArgoCD reports each managed Deployment's sync
state independently and eventually. The reconciler polls the application,
folds each snapshot into a Verdict and narrates what it sees, until either
the consensus is reached or the iteration budget runs out.

Rules for one snapshot (see `StatusReconciler.evaluate`):
- resources are walked in the order ArgoCD returns them;
- OutOfSync and Unknown are narrated only for their first `narration_gate`
  occurrences in the whole run; Synced is always narrated;
- the walk stops at the first resource it would not narrate (for example a
  Progressing one), so later resources go unmentioned for that iteration;
- SUCCESS needs exactly `sync_threshold` Synced resources in the snapshot.

Two entry points share this loop: the chat-triggered deployment
(`reconcile_after_commit`) and the GitHub webhook relay
(`reconcile_after_relay`). They only differ in the grace delay.
"""

from __future__ import annotations

import logging
import time
from dataclasses import replace
from typing import Any, Callable

from django.conf import settings

from apps.deploys.clients import ArgoCDClient, ServiceError
from apps.deploys.dtos import (
    Evaluation,
    PollTally,
    ReconcileResult,
    ResourceStatus,
    SyncState,
    Verdict,
)
from apps.deploys.exceptions import PollTransportError
from apps.deploys.signals import SignalTags, emit_poll_iteration
from apps.notify.services import NotificationSink

logger = logging.getLogger(__name__)

TRACKED_KIND = "Deployment"


def _to_state(value: str) -> SyncState:
    try:
        return SyncState(value)
    except ValueError:
        logger.warning(f"Unrecognised ArgoCD sync status {value!r}; treating as Unknown")
        return SyncState.UNKNOWN


def decode_statuses(document: Any) -> list[ResourceStatus]:
    """
    Reduce an ArgoCD application document to its Deployment sync states.

    Raises:
        PollTransportError: If the document does not have the expected shape.
    """
    if not isinstance(document, dict):
        raise PollTransportError("application document is not a JSON object")

    status = document.get("status")
    if not isinstance(status, dict):
        raise PollTransportError("application document has no `status` object")

    resources = status.get("resources")
    if not isinstance(resources, list):
        raise PollTransportError("application status has no `resources` list")

    statuses: list[ResourceStatus] = []
    for entry in resources:
        if not isinstance(entry, dict):
            raise PollTransportError("application resource entry is not an object")
        if entry.get("kind") != TRACKED_KIND:
            continue
        name = entry.get("name")
        state = entry.get("status")
        if not isinstance(name, str) or not isinstance(state, str):
            raise PollTransportError(f"{TRACKED_KIND} entry is missing `name` or `status`")
        statuses.append(ResourceStatus(name=name, state=_to_state(state)))
    return statuses


class StatusReconciler:
    max_iterations: int
    sync_threshold: int
    narration_gate: int
    poll_interval: float

    def __init__(
        self,
        argocd: ArgoCDClient | None = None,
        max_iterations: int | None = None,
        sync_threshold: int | None = None,
        narration_gate: int | None = None,
        poll_interval: float | None = None,
        grace_seconds: float | None = None,
        relay_grace_seconds: float | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.argocd = argocd or ArgoCDClient()
        self.max_iterations = (
            max_iterations
            if max_iterations is not None
            else int(getattr(settings, "DEPLOY_MAX_POLL_ITERATIONS", 6))
        )
        self.sync_threshold = (
            sync_threshold
            if sync_threshold is not None
            else int(getattr(settings, "DEPLOY_SYNC_THRESHOLD", 2))
        )
        self.narration_gate = (
            narration_gate
            if narration_gate is not None
            else int(getattr(settings, "DEPLOY_NARRATION_GATE", 2))
        )
        self.poll_interval = (
            poll_interval
            if poll_interval is not None
            else float(getattr(settings, "DEPLOY_POLL_INTERVAL_SECONDS", 4.0))
        )
        self.grace_seconds = (
            grace_seconds
            if grace_seconds is not None
            else float(getattr(settings, "DEPLOY_GRACE_SECONDS", 2.0))
        )
        self.relay_grace_seconds = (
            relay_grace_seconds
            if relay_grace_seconds is not None
            else float(getattr(settings, "DEPLOY_RELAY_GRACE_SECONDS", 5.0))
        )
        self._sleep = sleep

    def poll(self, application: str) -> list[ResourceStatus]:
        """Fetch the current snapshot for `application`."""
        try:
            document = self.argocd.get_application(application)
        except ServiceError as e:
            raise PollTransportError(
                str(e), narration=f"_Error getting deployment status: `{e}`_"
            ) from e
        try:
            return decode_statuses(document)
        except PollTransportError as e:
            e.narration = f"_Error getting deployment status: `{e}`_"
            raise

    def evaluate(self, tally: PollTally, statuses: list[ResourceStatus]) -> Evaluation:
        """
        Fold one snapshot into a verdict.

        Pure: the input tally is never modified, and the same inputs always
        give the same Evaluation.
        """
        out_of_sync = tally.out_of_sync_seen
        unknown = tally.unknown_seen
        synced = tally.synced_seen
        narrations: list[str] = []

        for status in statuses:
            if status.state is SyncState.OUT_OF_SYNC:
                out_of_sync += 1
            elif status.state is SyncState.UNKNOWN:
                unknown += 1
            elif status.state is SyncState.SYNCED:
                synced += 1

            line = f"_{status.name}: `{status.state.value}`_"
            if status.state is SyncState.OUT_OF_SYNC and out_of_sync <= self.narration_gate:
                narrations.append(line)
            elif status.state is SyncState.UNKNOWN and unknown <= self.narration_gate:
                narrations.append(line)
            elif status.state is SyncState.SYNCED:
                narrations.append(line)
            else:
                # Anything else ends this iteration's walk; remaining resources
                # are neither counted nor narrated.
                break

        synced_in_snapshot = sum(1 for s in statuses if s.state is SyncState.SYNCED)
        iteration = tally.iteration + 1

        if synced_in_snapshot == self.sync_threshold:
            verdict = Verdict.SUCCESS
        elif iteration >= self.max_iterations:
            verdict = Verdict.GIVE_UP
        else:
            verdict = Verdict.CONTINUE

        return Evaluation(
            verdict=verdict,
            tally=replace(
                tally,
                out_of_sync_seen=out_of_sync,
                unknown_seen=unknown,
                synced_seen=synced,
                iteration=iteration,
            ),
            narrations=tuple(narrations),
            synced_in_snapshot=synced_in_snapshot,
        )

    def reconcile(
        self,
        application: str,
        sink: NotificationSink,
        grace_seconds: float,
        run_id: str = "",
    ) -> ReconcileResult:
        """Poll until SUCCESS or GIVE_UP, narrating into `sink`."""
        tags = SignalTags(run_id=run_id, application=application, stage="poll")
        self._sleep(grace_seconds)

        tally = PollTally()
        while True:
            try:
                statuses = self.poll(application)
            except PollTransportError as e:
                logger.warning(
                    f"Status poll for {application} failed: {e}",
                    extra={"run_id": run_id, "application": application},
                )
                sink.send(e.narration, severity="warning")
                statuses = []

            evaluation = self.evaluate(tally, statuses)
            tally = evaluation.tally
            for line in evaluation.narrations:
                sink.send(line)

            emit_poll_iteration(
                tags, tally.iteration, evaluation.verdict.value, evaluation.synced_in_snapshot
            )

            if evaluation.verdict is Verdict.SUCCESS:
                sink.send(f"_`{application}` Synced_", severity="success")
                break
            if evaluation.verdict is Verdict.GIVE_UP:
                url = self.argocd.application_url(application)
                sink.send(
                    f"_Potential `Sync` error, please investigate: {url}_",
                    severity="warning",
                )
                break

            self._sleep(self.poll_interval)

        logger.info(
            f"Reconciliation of {application} ended with {evaluation.verdict.value} "
            f"after {tally.iteration} iteration(s)",
            extra={"run_id": run_id, "application": application},
        )
        return ReconcileResult(verdict=evaluation.verdict, iterations=tally.iteration, tally=tally)

    def reconcile_after_commit(
        self, application: str, sink: NotificationSink, run_id: str = ""
    ) -> ReconcileResult:
        """Entry point for chat-triggered deployments (after commit + sync)."""
        return self.reconcile(application, sink, self.grace_seconds, run_id=run_id)

    def reconcile_after_relay(
        self, application: str, sink: NotificationSink, run_id: str = ""
    ) -> ReconcileResult:
        """Entry point for the GitHub push relay (after forwarding + sync)."""
        return self.reconcile(application, sink, self.relay_grace_seconds, run_id=run_id)
