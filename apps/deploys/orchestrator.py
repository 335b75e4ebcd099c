"""
Deployment Orchestrator service.

Drives one chat-triggered deployment end to end:

    resolve → artifact → checks → manifest → commit → sync (+ status polling)

Key responsibilities:
1. Fail fast: the first failing stage ends the run; later stages never run.
2. Narration: every stage emits exactly one message on success, and a failed
   run emits exactly one error message, so the Slack thread reads as a linear
   progress log that always ends in a terminal message.
3. Isolation: all run state (tally, snapshots, sink) belongs to this call.
4. Observability: signals at every stage boundary, keyed by run_id.

There are no retries here. A failed deployment is restarted by mentioning
the bot again.
"""

from __future__ import annotations

import logging
import time
import uuid
from typing import Any, Callable

from django.conf import settings

from apps.deploys.clients import ArgoCDClient, GitHubClient, ServiceError
from apps.deploys.dtos import (
    ArtifactIdentifier,
    DeploymentRequest,
    DeployResult,
    DeployStage,
    DeployStatus,
    ManifestFile,
    ManifestMutation,
    ResolvedRef,
    Verdict,
)
from apps.deploys.exceptions import (
    ArtifactNotFound,
    ChecksIncomplete,
    CommitFailed,
    DeployError,
    DownloadFailed,
    InvalidRequest,
    MutationFieldMissing,
    SyncTriggerFailed,
)
from apps.deploys.gate import ArtifactGate
from apps.deploys.locks import application_lock
from apps.deploys.manifest import ManifestMutator
from apps.deploys.parsing import PR_NUMBER_RE
from apps.deploys.reconciler import StatusReconciler
from apps.deploys.signals import (
    SignalTags,
    StageTimer,
    emit_run_completed,
    emit_run_started,
)
from apps.notify.services import NotificationSink

logger = logging.getLogger(__name__)


class DeploymentOrchestrator:
    """
    Main orchestrator service for deployments.

    Usage:
        orchestrator = DeploymentOrchestrator()
        result = orchestrator.run(DeploymentRequest("checkout", "42"), sink)
    """

    main_branch: str
    lock_enabled: bool

    def __init__(
        self,
        gate: ArtifactGate | None = None,
        github: GitHubClient | None = None,
        argocd: ArgoCDClient | None = None,
        mutator: ManifestMutator | None = None,
        reconciler: StatusReconciler | None = None,
        main_branch: str | None = None,
        lock_enabled: bool | None = None,
    ):
        self.github = github or GitHubClient()
        self.argocd = argocd or ArgoCDClient()
        self.gate = gate or ArtifactGate(github=self.github)
        self.mutator = mutator or ManifestMutator()
        self.reconciler = reconciler or StatusReconciler(argocd=self.argocd)
        self.main_branch = main_branch or getattr(settings, "DEPLOY_MAIN_BRANCH", "main")
        self.lock_enabled = (
            lock_enabled
            if lock_enabled is not None
            else bool(getattr(settings, "DEPLOY_APPLICATION_LOCK_ENABLED", True))
        )

    def run(
        self,
        request: DeploymentRequest,
        sink: NotificationSink,
        run_id: str | None = None,
    ) -> DeployResult:
        """Run the whole pipeline for one request. Never raises."""
        run_id = run_id or str(uuid.uuid4())
        start_time = time.perf_counter()
        result = DeployResult(request=request, status=DeployStatus.FAILED, run_id=run_id)
        tags = SignalTags(
            run_id=run_id, application=request.application, stage="run", ref=request.ref
        )
        log_extra = {"run_id": run_id, "application": request.application}

        emit_run_started(tags)
        logger.info(f"Deployment started: {request.application}@{request.ref}", extra=log_extra)

        try:
            with application_lock(request.application, run_id, enabled=self.lock_enabled):
                self._execute(request, sink, tags, result)

        except DeployError as e:
            result.status = DeployStatus.FAILED
            result.error_type = e.error_type
            result.error = str(e)
            logger.info(
                f"Deployment of {request.application} stopped at "
                f"{result.failed_stage.value if result.failed_stage else 'start'}: {e}",
                extra=log_extra,
            )
            sink.send(e.narration, severity="critical")

        except Exception as e:
            result.status = DeployStatus.FAILED
            result.error_type = type(e).__name__
            result.error = str(e)
            logger.exception(
                f"Deployment of {request.application} failed unexpectedly: {e}", extra=log_extra
            )
            sink.send(f"_Error {e}_", severity="critical")

        result.duration_ms = (time.perf_counter() - start_time) * 1000
        emit_run_completed(tags, result.duration_ms, result.status.value)
        return result

    def _execute(
        self,
        request: DeploymentRequest,
        sink: NotificationSink,
        tags: SignalTags,
        result: DeployResult,
    ) -> None:
        app = request.application

        resolved: ResolvedRef = self._stage(
            DeployStage.RESOLVE, tags, result, self._resolve, request, sink
        )
        artifact: ArtifactIdentifier = self._stage(
            DeployStage.ARTIFACT, tags, result, self._confirm_artifact, app, resolved, sink
        )
        result.artifact = artifact
        self._stage(DeployStage.CHECKS, tags, result, self._confirm_checks, app, artifact, sink)
        manifest, mutation = self._stage(
            DeployStage.MANIFEST, tags, result, self._mutate_manifest, app, artifact, sink
        )
        self._stage(
            DeployStage.COMMIT, tags, result, self._commit, manifest, mutation, artifact, sink
        )
        verdict, iterations = self._stage(
            DeployStage.SYNC, tags, result, self._sync_and_reconcile, app, sink, result.run_id
        )

        result.iterations = iterations
        result.status = (
            DeployStatus.SUCCEEDED if verdict is Verdict.SUCCESS else DeployStatus.GAVE_UP
        )

    def _stage(
        self,
        stage: DeployStage,
        tags: SignalTags,
        result: DeployResult,
        func: Callable[..., Any],
        *args: Any,
    ) -> Any:
        result.failed_stage = stage
        with StageTimer(tags.for_stage(stage.value)):
            value = func(*args)
        result.failed_stage = None
        result.stages_completed.append(stage)
        return value

    # --- stages ---

    def _resolve(self, request: DeploymentRequest, sink: NotificationSink) -> ResolvedRef:
        app, ref = request.application, request.ref

        if ref == self.main_branch:
            try:
                sha = self.github.get_branch_head(app, ref)
            except ServiceError as e:
                if e.not_found:
                    raise InvalidRequest(str(e), narration=f"_Error: {e}_") from e
                raise
            sink.send(f"_Fetching `{ref}` for {app} app_")
            return ResolvedRef(commit_sha=sha)

        if not PR_NUMBER_RE.fullmatch(ref):
            raise InvalidRequest(
                f"`{ref}` is neither a pull request number nor `{self.main_branch}`",
                narration=f"_Error: `{ref}` is neither a pull request number nor `{self.main_branch}`_",
            )

        try:
            pr = self.github.get_pull_request(app, int(ref))
        except ServiceError as e:
            if e.not_found:
                raise InvalidRequest(str(e), narration=f"_Error: {e}_") from e
            raise

        sha = (pr.get("head") or {}).get("sha")
        if not sha:
            raise InvalidRequest(
                f"pull request {ref} of {app} has no head commit",
                narration=f"_Error: pull request {ref} of {app} has no head commit_",
            )
        html_url = pr.get("html_url", "")
        sink.send(f"_Fetching {html_url}_")
        return ResolvedRef(commit_sha=sha, pull_number=int(ref), html_url=html_url)

    def _confirm_artifact(
        self, app: str, resolved: ResolvedRef, sink: NotificationSink
    ) -> ArtifactIdentifier:
        artifact, exists = self.gate.exists(app, resolved.commit_sha)
        if not exists:
            raise ArtifactNotFound(
                f"{artifact.image} does not exist in ECR",
                narration=f"_`{artifact.image}` does not exist in ECR_",
            )
        sink.send(f"_Found `{artifact.image}` in ECR_")
        return artifact

    def _confirm_checks(self, app: str, artifact: ArtifactIdentifier, sink: NotificationSink) -> None:
        if not self.gate.checks_completed(app, artifact.commit_sha):
            raise ChecksIncomplete(
                f"checks for {artifact.commit_sha} are still running",
                narration=(
                    f"_`{artifact.image}` has not been promoted to ECR; "
                    "Github Actions are still underway_"
                ),
            )
        sink.send(f"_Github Actions completed for `{artifact.image}`_")

    def _mutate_manifest(
        self, app: str, artifact: ArtifactIdentifier, sink: NotificationSink
    ) -> tuple[ManifestFile, ManifestMutation]:
        try:
            manifest = self.github.download_manifest(app)
        except ServiceError as e:
            raise DownloadFailed(str(e)) from e

        mutation = self.mutator.apply(manifest.content, artifact.tag)
        if mutation.has_errors:
            raise MutationFieldMissing(
                f"{manifest.path}: {mutation.error}",
                narration=f"_Error updating `{manifest.path}`: {mutation.error}_",
            )

        sink.send(f"_Updated `{manifest.path}`: {mutation.message}_")
        return manifest, mutation

    def _commit(
        self,
        manifest: ManifestFile,
        mutation: ManifestMutation,
        artifact: ArtifactIdentifier,
        sink: NotificationSink,
    ) -> None:
        try:
            self.github.commit_manifest(manifest, mutation.mutated_document, artifact)
        except ServiceError as e:
            raise CommitFailed(str(e)) from e
        sink.send(f"_Deploying `{artifact.image}`_")

    def _sync_and_reconcile(
        self, app: str, sink: NotificationSink, run_id: str
    ) -> tuple[Verdict, int]:
        try:
            self.argocd.sync(app)
        except ServiceError as e:
            raise SyncTriggerFailed(
                str(e), narration=f"_Error syncing {app} in Argocd: `{e}`_"
            ) from e
        sink.send(f"_`{app}` sync underway_")

        outcome = self.reconciler.reconcile_after_commit(app, sink, run_id=run_id)
        return outcome.verdict, outcome.iterations
