"""
Data Transfer Objects (DTOs) for the deployment pipeline.

These are the contracts between the orchestrator, the reconciler and the
collaborator clients. Everything that crosses a stage boundary is immutable;
the only thing that "changes" during a run is the PollTally, and it changes by
replacement.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any


class SyncState(str, Enum):
    """ArgoCD sync status of one managed resource."""

    UNKNOWN = "Unknown"
    OUT_OF_SYNC = "OutOfSync"
    PROGRESSING = "Progressing"
    SYNCED = "Synced"


class Verdict(str, Enum):
    """Outcome of one poll cycle."""

    CONTINUE = "continue"
    SUCCESS = "success"
    GIVE_UP = "give_up"

    @property
    def is_terminal(self) -> bool:
        return self is not Verdict.CONTINUE


class DeployStage(str, Enum):
    RESOLVE = "resolve"
    ARTIFACT = "artifact"
    CHECKS = "checks"
    MANIFEST = "manifest"
    COMMIT = "commit"
    SYNC = "sync"


class DeployStatus(str, Enum):
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"
    GAVE_UP = "GAVE_UP"


@dataclass(frozen=True)
class DeploymentRequest:
    """What a chat mention asked for: an application and a PR number or the main branch."""

    application: str
    ref: str


@dataclass(frozen=True)
class ResolvedRef:
    """A DeploymentRequest ref resolved to a concrete commit."""

    commit_sha: str
    pull_number: int | None = None
    html_url: str = ""

    @property
    def is_pull_request(self) -> bool:
        return self.pull_number is not None


@dataclass(frozen=True)
class ArtifactIdentifier:
    """A container image in the registry, built from one commit."""

    repository: str
    tag: str
    commit_sha: str

    @property
    def image(self) -> str:
        return f"{self.repository}:{self.tag}"


@dataclass(frozen=True)
class ManifestFile:
    """A manifest downloaded from the GitOps repository."""

    path: str
    content: bytes
    blob_sha: str


@dataclass(frozen=True)
class ManifestMutation:
    """
    Result of substituting the image tag in a manifest.

    On success `mutated_document` is set and `message` describes the change.
    On failure `mutated_document` is empty and `error` explains why.
    """

    original_document: bytes
    mutated_document: bytes = b""
    message: str = ""
    error: str = ""

    @property
    def has_errors(self) -> bool:
        return bool(self.error)


@dataclass(frozen=True)
class ResourceStatus:
    name: str
    state: SyncState


@dataclass(frozen=True)
class PollTally:
    """
    Per-run counters for the polling loop.

    The three *_seen counters only ever grow; they gate narration, not the
    verdict. `iteration` counts completed poll cycles.
    """

    out_of_sync_seen: int = 0
    unknown_seen: int = 0
    synced_seen: int = 0
    iteration: int = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Evaluation:
    """What `StatusReconciler.evaluate` decided for one snapshot."""

    verdict: Verdict
    tally: PollTally
    narrations: tuple[str, ...] = ()
    synced_in_snapshot: int = 0


@dataclass(frozen=True)
class ReconcileResult:
    verdict: Verdict
    iterations: int
    tally: PollTally


@dataclass
class DeployResult:
    """Final result of one orchestration run."""

    request: DeploymentRequest
    status: DeployStatus
    run_id: str = ""
    failed_stage: DeployStage | None = None
    error_type: str = ""
    error: str = ""
    artifact: ArtifactIdentifier | None = None
    iterations: int = 0
    stages_completed: list[DeployStage] = field(default_factory=list)
    duration_ms: float = 0.0

    @property
    def succeeded(self) -> bool:
        return self.status == DeployStatus.SUCCEEDED

    def to_dict(self) -> dict[str, Any]:
        return {
            "run_id": self.run_id,
            "application": self.request.application,
            "ref": self.request.ref,
            "status": self.status.value,
            "failed_stage": self.failed_stage.value if self.failed_stage else None,
            "error_type": self.error_type,
            "error": self.error,
            "image": self.artifact.image if self.artifact else None,
            "iterations": self.iterations,
            "stages_completed": [stage.value for stage in self.stages_completed],
            "duration_ms": self.duration_ms,
        }
