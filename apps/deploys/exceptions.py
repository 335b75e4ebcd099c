"""
Deployment error taxonomy.

Every pipeline stage failure is one of these; the orchestrator turns each into
exactly one narration and ends the run. `PollTransportError` is the exception:
the reconciler narrates it and keeps polling.
"""


class DeployError(Exception):
    """Base class for expected, user-facing deployment failures."""

    error_type = "DeployError"

    def __init__(self, message: str, narration: str | None = None):
        super().__init__(message)
        self.narration = narration or f"_Error {message}_"


class InvalidRequest(DeployError):
    error_type = "InvalidRequest"


class ArtifactNotFound(DeployError):
    error_type = "ArtifactNotFound"


class ChecksIncomplete(DeployError):
    error_type = "ChecksIncomplete"


class DownloadFailed(DeployError):
    error_type = "DownloadFailed"


class MutationFieldMissing(DeployError):
    error_type = "MutationFieldMissing"


class CommitFailed(DeployError):
    error_type = "CommitFailed"


class SyncTriggerFailed(DeployError):
    error_type = "SyncTriggerFailed"


class PollTransportError(DeployError):
    error_type = "PollTransportError"


class DeploymentInProgress(DeployError):
    error_type = "DeploymentInProgress"
