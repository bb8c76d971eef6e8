"""
Error types for submission and job processing.

All errors inherit from VibecastError. Submission errors reach the HTTP
caller; everything raised after the acknowledgement is only logged.
"""

from typing import Optional


class VibecastError(Exception):
    """Base exception for all vibecast failures."""
    pass


class MissingInput(VibecastError):
    """Raised when a submission carries no video file."""

    def __init__(self, message: str = "Missing video"):
        super().__init__(message)


class InvalidOverlayPath(VibecastError):
    """Raised when the overlay path does not resolve to an existing file."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Invalid song path: {path}")


class WorkspaceCollision(VibecastError):
    """Raised when a workspace directory for a job id already exists."""

    def __init__(self, folder: str):
        self.folder = folder
        super().__init__(f"Workspace already exists: {folder}")


class WorkspaceNotFound(VibecastError):

    def __init__(self, folder: str):
        self.folder = folder
        super().__init__(f"Workspace not found: {folder}")


class ExternalToolError(VibecastError):
    """
    Base for failures of an external media process.

    `diagnostic` holds whatever the tool reported (usually stderr).
    """

    stage = "external"

    def __init__(self, path: str, diagnostic: Optional[str] = None):
        self.path = path
        self.diagnostic = diagnostic or ""
        message = f"{self.stage} failed for {path}"
        if self.diagnostic:
            message = f"{message}: {self.diagnostic}"
        super().__init__(message)


class ProbeFailed(ExternalToolError):
    stage = "probe"


class ThumbnailFailed(ExternalToolError):
    stage = "thumbnail"


class EncodeFailed(ExternalToolError):
    stage = "encode"


class InvalidStateTransition(VibecastError):
    """Raised when a job is moved along an edge its lifecycle does not have."""

    def __init__(self, job_id: str, current_state: str, target_state: str):
        self.job_id = job_id
        self.current_state = current_state
        self.target_state = target_state
        super().__init__(
            f"Invalid job state transition for {job_id}: "
            f"{current_state} -> {target_state}"
        )
