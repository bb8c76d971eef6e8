"""
Job orchestration.

JobOrchestrator validates a submission, allocates its workspace and hands
the job to a dispatch callable, returning before any media work starts.
JobPipeline is what eventually runs behind that dispatch:

    submitted -> probing -> planning -> encoding -> completed
    (any non-terminal state) -> failed

Terminal states are immutable. Every failure after submission ends in
`failed` and is logged, never raised.
"""

import logging
from pathlib import Path
from typing import Callable, Optional, Set, Tuple

from vibecast.errors import (
    ExternalToolError, InvalidOverlayPath, InvalidStateTransition, MissingInput,
    WorkspaceCollision,
)
from vibecast.models import AudioOverlay, Job, JobAck, JobOutcome, JobStatus
from vibecast.planner import plan
from vibecast.probe import MediaProber
from vibecast.video_processor import TranscodeExecutor
from vibecast.workspace import JobIdFactory, WorkspaceManager

logger = logging.getLogger(__name__)

MAX_ALLOCATION_ATTEMPTS = 5

_TRANSITIONS: Set[Tuple[JobStatus, JobStatus]] = {
    (JobStatus.SUBMITTED, JobStatus.PROBING),
    (JobStatus.PROBING, JobStatus.PLANNING),
    (JobStatus.PLANNING, JobStatus.ENCODING),
    (JobStatus.ENCODING, JobStatus.COMPLETED),
    (JobStatus.SUBMITTED, JobStatus.FAILED),
    (JobStatus.PROBING, JobStatus.FAILED),
    (JobStatus.PLANNING, JobStatus.FAILED),
    (JobStatus.ENCODING, JobStatus.FAILED),
}

TransitionCallback = Callable[[Job, JobStatus], None]


def can_transition(from_status: JobStatus, to_status: JobStatus) -> bool:
    if from_status.is_terminal:
        return False
    return (from_status, to_status) in _TRANSITIONS


def transition(job: Job, to_status: JobStatus,
               on_transition: Optional[TransitionCallback] = None) -> None:
    if not can_transition(job.status, to_status):
        raise InvalidStateTransition(job.id, job.status.value, to_status.value)
    logger.info(f"[LIFECYCLE] Job {job.id}: {job.status.value} -> {to_status.value}")
    job.status = to_status
    if on_transition:
        on_transition(job, to_status)


class JobPipeline:
    """Drives one job through probe, plan and execute."""

    def __init__(self, prober: MediaProber, executor: TranscodeExecutor,
                 max_width: int = 1920, max_height: int = 1080):
        self.prober = prober
        self.executor = executor
        self.max_width = max_width
        self.max_height = max_height

    def run(self, job: Job, on_transition: Optional[TransitionCallback] = None) -> JobOutcome:
        try:
            transition(job, JobStatus.PROBING, on_transition)
            profile = self.prober.probe(Path(job.source_video_path))

            transition(job, JobStatus.PLANNING, on_transition)
            transcode_plan = plan(profile, job.overlay, self.max_width, self.max_height)
            if transcode_plan.should_downscale:
                logger.info(f"Job {job.id}: downscaling to {transcode_plan.target_size}")

            transition(job, JobStatus.ENCODING, on_transition)
            artifacts = self.executor.execute(
                Path(job.source_video_path), transcode_plan, Path(job.workspace_dir)
            )
        except ExternalToolError as e:
            logger.error(f"Job {job.id} failed during {e.stage}: {e}")
            transition(job, JobStatus.FAILED, on_transition)
            return JobOutcome(job_id=job.id, status=job.status, error=str(e))

        transition(job, JobStatus.COMPLETED, on_transition)
        logger.info(f"Job {job.id} completed: {artifacts.playlist}")
        return JobOutcome(
            job_id=job.id,
            status=job.status,
            playlist=str(artifacts.playlist),
            thumbnail=str(artifacts.thumbnail) if artifacts.thumbnail else None,
        )


class JobOrchestrator:
    """
    Accepts submissions and launches them in the background.

    `dispatch` receives the fully prepared Job and must return without
    waiting for it to run.
    """

    def __init__(self, workspace: WorkspaceManager, dispatch: Callable[[Job], None],
                 overlay_base_dir: Path, id_factory: Optional[JobIdFactory] = None):
        self.workspace = workspace
        self.dispatch = dispatch
        self.overlay_base_dir = Path(overlay_base_dir)
        self.id_factory = id_factory or JobIdFactory()

    def submit(self, video_path: Optional[str], overlay_path: Optional[str] = None,
               trim_start: float = 0.0, trim_end: float = 0.0) -> JobAck:
        if not video_path or not Path(video_path).is_file():
            raise MissingInput()

        overlay = None
        if overlay_path:
            resolved = self.resolve_overlay(overlay_path)
            overlay = AudioOverlay(
                path=str(resolved),
                trim_start=max(trim_start, 0.0),
                trim_end=max(trim_end, 0.0),
            )

        job_id, workspace_dir = self._allocate()
        artifacts = self.workspace.artifact_paths(workspace_dir)
        job = Job(
            id=job_id,
            source_video_path=str(video_path),
            workspace_dir=str(workspace_dir),
            overlay=overlay,
        )

        self.dispatch(job)
        logger.info(f"Job {job.id} submitted (overlay: {overlay_path or 'none'})")
        return JobAck(
            id=job.id,
            folder=job.folder,
            song=overlay_path or None,
            playlist=artifacts.playlist,
            thumbnail=artifacts.thumbnail,
        )

    def resolve_overlay(self, overlay_path: str) -> Path:
        base = self.overlay_base_dir.resolve()
        try:
            resolved = (base / overlay_path.lstrip("/")).resolve()
            is_file = resolved.is_file()
        except (OSError, ValueError):
            raise InvalidOverlayPath(overlay_path)
        if base not in resolved.parents or not is_file:
            raise InvalidOverlayPath(overlay_path)
        return resolved

    def _allocate(self) -> Tuple[str, Path]:
        for _ in range(MAX_ALLOCATION_ATTEMPTS):
            job_id = self.id_factory.next_id()
            try:
                return job_id, self.workspace.allocate(job_id)
            except WorkspaceCollision:
                logger.warning(f"Workspace {job_id} already exists, taking the next id")
        raise WorkspaceCollision(job_id)
