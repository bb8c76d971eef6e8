import logging
from typing import Any, Dict

from celery import Celery
from celery.result import AsyncResult
from celery.signals import setup_logging

from vibecast.config import settings, configure_logging
from vibecast.models import Job, JobStatus
from vibecast.orchestrator import JobPipeline
from vibecast.probe import MediaProber
from vibecast.video_processor import TranscodeExecutor

logger = logging.getLogger(__name__)

celery_app = Celery(
    'vibecast',
    broker=settings.broker_url,
    backend=settings.result_backend,
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    task_track_started=True,
    worker_prefetch_multiplier=1,
    # Each worker slot runs one job; this is the admission bound
    worker_concurrency=settings.max_concurrent_jobs,
)

# Celery's own states before the pipeline reports its first transition
_CELERY_STATES = {
    "PENDING": JobStatus.SUBMITTED,
    "RECEIVED": JobStatus.SUBMITTED,
    "STARTED": JobStatus.SUBMITTED,
    "FAILURE": JobStatus.FAILED,
    "REVOKED": JobStatus.FAILED,
}


def build_pipeline() -> JobPipeline:
    return JobPipeline(
        prober=MediaProber(settings.ffprobe_bin),
        executor=TranscodeExecutor(settings),
        max_width=settings.max_width,
        max_height=settings.max_height,
    )


@celery_app.task(bind=True)
def run_job(self, payload: Dict[str, Any]) -> Dict[str, Any]:
    """Background task running one job from probe to finished HLS asset."""
    job = Job.from_payload(payload)

    def report(job: Job, status: JobStatus) -> None:
        self.update_state(state=status.name, meta={"folder": job.folder})

    outcome = build_pipeline().run(job, on_transition=report)
    return outcome.to_dict()


def enqueue_job(job: Job) -> None:
    """Default dispatch: queue the job under its own id."""
    run_job.apply_async(args=[job.to_payload()], task_id=job.id)
    logger.info(f"Job {job.id} queued")


def job_status(job_id: str) -> JobStatus:
    result = AsyncResult(job_id, app=celery_app)
    if result.state == "SUCCESS":
        return JobStatus(result.result["status"])
    if result.state in JobStatus.__members__:
        return JobStatus[result.state]
    return _CELERY_STATES.get(result.state, JobStatus.SUBMITTED)


@setup_logging.connect
def _setup_logging(**kwargs):
    configure_logging(settings.log_level)
