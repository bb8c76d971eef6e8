from fastapi import FastAPI, UploadFile, File, Form, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from typing import Callable, Optional
import logging
import math
import os
import shutil
import uuid
from pathlib import Path

from vibecast.catalog import JobCatalog
from vibecast.config import Settings, settings, configure_logging
from vibecast.errors import InvalidOverlayPath, MissingInput, WorkspaceNotFound
from vibecast.models import Job, JobStatus
from vibecast.orchestrator import JobOrchestrator
from vibecast.schemas import (
    ShareResponse, ErrorResponse, VideoEntry, VideoListResponse, JobStatusResponse
)
from vibecast.workspace import WorkspaceManager

logger = logging.getLogger(__name__)


def create_app(
    app_settings: Settings = settings,
    dispatch: Optional[Callable[[Job], None]] = None,
    status_lookup: Optional[Callable[[str], JobStatus]] = None,
) -> FastAPI:
    """Build the API around one workspace root. Celery is the default dispatch."""
    if dispatch is None or status_lookup is None:
        from vibecast.tasks import enqueue_job, job_status
        dispatch = dispatch or enqueue_job
        status_lookup = status_lookup or job_status

    output_dir = Path(app_settings.output_dir)
    upload_dir = Path(app_settings.upload_dir)
    workspace = WorkspaceManager(output_dir)
    orchestrator = JobOrchestrator(
        workspace, dispatch, overlay_base_dir=Path(app_settings.overlay_base_dir)
    )
    catalog = JobCatalog(workspace)

    app = FastAPI(title="Vibecast API", version="1.0.0")
    app.state.settings = app_settings
    app.state.orchestrator = orchestrator
    app.state.catalog = catalog

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.on_event("startup")
    def startup_event():
        configure_logging(app_settings.log_level)
        os.makedirs(output_dir, exist_ok=True)
        os.makedirs(upload_dir, exist_ok=True)

    @app.post(
        "/share",
        response_model=ShareResponse,
        responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    )
    def share(
        video: Optional[UploadFile] = File(None),
        song_id: Optional[str] = Form(None, alias="songId"),
        music_start: Optional[str] = Form(None, alias="musicIntervalSelectedStartTime"),
        music_end: Optional[str] = Form(None, alias="musicIntervalSelectedEndTime"),
    ):
        """Accept a video (and optional overlay song) and start processing it"""
        upload_path = None
        try:
            logger.info("Received /share request")
            if video is not None and video.filename:
                upload_path = save_upload(video, upload_dir)

            ack = orchestrator.submit(
                str(upload_path) if upload_path else None,
                overlay_path=song_id or None,
                trim_start=parse_seconds(music_start),
                trim_end=parse_seconds(music_end),
            )
            return ShareResponse(
                message="Ok, processing started",
                folder=ack.folder,
                song=ack.song,
            )

        except (MissingInput, InvalidOverlayPath) as e:
            discard_upload(upload_path)
            return JSONResponse(status_code=400, content={"error": str(e)})
        except Exception:
            logger.exception("Server error while accepting /share")
            discard_upload(upload_path)
            return JSONResponse(status_code=500, content={"error": "Server error"})

    @app.get("/videos", response_model=VideoListResponse)
    def list_videos(request: Request):
        """List processed videos with their playlist and thumbnail URLs"""
        try:
            summaries = catalog.list_completed(static_base_url(request, app_settings))
        except OSError:
            logger.exception("Error reading videos")
            return JSONResponse(status_code=500, content={"error": "Failed to fetch videos"})

        videos = [
            VideoEntry(folder=s.folder, url=s.playlist_url, thumbnail=s.thumbnail_url)
            for s in summaries
        ]
        return VideoListResponse(count=len(videos), videos=videos)

    @app.get("/api/status/{folder}", response_model=JobStatusResponse)
    def get_job_status(folder: str):
        """Get processing status for a job"""
        try:
            workspace.resolve(folder)
        except WorkspaceNotFound as e:
            return JSONResponse(status_code=404, content={"error": str(e)})
        return JobStatusResponse(folder=folder, status=status_lookup(folder))

    @app.get("/health")
    def health_check():
        """Health check endpoint"""
        return {"status": "healthy"}

    app.mount(
        app_settings.static_url_path,
        StaticFiles(directory=str(output_dir), check_dir=False),
        name="processed",
    )
    return app


def save_upload(video: UploadFile, upload_dir: Path) -> Path:
    upload_dir.mkdir(parents=True, exist_ok=True)
    upload_path = upload_dir / f"{uuid.uuid4().hex}_{Path(video.filename).name}"
    with open(upload_path, "wb") as buffer:
        shutil.copyfileobj(video.file, buffer)
    return upload_path


def discard_upload(upload_path: Optional[Path]) -> None:
    if upload_path and upload_path.exists():
        os.remove(upload_path)


def parse_seconds(value: Optional[str]) -> float:
    """Form floats: anything unparseable, infinite or negative counts as 0."""
    try:
        seconds = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(seconds) or seconds < 0:
        return 0.0
    return seconds


def static_base_url(request: Request, app_settings: Settings) -> str:
    base = app_settings.public_base_url or str(request.base_url)
    return base.rstrip("/") + app_settings.static_url_path


app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.port)
