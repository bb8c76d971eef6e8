from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Optional, Dict, Any
import enum


class JobStatus(str, enum.Enum):
    SUBMITTED = "submitted"
    PROBING = "probing"
    PLANNING = "planning"
    ENCODING = "encoding"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


@dataclass(frozen=True)
class AudioOverlay:
    """Replacement audio track, trimmed to [trim_start, trim_end] seconds."""
    path: str
    trim_start: float = 0.0
    trim_end: float = 0.0

    def __post_init__(self):
        if self.trim_start < 0 or self.trim_end < 0:
            raise ValueError("Overlay trim boundaries must be >= 0")


@dataclass
class Job:
    id: str
    source_video_path: str
    workspace_dir: str
    overlay: Optional[AudioOverlay] = None
    status: JobStatus = JobStatus.SUBMITTED

    @property
    def folder(self) -> str:
        return Path(self.workspace_dir).name

    def to_payload(self) -> Dict[str, Any]:
        """Plain-JSON form used as the task queue argument."""
        return {
            "id": self.id,
            "source_video_path": self.source_video_path,
            "workspace_dir": self.workspace_dir,
            "overlay": asdict(self.overlay) if self.overlay else None,
            "status": self.status.value,
        }

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "Job":
        overlay = payload.get("overlay")
        return cls(
            id=payload["id"],
            source_video_path=payload["source_video_path"],
            workspace_dir=payload["workspace_dir"],
            overlay=AudioOverlay(**overlay) if overlay else None,
            status=JobStatus(payload.get("status", JobStatus.SUBMITTED.value)),
        )


@dataclass(frozen=True)
class MediaProfile:
    """Metadata of one probed file. width/height are None when unknown."""
    width: Optional[int] = None
    height: Optional[int] = None
    duration: Optional[float] = None
    video_codec: Optional[str] = None
    audio_codec: Optional[str] = None
    has_audio: bool = False

    @property
    def has_resolution(self) -> bool:
        return bool(self.width) and bool(self.height)


@dataclass(frozen=True)
class AudioTrim:
    start: float = 0.0
    end: Optional[float] = None  # None: until the end of the overlay

    @property
    def duration(self) -> Optional[float]:
        if self.end is None:
            return None
        return self.end - self.start


@dataclass(frozen=True)
class StreamRef:
    input_index: int
    kind: str  # "v" or "a"

    @property
    def selector(self) -> str:
        return f"{self.input_index}:{self.kind}:0"


@dataclass(frozen=True)
class StreamMapping:
    video: StreamRef = StreamRef(0, "v")
    audio: StreamRef = StreamRef(0, "a")

    @property
    def replaces_audio(self) -> bool:
        return self.audio.input_index != self.video.input_index


@dataclass(frozen=True)
class TranscodePlan:
    should_downscale: bool = False
    target_size: Optional[str] = None  # e.g. "?x1080"; None keeps source size
    stream_mapping: StreamMapping = field(default_factory=StreamMapping)
    audio_trim: Optional[AudioTrim] = None
    overlay_path: Optional[str] = None

    @property
    def target_height(self) -> Optional[int]:
        if not self.target_size:
            return None
        return int(self.target_size.split("x", 1)[1])


@dataclass(frozen=True)
class ArtifactPaths:
    playlist: Path
    thumbnail: Optional[Path]


@dataclass(frozen=True)
class JobAck:
    id: str
    folder: str
    song: Optional[str]
    playlist: Path
    thumbnail: Path


@dataclass(frozen=True)
class JobSummary:
    folder: str
    playlist_url: Optional[str] = None
    thumbnail_url: Optional[str] = None


@dataclass
class JobOutcome:
    job_id: str
    status: JobStatus
    playlist: Optional[str] = None
    thumbnail: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "job_id": self.job_id,
            "status": self.status.value,
            "playlist": self.playlist,
            "thumbnail": self.thumbnail,
            "error": self.error,
        }
