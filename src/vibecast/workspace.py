import logging
import threading
import time
from pathlib import Path
from typing import Callable, List

from vibecast.errors import WorkspaceCollision, WorkspaceNotFound
from vibecast.models import ArtifactPaths

logger = logging.getLogger(__name__)

FOLDER_PREFIX = "vibe_"
PLAYLIST_NAME = "index.m3u8"
THUMBNAIL_NAME = "thumbnail.jpg"


def _now_millis() -> int:
    return int(time.time() * 1000)


class JobIdFactory:
    """
    Issues `vibe_<millis>` job ids.

    Ids are strictly increasing within one process: a submission landing on
    the same millisecond as the previous one gets the next millisecond.
    """

    def __init__(self, clock: Callable[[], int] = _now_millis):
        self._clock = clock
        self._last = 0
        self._lock = threading.Lock()

    def next_id(self) -> str:
        with self._lock:
            stamp = max(self._clock(), self._last + 1)
            self._last = stamp
        return f"{FOLDER_PREFIX}{stamp}"


class WorkspaceManager:
    """Owns the workspace root: one directory per job, never deleted."""

    def __init__(self, root: Path):
        self.root = Path(root)

    def allocate(self, job_id: str) -> Path:
        """Create the job's directory. Existing directories are never reused."""
        self.root.mkdir(parents=True, exist_ok=True)
        workspace = self.root / job_id
        try:
            workspace.mkdir(parents=False, exist_ok=False)
        except FileExistsError:
            raise WorkspaceCollision(job_id)
        logger.info(f"Allocated workspace {workspace}")
        return workspace

    def resolve(self, folder: str) -> Path:
        workspace = (self.root / folder).resolve()
        if workspace.parent != self.root.resolve() or not workspace.is_dir():
            raise WorkspaceNotFound(folder)
        return workspace

    def list_all(self) -> List[str]:
        if not self.root.is_dir():
            return []
        return [
            entry.name for entry in self.root.iterdir()
            if entry.is_dir() and not entry.is_symlink()
        ]

    @staticmethod
    def artifact_paths(workspace: Path) -> ArtifactPaths:
        return ArtifactPaths(
            playlist=Path(workspace) / PLAYLIST_NAME,
            thumbnail=Path(workspace) / THUMBNAIL_NAME,
        )
