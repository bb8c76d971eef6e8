import logging
from typing import List, Optional

from vibecast.models import JobSummary
from vibecast.workspace import WorkspaceManager

logger = logging.getLogger(__name__)

PLAYLIST_EXTENSION = ".m3u8"
THUMBNAIL_PREFIX = "thumbnail"


class JobCatalog:
    """
    Reports produced jobs by scanning the workspace root.

    Reflects what is on disk: a job still encoding (or one that failed)
    is listed with a null playlist.
    """

    def __init__(self, workspace: WorkspaceManager):
        self.workspace = workspace

    def list_completed(self, base_url: str) -> List[JobSummary]:
        base_url = base_url.rstrip("/")
        summaries = []
        for folder in self.workspace.list_all():
            files = sorted(entry.name for entry in (self.workspace.root / folder).iterdir())
            playlist = _first(files, lambda name: name.endswith(PLAYLIST_EXTENSION))
            thumbnail = _first(files, lambda name: name.startswith(THUMBNAIL_PREFIX))
            summaries.append(JobSummary(
                folder=folder,
                playlist_url=f"{base_url}/{folder}/{playlist}" if playlist else None,
                thumbnail_url=f"{base_url}/{folder}/{thumbnail}" if thumbnail else None,
            ))
        logger.debug(f"Catalog scan found {len(summaries)} workspaces")
        return summaries


def _first(names: List[str], predicate) -> Optional[str]:
    return next((name for name in names if predicate(name)), None)
