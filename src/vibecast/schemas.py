from pydantic import BaseModel
from typing import List, Optional
from vibecast.models import JobStatus


class ShareResponse(BaseModel):
    message: str
    folder: str
    song: Optional[str] = None


class ErrorResponse(BaseModel):
    error: str


class VideoEntry(BaseModel):
    folder: str
    url: Optional[str] = None
    thumbnail: Optional[str] = None


class VideoListResponse(BaseModel):
    count: int
    videos: List[VideoEntry]


class JobStatusResponse(BaseModel):
    folder: str
    status: JobStatus
