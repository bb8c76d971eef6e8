import logging
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    output_dir: str = "processed"
    upload_dir: str = "uploads"
    overlay_base_dir: str = "."
    static_url_path: str = "/processed"
    public_base_url: Optional[str] = None

    # External tools
    ffmpeg_bin: str = "ffmpeg"
    ffprobe_bin: str = "ffprobe"

    # Encode
    video_codec: str = "libx264"
    preset: str = "veryfast"
    crf: int = 23
    hls_time: int = 5
    max_width: int = 1920
    max_height: int = 1080
    overlay_audio_codec: str = "aac"
    encode_timeout: Optional[float] = None  # no limit unless configured

    # Thumbnail
    thumbnail_timestamp: float = 1.0
    thumbnail_width: int = 320

    # Background execution
    broker_url: str = "redis://localhost:6379/0"
    result_backend: str = "redis://localhost:6379/0"
    max_concurrent_jobs: int = 2

    port: int = 4455
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


settings = Settings()
