import logging
import os
import subprocess
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import List, Optional

from vibecast.config import Settings
from vibecast.errors import EncodeFailed, ThumbnailFailed
from vibecast.models import ArtifactPaths, TranscodePlan
from vibecast.workspace import PLAYLIST_NAME, THUMBNAIL_NAME

logger = logging.getLogger(__name__)

SEGMENT_PATTERN = "index%d.ts"


class TranscodeExecutor:
    """Runs a TranscodePlan as a thumbnail capture plus a segmented HLS encode."""

    def __init__(self, settings: Settings):
        self.settings = settings

    def build_thumbnail_command(self, source: Path, workspace: Path) -> List[str]:
        return [
            self.settings.ffmpeg_bin, '-y',
            '-ss', _seconds(self.settings.thumbnail_timestamp),
            '-i', str(source),
            '-frames:v', '1',
            '-vf', f"scale={self.settings.thumbnail_width}:-2",
            str(Path(workspace) / THUMBNAIL_NAME),
        ]

    def build_encode_command(self, source: Path, plan: TranscodePlan,
                             workspace: Path) -> List[str]:
        """
        Build the HLS encode command.

        Overlay trim boundaries are input options of the overlay only, so
        the source video is never seeked.
        """
        workspace = Path(workspace)
        cmd = [self.settings.ffmpeg_bin, '-y', '-i', str(source)]

        if plan.overlay_path:
            if plan.audio_trim:
                cmd += ['-ss', _seconds(plan.audio_trim.start)]
                if plan.audio_trim.end is not None:
                    cmd += ['-to', _seconds(plan.audio_trim.end)]
            cmd += ['-i', str(plan.overlay_path)]

        cmd += ['-c:v', self.settings.video_codec]
        if plan.should_downscale and plan.target_height:
            cmd += ['-vf', f"scale=-2:{plan.target_height}"]

        if plan.stream_mapping.replaces_audio:
            cmd += [
                '-map', plan.stream_mapping.video.selector,
                '-map', plan.stream_mapping.audio.selector,
                '-c:a', self.settings.overlay_audio_codec,
            ]

        cmd += [
            '-preset', self.settings.preset,
            '-crf', str(self.settings.crf),
            '-hls_time', str(self.settings.hls_time),
            '-hls_playlist_type', 'vod',
            '-hls_segment_filename', str(workspace / SEGMENT_PATTERN),
            str(workspace / PLAYLIST_NAME),
        ]
        return cmd

    def execute(self, source: Path, plan: TranscodePlan, workspace: Path) -> ArtifactPaths:
        """
        Launch thumbnail and encode concurrently against the same source.

        Thumbnail failure is logged and reported as a missing thumbnail.
        Encode failure raises EncodeFailed and keeps the upload on disk;
        on success the upload is deleted.
        """
        source = Path(source)
        workspace = Path(workspace)
        thumb_cmd = self.build_thumbnail_command(source, workspace)
        encode_cmd = self.build_encode_command(source, plan, workspace)

        with ThreadPoolExecutor(max_workers=2) as pool:
            thumb_future = pool.submit(self._run, thumb_cmd, ThumbnailFailed, str(source))
            encode_future = pool.submit(self._run, encode_cmd, EncodeFailed, str(source))

            thumbnail: Optional[Path] = workspace / THUMBNAIL_NAME
            try:
                thumb_future.result()
                if thumbnail.exists():
                    logger.info(f"Thumbnail generated: {thumbnail}")
                else:
                    logger.error(f"Thumbnail error: FFmpeg exited cleanly but wrote no {THUMBNAIL_NAME}")
                    thumbnail = None
            except ThumbnailFailed as e:
                logger.error(f"Thumbnail error: {e}")
                thumbnail = None

            # EncodeFailed propagates from here
            encode_future.result()

        playlist = workspace / PLAYLIST_NAME
        if not playlist.exists():
            raise EncodeFailed(str(source), f"FFmpeg exited cleanly but wrote no {PLAYLIST_NAME}")

        logger.info(f"Encode finished, removing temp upload {source}")
        if source.exists():
            os.remove(source)
        return ArtifactPaths(playlist=playlist, thumbnail=thumbnail)

    def _run(self, cmd: List[str], error_cls, source: str) -> None:
        logger.info(f"FFmpeg command: {' '.join(cmd)}")
        try:
            result = subprocess.run(
                cmd, capture_output=True, text=True,
                timeout=self.settings.encode_timeout,
            )
        except subprocess.TimeoutExpired:
            raise error_cls(source, "Processing timeout exceeded")
        except OSError as e:
            raise error_cls(source, f"Cannot run {cmd[0]}: {e}")

        if result.returncode != 0:
            raise error_cls(source, f"FFmpeg error: {result.stderr.strip()}")


def _seconds(value: float) -> str:
    return f"{float(value):.3f}".rstrip("0").rstrip(".")
