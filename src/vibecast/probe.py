"""
Thin wrapper around the ffprobe CLI.

Returns MediaProfile dataclasses; raises ProbeFailed with ffprobe's own
diagnostic when the file cannot be parsed.
"""

import json
import logging
import subprocess
from pathlib import Path
from typing import Any, Dict, List, Optional

from vibecast.errors import ProbeFailed
from vibecast.models import MediaProfile

logger = logging.getLogger(__name__)


class MediaProber:
    def __init__(self, ffprobe_bin: str = "ffprobe"):
        self.ffprobe_bin = ffprobe_bin

    def build_command(self, file: Path) -> List[str]:
        return [
            self.ffprobe_bin,
            "-v", "error",
            "-print_format", "json",
            "-show_format",
            "-show_streams",
            str(file),
        ]

    def probe(self, file: Path) -> MediaProfile:
        """Run ffprobe on *file* and return its MediaProfile."""
        file = Path(file)
        if not file.exists():
            raise ProbeFailed(str(file), "Input file not found")

        try:
            result = subprocess.run(
                self.build_command(file),
                capture_output=True,
                text=True,
            )
        except OSError as e:
            raise ProbeFailed(str(file), f"Cannot run {self.ffprobe_bin}: {e}")

        if result.returncode != 0:
            raise ProbeFailed(str(file), result.stderr.strip())

        try:
            data = json.loads(result.stdout)
        except json.JSONDecodeError as e:
            raise ProbeFailed(str(file), f"Unreadable ffprobe output: {e}")

        profile = parse_profile(data)
        logger.info(f"Probed {file.name}: {profile.width}x{profile.height}")
        return profile


def parse_profile(data: Dict[str, Any]) -> MediaProfile:
    """Extract the fields planning needs from raw ffprobe JSON."""
    streams = data.get("streams") or []
    fmt = data.get("format") or {}

    # The first stream carrying both dimensions is authoritative
    video = next((s for s in streams if s.get("width") and s.get("height")), None)
    audio = next((s for s in streams if s.get("codec_type") == "audio"), None)

    return MediaProfile(
        width=int(video["width"]) if video else None,
        height=int(video["height"]) if video else None,
        duration=_to_float(fmt.get("duration")),
        video_codec=video.get("codec_name") if video else None,
        audio_codec=audio.get("codec_name") if audio else None,
        has_audio=audio is not None,
    )


def _to_float(value: Any) -> Optional[float]:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None
