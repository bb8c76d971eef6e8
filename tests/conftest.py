"""
Shared fixtures.

External processes are never spawned here: ffmpeg/ffprobe are replaced by
fakes that write the files a real run would produce.
"""

import subprocess
from pathlib import Path

import pytest

from vibecast.config import Settings
from vibecast.models import MediaProfile


def pytest_configure(config):
    config.addinivalue_line("markers", "e2e: needs real ffmpeg/ffprobe binaries on PATH")


@pytest.fixture
def app_settings(tmp_path):
    songs = tmp_path / "base" / "songs"
    songs.mkdir(parents=True)
    return Settings(
        output_dir=str(tmp_path / "processed"),
        upload_dir=str(tmp_path / "uploads"),
        overlay_base_dir=str(tmp_path / "base"),
        _env_file=None,
    )


@pytest.fixture
def upload(tmp_path):
    path = tmp_path / "uploads" / "clip.mp4"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"not really a video")
    return path


@pytest.fixture
def song(app_settings):
    path = Path(app_settings.overlay_base_dir) / "songs" / "track.mp3"
    path.write_bytes(b"not really audio")
    return path


class FakeFFmpeg:
    """
    Stand-in for subprocess.run in the executor.

    Records every command; writes the playlist, one segment and the
    thumbnail unless told to fail that stage. `write_thumbnail=False` exits
    cleanly without a frame, as ffmpeg does for sources shorter than the
    seek point.
    """

    def __init__(self, fail_encode=False, fail_thumbnail=False, barrier=None, write_thumbnail=True):
        self.fail_encode = fail_encode
        self.fail_thumbnail = fail_thumbnail
        self.write_thumbnail = write_thumbnail
        self.barrier = barrier
        self.commands = []

    def __call__(self, cmd, **kwargs):
        self.commands.append(cmd)
        if self.barrier is not None:
            self.barrier.wait()

        output = Path(cmd[-1])
        if output.name == "thumbnail.jpg":
            if self.fail_thumbnail:
                return subprocess.CompletedProcess(cmd, 1, "", "thumbnail boom")
            if self.write_thumbnail:
                output.write_bytes(b"jpeg")
        elif output.name == "index.m3u8":
            if self.fail_encode:
                return subprocess.CompletedProcess(cmd, 1, "", "encode boom")
            (output.parent / "index0.ts").write_bytes(b"ts")
            output.write_text("#EXTM3U\n#EXT-X-PLAYLIST-TYPE:VOD\nindex0.ts\n#EXT-X-ENDLIST\n")
        return subprocess.CompletedProcess(cmd, 0, "", "")

    def command_for(self, output_name):
        return next(cmd for cmd in self.commands if Path(cmd[-1]).name == output_name)


@pytest.fixture
def fake_ffmpeg(monkeypatch):
    fake = FakeFFmpeg()
    monkeypatch.setattr("vibecast.video_processor.subprocess.run", fake)
    return fake


class FakeProber:
    """Returns a fixed profile, or raises a given error."""

    def __init__(self, profile=None, error=None):
        self.profile = profile or MediaProfile(width=1280, height=720, has_audio=True)
        self.error = error
        self.calls = []

    def probe(self, file):
        self.calls.append(file)
        if self.error is not None:
            raise self.error
        return self.profile


class RecordingDispatch:
    def __init__(self):
        self.jobs = []

    def __call__(self, job):
        self.jobs.append(job)


@pytest.fixture
def dispatch():
    return RecordingDispatch()
