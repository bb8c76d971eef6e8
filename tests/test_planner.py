"""
Tests for the transcode planner.

Tests:
- Downscale boundary around 1920x1080
- Overlay replaces source audio, never mixes
- Trim window handling
- Determinism
"""

import pytest

from vibecast.models import AudioOverlay, MediaProfile
from vibecast.planner import plan


class TestDownscaleDecision:

    @pytest.mark.parametrize("width,height,expected", [
        (1920, 1080, False),
        (1921, 1080, True),
        (1920, 1081, True),
        (3840, 2160, True),
        (1280, 720, False),
        (1080, 1920, True),  # portrait: height over the box
    ])
    def test_boundary(self, width, height, expected):
        result = plan(MediaProfile(width=width, height=height))
        assert result.should_downscale is expected

    def test_unknown_resolution_never_downscales(self):
        result = plan(MediaProfile(width=None, height=None))
        assert result.should_downscale is False
        assert result.target_size is None

    def test_partial_resolution_counts_as_unknown(self):
        assert plan(MediaProfile(width=4000, height=None)).should_downscale is False

    def test_target_constrains_height_only(self):
        result = plan(MediaProfile(width=3840, height=2160))
        assert result.target_size == "?x1080"
        assert result.target_height == 1080

    def test_native_size_kept_without_downscale(self):
        result = plan(MediaProfile(width=1280, height=720))
        assert result.target_size is None
        assert result.target_height is None


class TestAudioMapping:

    def test_without_overlay_audio_comes_from_source(self):
        result = plan(MediaProfile(width=1280, height=720))
        assert result.stream_mapping.audio.input_index == 0
        assert result.stream_mapping.replaces_audio is False
        assert result.audio_trim is None
        assert result.overlay_path is None

    def test_overlay_replaces_source_audio(self):
        overlay = AudioOverlay(path="/songs/a.mp3", trim_start=10, trim_end=25)
        result = plan(MediaProfile(width=1280, height=720), overlay)

        assert result.stream_mapping.video.selector == "0:v:0"
        assert result.stream_mapping.audio.selector == "1:a:0"
        assert result.stream_mapping.replaces_audio is True
        assert result.overlay_path == "/songs/a.mp3"

    def test_trim_window_applies_to_overlay(self):
        overlay = AudioOverlay(path="/songs/a.mp3", trim_start=10, trim_end=25)
        result = plan(MediaProfile(width=1280, height=720), overlay)

        assert result.audio_trim.start == 10
        assert result.audio_trim.end == 25
        assert result.audio_trim.duration == 15

    def test_overlay_used_even_if_trim_exceeds_track(self):
        """The planner has no overlay length; the overlay is still the only audio."""
        overlay = AudioOverlay(path="/songs/short.mp3", trim_start=0, trim_end=9999)
        result = plan(MediaProfile(width=640, height=360, has_audio=True), overlay)
        assert result.stream_mapping.audio.input_index == 1

    def test_zero_end_means_until_overlay_ends(self):
        overlay = AudioOverlay(path="/songs/a.mp3", trim_start=0, trim_end=0)
        result = plan(MediaProfile(width=640, height=360), overlay)
        assert result.audio_trim.end is None
        assert result.audio_trim.duration is None

    def test_end_before_start_means_until_overlay_ends(self):
        overlay = AudioOverlay(path="/songs/a.mp3", trim_start=30, trim_end=5)
        result = plan(MediaProfile(width=640, height=360), overlay)
        assert result.audio_trim.start == 30
        assert result.audio_trim.end is None

    def test_negative_trim_rejected_by_overlay(self):
        with pytest.raises(ValueError):
            AudioOverlay(path="/songs/a.mp3", trim_start=-1)


class TestDeterminism:

    def test_same_inputs_same_plan(self, tmp_path):
        profile = MediaProfile(width=3840, height=2160)
        overlay = AudioOverlay(path=str(tmp_path / "missing.mp3"), trim_start=1, trim_end=2)

        first = plan(profile, overlay)
        second = plan(profile, overlay)

        assert first == second
        # no filesystem side effects
        assert list(tmp_path.iterdir()) == []
