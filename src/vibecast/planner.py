from typing import Optional

from vibecast.models import (
    AudioOverlay, AudioTrim, MediaProfile, StreamMapping, StreamRef, TranscodePlan
)

SOURCE_INPUT = 0
OVERLAY_INPUT = 1


def plan(profile: MediaProfile, overlay: Optional[AudioOverlay] = None,
         max_width: int = 1920, max_height: int = 1080) -> TranscodePlan:
    """
    Derive the encode plan for one source.

    Pure and total: unknown resolution never downscales. An overlay always
    replaces the source audio; the two are never mixed.
    """
    should_downscale = profile.has_resolution and (
        profile.width > max_width or profile.height > max_height
    )

    if overlay is None:
        return TranscodePlan(
            should_downscale=should_downscale,
            target_size=f"?x{max_height}" if should_downscale else None,
            stream_mapping=StreamMapping(
                video=StreamRef(SOURCE_INPUT, "v"),
                audio=StreamRef(SOURCE_INPUT, "a"),
            ),
        )

    return TranscodePlan(
        should_downscale=should_downscale,
        target_size=f"?x{max_height}" if should_downscale else None,
        stream_mapping=StreamMapping(
            video=StreamRef(SOURCE_INPUT, "v"),
            audio=StreamRef(OVERLAY_INPUT, "a"),
        ),
        audio_trim=trim_window(overlay),
        overlay_path=overlay.path,
    )


def trim_window(overlay: AudioOverlay) -> AudioTrim:
    # An end at or before the start (the form default is 0) means "no stop"
    end = overlay.trim_end if overlay.trim_end > overlay.trim_start else None
    return AudioTrim(start=overlay.trim_start, end=end)
