"""Rendering helpers for stored transcript segments."""

from collections.abc import Sequence

from .models import Segment


def format_timestamp(seconds: float) -> str:
    """Formats seconds as MM:SS, or HH:MM:SS past the first hour."""
    total = int(max(0.0, seconds))
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours:
        return f"{hours:02d}:{minutes:02d}:{secs:02d}"
    return f"{minutes:02d}:{secs:02d}"


def format_with_timestamps(segments: Sequence[Segment]) -> str:
    """Renders segments as `[MM:SS] text` paragraphs."""
    return "\n\n".join(f"[{format_timestamp(s.start)}] {s.text}" for s in segments)


def to_vtt(segments: Sequence[Segment]) -> str:
    """Renders segments as a WebVTT document."""
    if not segments:
        return "WEBVTT\n\nNOTE\nNo transcript segments available\n"

    cues = [
        f"{index}\n{_vtt_time(s.start)} --> {_vtt_time(s.end)}\n{s.text}\n"
        for index, s in enumerate(segments, start=1)
    ]
    return "WEBVTT\n\n" + "\n".join(cues)


def _vtt_time(seconds: float) -> str:
    millis = int(round(max(0.0, seconds) * 1000))
    hours, millis = divmod(millis, 3_600_000)
    minutes, millis = divmod(millis, 60_000)
    secs, millis = divmod(millis, 1000)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}.{millis:03d}"
