"""
Playback Navigation Helpers
===========================
Lookups the player performs against a stored timeline and transcript, plus
the plain-text transcript export.
"""

from typing import List, Optional

from .formatting import format_time
from ..models import TranscriptLine, TimelineSegment


def active_segment_at(segments: List[TimelineSegment], position: float) -> Optional[TimelineSegment]:
    """First segment whose [start_time, end_time) contains the position."""
    for segment in segments:
        if segment.contains(position):
            return segment
    return None


def active_line_at(transcript: List[TranscriptLine], position: float) -> Optional[TranscriptLine]:
    """First transcript line whose [start, end) contains the position."""
    for line in transcript:
        if line.start <= position < line.end:
            return line
    return None


def export_transcript_text(transcript: List[TranscriptLine]) -> str:
    """
    Render a transcript as plain text.

    Each line becomes "[M:SS] SPEAKER: text"; lines are separated by a blank
    line.
    """
    return "\n\n".join(
        f"[{format_time(line.timestamp)}] {line.speaker}: {line.text}"
        for line in transcript
    )
