"""
Timeline Builder Module
=======================
Turns a transcript into topic-labelled timeline segments.

The builder is pure: no I/O and no state between calls, so one instance can
be shared across threads.

Usage:
    from video_insights.timeline import generate_timeline_segments

    segments = generate_timeline_segments(transcript, analysis)

    # Or with an explicit policy / configuration
    builder = TimelineBuilder(config=config.timeline, policy="analysis")
    segments = builder.build(transcript, analysis)
"""

import logging
import math
from typing import List, Optional, Union

from .formatting import format_time
from .keywords import extract_keywords
from .policies import SegmentationPolicy, SegmentWindow, get_policy
from ..config import TimelineConfig
from ..models import TranscriptLine, TimelineSegment, VideoAnalysis

logger = logging.getLogger(__name__)

FULL_VIDEO_TOPIC = "Video Content"
FULL_VIDEO_DESCRIPTION = "Full video"


def transcript_duration(transcript: List[TranscriptLine]) -> float:
    """End time of the last line; 0.0 for an empty transcript."""
    return transcript[-1].end if transcript else 0.0


def lines_in_window(transcript: List[TranscriptLine], window: SegmentWindow) -> List[TranscriptLine]:
    """Lines whose start falls inside the window; end times are ignored."""
    return [line for line in transcript if window.contains_start(line.start)]


class TimelineBuilder:
    """
    Builds timeline segments with a configurable policy.

    Provides:
    - Empty-transcript and zero-duration handling
    - Equal-width windows from the active policy
    - Keyword extraction and topic naming per window
    """

    def __init__(
        self,
        config: Optional[TimelineConfig] = None,
        policy: Union[str, SegmentationPolicy, None] = None
    ):
        """
        Initialize the builder.

        Args:
            config: Timeline configuration (default: TimelineConfig())
            policy: Policy name or instance (default: config.policy)
        """
        self.config = config or TimelineConfig()

        if isinstance(policy, SegmentationPolicy):
            self.policy = policy
        else:
            self.policy = get_policy(policy or self.config.policy)

    def build(
        self,
        transcript: List[TranscriptLine],
        analysis: Optional[VideoAnalysis] = None
    ) -> List[TimelineSegment]:
        """
        Generate timeline segments for a transcript.

        The transcript must already be ordered by non-decreasing `start`;
        it is not sorted here.

        Args:
            transcript: Ordered transcript lines
            analysis: Optional analysis whose topics override keyword topics

        Returns:
            Contiguous, non-overlapping segments covering the transcript
        """
        if not transcript:
            return []

        total_duration = transcript_duration(transcript)
        if total_duration <= 0:
            logger.debug("Transcript has no positive duration, using a single full-video segment")
            return [self._full_video_segment(transcript)]

        segments = []
        for window in self.policy.windows(total_duration, analysis, self.config):
            text = " ".join(line.text for line in lines_in_window(transcript, window))
            keywords = self._keywords(text)

            segments.append(TimelineSegment(
                topic=self.policy.choose_topic(window.index, keywords, analysis, self.config),
                description=f"Discussion from {format_time(window.start)} to {format_time(window.end)}",
                start_time=math.floor(window.start),
                end_time=math.floor(window.end),
                keywords=keywords,
                color=self._color(window.index)
            ))

        logger.debug(
            f"Built {len(segments)} segments with policy '{self.policy.name}' "
            f"over {total_duration:.1f}s"
        )
        return segments

    def _full_video_segment(self, transcript: List[TranscriptLine]) -> TimelineSegment:
        text = " ".join(line.text for line in transcript)
        return TimelineSegment(
            topic=FULL_VIDEO_TOPIC,
            description=FULL_VIDEO_DESCRIPTION,
            start_time=0,
            end_time=0,
            keywords=self._keywords(text),
            color=self._color(0)
        )

    def _keywords(self, text: str) -> List[str]:
        return extract_keywords(
            text,
            limit=self.config.keyword_limit,
            min_length=self.config.keyword_min_length
        )

    def _color(self, index: int) -> str:
        palette = self.config.palette
        return palette[index % len(palette)]


def generate_timeline_segments(
    transcript: List[TranscriptLine],
    analysis: Optional[VideoAnalysis] = None,
    policy: Union[str, SegmentationPolicy, None] = None,
    config: Optional[TimelineConfig] = None
) -> List[TimelineSegment]:
    """
    Convenience function to build timeline segments.

    Args:
        transcript: Transcript lines ordered by start time
        analysis: Optional analysis (may have no topics)
        policy: Policy name or instance (default: config.policy, "duration")
        config: Optional timeline configuration

    Returns:
        List of TimelineSegment objects
    """
    return TimelineBuilder(config=config, policy=policy).build(transcript, analysis)
