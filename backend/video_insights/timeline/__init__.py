"""
Timeline Module
===============
Transcript-to-timeline segmentation for player navigation.

This module implements:
- Keyword extraction: frequency-ranked words used as topic fallbacks
- Timeline policies: duration-driven (default) and analysis-topic-driven
- The timeline builder with empty and zero-duration handling
- Playback lookups and transcript export

Usage:
    from video_insights.timeline import generate_timeline_segments, format_time

    segments = generate_timeline_segments(transcript, analysis)
    label = format_time(segments[0].end_time)
"""

from .keywords import extract_keywords
from .formatting import format_time
from .policies import (
    SegmentationPolicy,
    DurationPolicy,
    AnalysisTopicPolicy,
    SegmentWindow,
    POLICY_REGISTRY,
    get_policy,
)
from .builder import TimelineBuilder, generate_timeline_segments, transcript_duration
from .navigation import active_segment_at, active_line_at, export_transcript_text

__all__ = [
    'extract_keywords',
    'format_time',
    'SegmentationPolicy',
    'DurationPolicy',
    'AnalysisTopicPolicy',
    'SegmentWindow',
    'POLICY_REGISTRY',
    'get_policy',
    'TimelineBuilder',
    'generate_timeline_segments',
    'transcript_duration',
    'active_segment_at',
    'active_line_at',
    'export_transcript_text',
]
