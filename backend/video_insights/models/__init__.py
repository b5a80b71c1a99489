"""
Data Models Package
===================
Exports all data model classes for the Video Insights service.

Usage:
    from video_insights.models import TranscriptLine, TimelineSegment, VideoAnalysis
    from video_insights.models import VideoRecord, ProcessingStatus
"""

from .schemas import (
    # Enums
    ProcessingStatus,

    # Base
    BaseModel,

    # Transcript and timeline
    TranscriptLine,
    TimelineSegment,

    # Analysis
    TopicRef,
    PartialTopic,
    Speaker,
    Decision,
    VideoAnalysis,

    # Video
    VideoMetadata,
    VideoRecord,

    # Utilities
    generate_video_id,
)

__all__ = [
    # Enums
    'ProcessingStatus',

    # Base
    'BaseModel',

    # Transcript and timeline
    'TranscriptLine',
    'TimelineSegment',

    # Analysis
    'TopicRef',
    'PartialTopic',
    'Speaker',
    'Decision',
    'VideoAnalysis',

    # Video
    'VideoMetadata',
    'VideoRecord',

    # Utilities
    'generate_video_id',
]
