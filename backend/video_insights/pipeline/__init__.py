"""
Pipeline Package
================
Modular, composable pipeline for video processing.

This package provides:
- Individual pipeline stages that can run independently
- A composed pipeline that runs all stages in sequence
- Caching support for transcription
- Background execution with status tracking on stored records

Usage:
    from video_insights.pipeline import VideoPipeline, BackgroundProcessor

    pipeline = VideoPipeline(config)
    result = pipeline.run("video.mp4")

    processor = BackgroundProcessor(store, config, pipeline)
    processor.submit(record.id, video_path)
"""

from .context import PipelineContext, ProcessingResult, StageResult
from .base import PipelineStage, ConditionalStage
from .pipeline import VideoPipeline, process_video
from .background import BackgroundProcessor

__all__ = [
    'PipelineContext',
    'ProcessingResult',
    'StageResult',
    'PipelineStage',
    'ConditionalStage',
    'VideoPipeline',
    'process_video',
    'BackgroundProcessor',
]
