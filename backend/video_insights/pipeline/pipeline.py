"""
Video Pipeline Module
=====================
Main pipeline class that composes and runs all stages.

Usage:
    from video_insights.config import load_config
    from video_insights.pipeline import VideoPipeline

    config = load_config()
    pipeline = VideoPipeline(config)
    result = pipeline.run("uploads/video-1712345678901-1.mp4", video_id=record.id)

    # Run specific stages only
    result = pipeline.run("video.mp4", stage_names=["video_ingest", "transcription"])
"""

import logging
import time
from typing import Callable, Optional, List

from .context import PipelineContext, ProcessingResult
from .base import PipelineStage
from .stages import (
    VideoIngestStage,
    TranscriptionStage,
    AnalysisStage,
    TimelineStage,
)
from ..config import AppConfig

logger = logging.getLogger(__name__)


class VideoPipeline:
    """
    Main pipeline for video processing.

    Composes multiple stages and runs them in sequence.
    Supports:
    - Running the full pipeline
    - Running specific stages only
    - Caching of the transcription stage
    - Progress callbacks
    """

    def __init__(
        self,
        config: AppConfig,
        stages: Optional[List[PipelineStage]] = None,
        use_cache: Optional[bool] = None
    ):
        """
        Initialize the pipeline.

        Args:
            config: Configuration used for every run of this pipeline
            stages: List of stage instances to use. If None, uses default stages.
            use_cache: Whether to use caching (default: config.processing.use_cache)
        """
        self.config = config
        self.use_cache = config.processing.use_cache if use_cache is None else use_cache

        if stages is None:
            self.stages = [
                VideoIngestStage(),
                TranscriptionStage(),
                AnalysisStage(),
                TimelineStage(),
            ]
        else:
            self.stages = stages

    def run(
        self,
        video_path: str,
        video_id: Optional[str] = None,
        stage_names: Optional[List[str]] = None,
        stop_on_failure: bool = True,
        progress_callback: Optional[Callable[[str, int, int], None]] = None
    ) -> ProcessingResult:
        """
        Run the pipeline on a video.

        Args:
            video_path: Path to the input video file.
            video_id: Id of the stored record (generated if None).
            stage_names: List of stage names to run. If None, runs all stages.
            stop_on_failure: Whether to stop if a stage fails.
            progress_callback: Optional callback(stage_name, stage_index, total_stages)

        Returns:
            ProcessingResult containing all pipeline outputs.

        Raises:
            FileNotFoundError: If video file doesn't exist.
            RuntimeError: If a stage fails and stop_on_failure is True.
        """
        context = PipelineContext(video_path=video_path, config=self.config)
        if video_id:
            context.video_id = video_id

        logger.info(f"Starting pipeline for {context.video_filename} (video {context.video_id})")

        start_time = time.time()

        stages_to_run = self._get_stages_to_run(stage_names)
        total_stages = len(stages_to_run)

        for i, stage in enumerate(stages_to_run):
            if progress_callback:
                progress_callback(stage.name, i + 1, total_stages)

            success = stage.run(context, use_cache=self.use_cache)

            if not success and stop_on_failure:
                error = context.get_stage_error(stage.name)
                error_msg = f"Pipeline failed at stage: {stage.name}"
                logger.error(error_msg)
                raise RuntimeError(f"{error_msg}: {error}" if error else error_msg)

        total_time = time.time() - start_time
        logger.info(f"Pipeline completed in {total_time:.2f}s")

        return context.finalize()

    def _get_stages_to_run(
        self,
        stage_names: Optional[List[str]] = None
    ) -> List[PipelineStage]:
        """Get the list of stages to run."""
        if stage_names is None:
            return self.stages

        # Filter to requested stages, maintaining order
        name_set = set(stage_names)
        return [stage for stage in self.stages if stage.name in name_set]

    def get_stage(self, name: str) -> Optional[PipelineStage]:
        """Get a stage by name."""
        for stage in self.stages:
            if stage.name == name:
                return stage
        return None

    @property
    def stage_names(self) -> List[str]:
        """Get list of all stage names in order."""
        return [stage.name for stage in self.stages]


def process_video(
    video_path: str,
    config: AppConfig,
    video_id: Optional[str] = None,
    use_cache: Optional[bool] = None
) -> ProcessingResult:
    """
    Convenience function to run the full pipeline.

    Args:
        video_path: Path to the input video file.
        config: Configuration to use.
        video_id: Optional id of the stored record.
        use_cache: Whether to use caching (default: from config).

    Returns:
        ProcessingResult containing all pipeline outputs.
    """
    pipeline = VideoPipeline(config, use_cache=use_cache)
    return pipeline.run(video_path, video_id=video_id)
