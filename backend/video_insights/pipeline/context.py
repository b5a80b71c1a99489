"""
Pipeline Context Module
=======================
Defines the shared context that flows through all pipeline stages.

The PipelineContext holds:
- Input parameters (video path, video id, configuration)
- Intermediate results (metadata, transcript, analysis)
- Final outputs (timeline segments)
- Execution metadata (timing, stage completion status)
"""

import os
import logging
import hashlib
from pathlib import Path
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, List

from ..config import AppConfig
from ..models import (
    BaseModel,
    VideoMetadata,
    TranscriptLine,
    TimelineSegment,
    VideoAnalysis,
    generate_video_id,
)

logger = logging.getLogger(__name__)


@dataclass
class StageResult:
    """Result of a single pipeline stage execution."""
    stage_name: str
    success: bool
    duration_seconds: float
    error_message: Optional[str] = None
    output_summary: Optional[str] = None


@dataclass
class ProcessingResult(BaseModel):
    """
    Everything a processing run produces for one video.

    Attributes:
        video_id: Video the run was for
        duration: Video duration in whole seconds
        transcript: Ordered transcript lines
        segments: Timeline segments
        analysis: Analysis used for the timeline
        language: Detected transcript language
        processing_time_seconds: Sum of stage durations
    """
    video_id: str
    duration: int
    transcript: List[TranscriptLine] = field(default_factory=list)
    segments: List[TimelineSegment] = field(default_factory=list)
    analysis: VideoAnalysis = field(default_factory=VideoAnalysis.default)
    language: str = "unknown"
    processing_time_seconds: float = 0.0


@dataclass
class PipelineContext:
    """
    Shared context that flows through all pipeline stages.

    This object is passed between stages and accumulates results.
    Each stage reads what it needs and writes its outputs.

    Attributes:
        # Input parameters
        video_path: Path to the input video file
        config: Configuration to use for this pipeline run
        video_id: Id of the stored record being processed

        # Intermediate results
        video_metadata: Extracted video metadata
        transcript: Transcribed lines, ordered by start
        full_text: All line texts joined with spaces
        language: Detected language
        analysis: Structured analysis (default when unavailable)

        # Final output
        segments: Timeline segments

        # Execution tracking
        stage_results: Timing and status for each stage
        started_at: Pipeline start timestamp
        completed_at: Pipeline completion timestamp
    """

    # Input parameters
    video_path: str
    config: AppConfig
    video_id: str = field(default_factory=generate_video_id)

    # Intermediate results
    video_metadata: Optional[VideoMetadata] = None
    transcript: List[TranscriptLine] = field(default_factory=list)
    full_text: str = ""
    language: str = "unknown"
    analysis: VideoAnalysis = field(default_factory=VideoAnalysis.default)

    # Final output
    segments: List[TimelineSegment] = field(default_factory=list)
    result: Optional[ProcessingResult] = None

    # Execution tracking
    stage_results: List[StageResult] = field(default_factory=list)
    started_at: Optional[str] = None
    completed_at: Optional[str] = None

    def __post_init__(self):
        """Initialize timestamps and validate inputs."""
        self.started_at = datetime.now().isoformat()

        if not os.path.exists(self.video_path):
            raise FileNotFoundError(f"Video file not found: {self.video_path}")

    @property
    def video_filename(self) -> str:
        return os.path.basename(self.video_path)

    @property
    def total_duration_seconds(self) -> float:
        """Total pipeline execution time."""
        return sum(r.duration_seconds for r in self.stage_results)

    @property
    def successful_stages(self) -> List[str]:
        return [r.stage_name for r in self.stage_results if r.success]

    @property
    def failed_stages(self) -> List[str]:
        return [r.stage_name for r in self.stage_results if not r.success]

    @property
    def is_complete(self) -> bool:
        return len(self.failed_stages) == 0 and self.result is not None

    def record_stage(
        self,
        stage_name: str,
        success: bool,
        duration: float,
        error: Optional[str] = None,
        summary: Optional[str] = None
    ) -> None:
        """Record the result of a stage execution."""
        self.stage_results.append(StageResult(
            stage_name=stage_name,
            success=success,
            duration_seconds=duration,
            error_message=error,
            output_summary=summary
        ))

    def get_stage_error(self, stage_name: str) -> Optional[str]:
        """Error message of the last failed run of a stage."""
        for r in reversed(self.stage_results):
            if r.stage_name == stage_name and not r.success:
                return r.error_message
        return None

    def get_cache_key(self, stage_name: str) -> str:
        """
        Generate a cache key for a stage based on inputs.

        The cache key incorporates:
        - Stage name
        - Hash of the whole video file and its size
        - Whisper language, task and VAD setting
        - Whisper model size
        """
        whisper = self.config.whisper
        digest = hashlib.md5()
        with open(self.video_path, 'rb') as f:
            for chunk in iter(lambda: f.read(1024 * 1024), b''):
                digest.update(chunk)
        digest.update(
            f"|{os.path.getsize(self.video_path)}|{whisper.language}|{whisper.task}|{whisper.vad_filter}".encode('utf-8')
        )

        return f"{stage_name}_{digest.hexdigest()[:16]}_{whisper.model_size}"

    def get_cache_path(self, stage_name: str) -> Path:
        """Get the file path for caching a stage's output."""
        cache_dir = self.config.paths.cache
        cache_dir.mkdir(parents=True, exist_ok=True)
        return cache_dir / f"{self.get_cache_key(stage_name)}.json"

    def finalize(self) -> ProcessingResult:
        """
        Finalize the pipeline and create the ProcessingResult.

        This should be called after all stages complete.
        """
        self.completed_at = datetime.now().isoformat()

        if self.video_metadata is None:
            raise ValueError("Cannot finalize: video_metadata is missing")

        self.result = ProcessingResult(
            video_id=self.video_id,
            duration=self.video_metadata.duration_floor,
            transcript=self.transcript,
            segments=self.segments,
            analysis=self.analysis,
            language=self.language,
            processing_time_seconds=self.total_duration_seconds
        )
        return self.result
