"""
Pipeline Stages Module
======================
Implements individual pipeline stages for video processing.

Stages:
1. VideoIngestStage - Load video and extract metadata
2. TranscriptionStage - Extract audio and transcribe it with Whisper
3. AnalysisStage - Summarise the transcript with Gemini (when configured)
4. TimelineStage - Derive topic-labelled timeline segments
"""

import os
import logging
from typing import Optional

from .base import PipelineStage, ConditionalStage
from .context import PipelineContext
from ..models import VideoMetadata, TranscriptLine
from ..timeline import TimelineBuilder
from ..logging_config import log_pipeline_decision
from ..utils.video_utils import get_video_info, extract_audio, remove_file
from ..services.transcription_service import TranscriptionService, TranscriptionError
from ..services.analysis_service import AnalysisService

logger = logging.getLogger(__name__)


# =============================================================================
# STAGE 1: VIDEO INGESTION
# =============================================================================

class VideoIngestStage(PipelineStage):
    """
    Load video file and extract metadata.

    Reads:
        - context.video_path

    Writes:
        - context.video_metadata
    """

    @property
    def name(self) -> str:
        return "video_ingest"

    @property
    def description(self) -> str:
        return "Load video file and extract metadata (duration, size)"

    def _execute(self, context: PipelineContext) -> None:
        video_path = context.video_path
        video_info = get_video_info(video_path)

        context.video_metadata = VideoMetadata(
            filename=context.video_filename,
            filepath=video_path,
            duration_seconds=video_info['duration'],
            file_size_bytes=os.path.getsize(video_path)
        )

    def _get_output_summary(self, context: PipelineContext) -> str:
        if context.video_metadata:
            m = context.video_metadata
            return f"{m.duration_seconds:.1f}s, {m.file_size_bytes} bytes"
        return "metadata extracted"


# =============================================================================
# STAGE 2: TRANSCRIPTION
# =============================================================================

class TranscriptionStage(PipelineStage):
    """
    Extract the audio track and transcribe it using Whisper.

    The temporary audio file is removed whether or not transcription
    succeeds, unless `processing.keep_audio` is set.

    Reads:
        - context.video_path

    Writes:
        - context.transcript
        - context.full_text
        - context.language
    """

    @property
    def name(self) -> str:
        return "transcription"

    @property
    def description(self) -> str:
        return "Extract audio and transcribe it using Whisper"

    @property
    def cacheable(self) -> bool:
        return True

    def __init__(self, service: Optional[TranscriptionService] = None):
        self._service = service

    def get_service(self, context: PipelineContext) -> TranscriptionService:
        """Lazy initialization of the transcription service."""
        if self._service is None:
            self._service = TranscriptionService(context.config.whisper)
        return self._service

    def _execute(self, context: PipelineContext) -> None:
        config = context.config

        try:
            audio_path = extract_audio(context.video_path, config=config.video)
        except Exception as e:
            raise TranscriptionError(f"Failed to transcribe video: {str(e)}") from e

        try:
            result = self.get_service(context).transcribe(audio_path)
        finally:
            if not config.processing.keep_audio and not remove_file(audio_path):
                logger.warning(f"Temporary audio file was not removed: {audio_path}")

        context.transcript = result.lines
        context.full_text = result.full_text
        context.language = result.language

    def _get_output_summary(self, context: PipelineContext) -> str:
        words = len(context.full_text.split())
        return f"{len(context.transcript)} lines, {words} words, language: {context.language}"

    def _get_cache_data(self, context: PipelineContext) -> dict:
        return {
            'language': context.language,
            'transcript': [line.to_dict() for line in context.transcript]
        }

    def _restore_from_cache(self, context: PipelineContext, cached_data: dict) -> None:
        context.transcript = [TranscriptLine.from_dict(t) for t in cached_data['transcript']]
        context.full_text = " ".join(line.text for line in context.transcript)
        context.language = cached_data.get('language', 'unknown')


# =============================================================================
# STAGE 3: ANALYSIS
# =============================================================================

class AnalysisStage(ConditionalStage):
    """
    Analyze the transcript with Gemini.

    Skipped when no Gemini API key is configured; the context then keeps the
    default analysis. Provider failures also leave the default analysis.

    Reads:
        - context.full_text

    Writes:
        - context.analysis
    """

    @property
    def name(self) -> str:
        return "analysis"

    @property
    def description(self) -> str:
        return "Summarise topics, speakers and decisions with Gemini"

    def __init__(self, service: Optional[AnalysisService] = None):
        self._service = service

    def get_service(self, context: PipelineContext) -> AnalysisService:
        """Lazy initialization of the analysis service."""
        if self._service is None:
            self._service = AnalysisService(context.config.gemini)
        return self._service

    def should_run(self, context: PipelineContext) -> bool:
        return self._service is not None or context.config.gemini.is_available

    def _execute(self, context: PipelineContext) -> None:
        context.analysis = self.get_service(context).analyze_transcript(context.full_text)

    def _get_output_summary(self, context: PipelineContext) -> str:
        return f"{len(context.analysis.main_topics)} main topics"


# =============================================================================
# STAGE 4: TIMELINE
# =============================================================================

class TimelineStage(PipelineStage):
    """
    Derive timeline segments from the transcript and analysis.

    Reads:
        - context.transcript
        - context.analysis

    Writes:
        - context.segments
    """

    @property
    def name(self) -> str:
        return "timeline"

    @property
    def description(self) -> str:
        return "Split the transcript into topic-labelled timeline segments"

    def __init__(self, policy: Optional[str] = None):
        self.policy = policy

    def _execute(self, context: PipelineContext) -> None:
        builder = TimelineBuilder(config=context.config.timeline, policy=self.policy)
        context.segments = builder.build(context.transcript, context.analysis)

        log_pipeline_decision(
            "timeline_generated",
            {
                'policy': builder.policy.name,
                'segment_count': len(context.segments),
                'topics': [s.topic for s in context.segments],
                'transcript_lines': len(context.transcript),
                'analysis_topics': len(context.analysis.main_topics),
            },
            video_id=context.video_id
        )

    def _get_output_summary(self, context: PipelineContext) -> str:
        return f"{len(context.segments)} segments"
