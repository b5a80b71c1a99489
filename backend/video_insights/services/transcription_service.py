"""
Transcription Service Module
============================
Speech-to-text for uploaded videos using faster-whisper.

This service handles:
- Whisper model construction from WhisperConfig
- Transcription of an extracted audio track into timestamped lines
- Placeholder speaker labelling
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional

from faster_whisper import WhisperModel

from ..config import WhisperConfig
from ..models import TranscriptLine

logger = logging.getLogger(__name__)

PLACEHOLDER_SPEAKERS = ("SPEAKER_00", "SPEAKER_01")


class TranscriptionError(Exception):
    """Raised when audio cannot be transcribed."""


@dataclass
class TranscriptionResult:
    """Output of a transcription run."""
    lines: List[TranscriptLine] = field(default_factory=list)
    full_text: str = ""
    language: str = "unknown"


def assign_alternating_speakers(index: int) -> str:
    """
    Speaker label for the index-th transcribed segment.

    PLACEHOLDER: labels alternate by segment parity. This is not speaker
    diarisation; replace it once a diarisation provider is wired in.
    """
    return PLACEHOLDER_SPEAKERS[index % len(PLACEHOLDER_SPEAKERS)]


def segments_to_lines(segments: Iterable[Any]) -> List[TranscriptLine]:
    """
    Convert provider segments (objects with .start, .end, .text) to lines.

    Provider order is kept; lines are not re-sorted.
    """
    return [
        TranscriptLine(
            speaker=assign_alternating_speakers(i),
            text=segment.text.strip(),
            start=float(segment.start),
            end=float(segment.end),
            timestamp=float(segment.start)
        )
        for i, segment in enumerate(segments)
    ]


class TranscriptionService:
    """
    Service for transcribing audio with a local Whisper model.

    The model is built from the injected WhisperConfig unless a ready model
    is passed in (tests pass a mock).
    """

    def __init__(self, config: Optional[WhisperConfig] = None, model: Optional[Any] = None):
        """
        Initialize the transcription service.

        Args:
            config: Whisper configuration (default: WhisperConfig())
            model: Optional pre-built model exposing transcribe()
        """
        self.config = config or WhisperConfig()

        if model is not None:
            self.model = model
        else:
            self.model = WhisperModel(
                self.config.model_size,
                device=self.config.device,
                compute_type=self.config.compute_type
            )
        logger.info(f"Initialized TranscriptionService with Whisper model: {self.config.model_size}")

    def transcribe(self, audio_path: str) -> TranscriptionResult:
        """
        Transcribe an audio file.

        Args:
            audio_path: Path to the extracted audio track

        Returns:
            TranscriptionResult with ordered lines and the full text

        Raises:
            TranscriptionError: If the model fails for any reason
        """
        logger.info(f"Starting Whisper transcription for: {audio_path}")

        try:
            segments, info = self.model.transcribe(
                audio_path,
                language=self.config.language,
                task=self.config.task,
                beam_size=self.config.beam_size,
                vad_filter=self.config.vad_filter,
                vad_parameters=self.config.vad_parameters
            )
            # The segment generator is lazy; decoding happens here
            lines = segments_to_lines(list(segments))
        except Exception as e:
            logger.error(f"Error transcribing with Whisper: {str(e)}")
            raise TranscriptionError(f"Failed to transcribe video: {str(e)}") from e

        language = getattr(info, 'language', None) or "unknown"
        full_text = " ".join(line.text for line in lines)

        logger.info(f"Transcription complete: {len(lines)} lines, language: {language}")
        return TranscriptionResult(lines=lines, full_text=full_text, language=language)
