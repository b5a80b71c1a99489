"""
Data Models and Schemas Module
==============================
Defines structured data representations for transcripts, analyses,
timeline segments and stored video records.

This module provides:
- Type-safe dataclasses for all data entities
- Serialization/deserialization methods
- The JSON wire names consumed by the player UI (camelCase)

Python attributes are snake_case; `to_dict()` emits the wire names declared
in each model's `_aliases` and `from_dict()` accepts either spelling.

Usage:
    from video_insights.models.schemas import TranscriptLine, TimelineSegment

    line = TranscriptLine.from_dict({"speaker": "SPEAKER_00", "text": "Hi",
                                     "start": 0.0, "end": 1.2, "timestamp": 0.0})
    segment.to_dict()  # {"topic": ..., "startTime": 0, "endTime": 120, ...}
"""

from dataclasses import dataclass, field, fields
from datetime import datetime
from enum import Enum
from typing import Optional, List, Dict, Any, ClassVar
import json
import math
import uuid


# =============================================================================
# ENUMS
# =============================================================================

class ProcessingStatus(str, Enum):
    """Status of a video's processing run."""
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


# =============================================================================
# BASE CLASSES
# =============================================================================

@dataclass
class BaseModel:
    """Base class for all data models with common serialization methods."""

    # Python attribute name -> wire name
    _aliases: ClassVar[Dict[str, str]] = {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert model to dictionary, handling nested objects."""
        def convert(obj):
            if isinstance(obj, BaseModel):
                return obj.to_dict()
            elif isinstance(obj, Enum):
                return obj.value
            elif isinstance(obj, datetime):
                return obj.isoformat()
            elif isinstance(obj, (list, tuple)):
                return [convert(item) for item in obj]
            elif isinstance(obj, dict):
                return {k: convert(v) for k, v in obj.items()}
            return obj

        return {
            self._aliases.get(f.name, f.name): convert(getattr(self, f.name))
            for f in fields(self)
        }

    def to_json(self, indent: int = 2) -> str:
        """Convert model to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def _unalias(cls, data: Dict[str, Any]) -> Dict[str, Any]:
        """Map wire names back to attribute names, dropping unknown keys."""
        reverse = {wire: name for name, wire in cls._aliases.items()}
        known = {f.name for f in fields(cls)}
        result = {}
        for key, value in data.items():
            name = reverse.get(key, key)
            if name in known:
                result[name] = value
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BaseModel":
        """Create model from dictionary. Override in subclasses for nested objects."""
        return cls(**cls._unalias(data))

    @classmethod
    def from_json(cls, json_str: str) -> "BaseModel":
        """Create model from JSON string."""
        return cls.from_dict(json.loads(json_str))


# =============================================================================
# TRANSCRIPT
# =============================================================================

@dataclass
class TranscriptLine(BaseModel):
    """
    A single timestamped line of speech.

    Attributes:
        speaker: Speaker identifier (e.g. "SPEAKER_00")
        text: Spoken text, trimmed
        start: Start time in seconds
        end: End time in seconds (start <= end)
        timestamp: Display timestamp in seconds, normally equal to start
    """
    speaker: str
    text: str
    start: float
    end: float
    timestamp: Optional[float] = None

    def __post_init__(self):
        if self.timestamp is None:
            self.timestamp = self.start

    @property
    def duration_seconds(self) -> float:
        return self.end - self.start


# =============================================================================
# TIMELINE
# =============================================================================

@dataclass
class TimelineSegment(BaseModel):
    """
    A topic-labelled region of the video timeline.

    Attributes:
        topic: Topic label shown on the timeline
        description: Short description ("Discussion from 0:00 to 2:00")
        start_time: Start in whole seconds (floored)
        end_time: End in whole seconds (floored)
        keywords: Up to five representative keywords
        color: Background color from the timeline palette
    """
    _aliases: ClassVar[Dict[str, str]] = {
        'start_time': 'startTime',
        'end_time': 'endTime',
    }

    topic: str
    description: str
    start_time: int
    end_time: int
    keywords: List[str] = field(default_factory=list)
    color: str = ""

    @property
    def duration_seconds(self) -> int:
        return self.end_time - self.start_time

    def contains(self, position: float) -> bool:
        """Whether a playback position falls in [start_time, end_time)."""
        return self.start_time <= position < self.end_time


# =============================================================================
# ANALYSIS
# =============================================================================

@dataclass
class TopicRef(BaseModel):
    """A main topic of the conversation."""
    name: str
    icon: str = ""


@dataclass
class PartialTopic(BaseModel):
    """A topic that was raised but not fully discussed."""
    name: str
    reason: str = ""


@dataclass
class Speaker(BaseModel):
    """Speaker information estimated by the analysis provider."""
    _aliases: ClassVar[Dict[str, str]] = {'speaking_time': 'speakingTime'}

    name: str
    role: str = ""
    speaking_time: float = 0.0


@dataclass
class Decision(BaseModel):
    """A decision reached in the conversation and its follow-ups."""
    _aliases: ClassVar[Dict[str, str]] = {'action_items': 'actionItems'}

    decision: str
    action_items: List[str] = field(default_factory=list)


@dataclass
class VideoAnalysis(BaseModel):
    """
    Structured insights about a transcript.

    Supplied by the analysis provider (or by the client) and consumed
    read-only by timeline generation, which uses `main_topics` names as
    segment topics when present.
    """
    _aliases: ClassVar[Dict[str, str]] = {
        'main_topics': 'mainTopics',
        'partial_topics': 'partialTopics',
    }

    summary: str = "Analysis not available"
    highlights: List[str] = field(default_factory=list)
    main_topics: List[TopicRef] = field(default_factory=list)
    partial_topics: List[PartialTopic] = field(default_factory=list)
    speakers: List[Speaker] = field(default_factory=list)
    decisions: List[Decision] = field(default_factory=list)

    @classmethod
    def default(cls) -> "VideoAnalysis":
        """The analysis stored when none is available."""
        return cls()

    @property
    def topic_names(self) -> List[str]:
        return [t.name for t in self.main_topics]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VideoAnalysis":
        """Create from dictionary, tolerating missing or null fields."""
        data = cls._unalias(data or {})
        return cls(
            summary=data.get('summary') or "No summary available",
            highlights=[str(h) for h in data.get('highlights') or []],
            main_topics=[
                topic for topic in (_topic_from_raw(t) for t in data.get('main_topics') or [])
                if topic is not None
            ],
            partial_topics=[PartialTopic.from_dict(t) for t in _dicts(data.get('partial_topics'))],
            speakers=[Speaker.from_dict(s) for s in _dicts(data.get('speakers'))],
            decisions=[Decision.from_dict(d) for d in _dicts(data.get('decisions'))],
        )


def _topic_from_raw(raw: Any) -> Optional[TopicRef]:
    """Topic from a provider entry; None for null entries."""
    if raw is None:
        return None
    # Providers occasionally return bare strings (or numbers) instead of {name, icon}
    if not isinstance(raw, dict):
        return TopicRef(name=str(raw))
    return TopicRef(name=str(raw.get('name') or ''), icon=str(raw.get('icon') or ''))


def _dicts(items: Any) -> List[Dict[str, Any]]:
    """Object entries of a provider list; anything else is dropped."""
    if not isinstance(items, list):
        return []
    return [item for item in items if isinstance(item, dict)]


# =============================================================================
# VIDEO
# =============================================================================

@dataclass
class VideoMetadata(BaseModel):
    """
    Metadata for an uploaded video file.

    Attributes:
        filename: Stored filename of the video
        filepath: Full path to the video file
        duration_seconds: Total duration in seconds
        file_size_bytes: Size of the file in bytes
    """
    filename: str
    filepath: str
    duration_seconds: float
    file_size_bytes: int = 0

    @property
    def duration_floor(self) -> int:
        return max(0, math.floor(self.duration_seconds))


@dataclass
class VideoRecord(BaseModel):
    """
    A stored video with its transcript, analysis and timeline.

    Attributes:
        id: Unique identifier
        video_url: URL the player loads the video from
        video_name: Original filename as uploaded
        duration: Video duration in whole seconds
        uploaded_at: ISO timestamp of the upload
        segments: Timeline segments
        transcript: Transcript lines
        analysis: Analysis used for the timeline and report
        status: Processing status
        error: Failure message when status is FAILED
    """
    _aliases: ClassVar[Dict[str, str]] = {
        'video_url': 'videoUrl',
        'video_name': 'videoName',
        'uploaded_at': 'uploadedAt',
        'stored_filename': 'storedFilename',
    }

    id: str
    video_url: str
    video_name: str
    duration: int = 0
    uploaded_at: str = field(default_factory=lambda: datetime.now().isoformat())
    segments: List[TimelineSegment] = field(default_factory=list)
    transcript: List[TranscriptLine] = field(default_factory=list)
    analysis: VideoAnalysis = field(default_factory=VideoAnalysis.default)
    status: ProcessingStatus = ProcessingStatus.PENDING
    error: Optional[str] = None
    stored_filename: Optional[str] = None

    @property
    def full_text(self) -> str:
        return " ".join(line.text for line in self.transcript)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VideoRecord":
        """Create from dictionary, reconstructing nested objects."""
        data = cls._unalias(data)
        return cls(
            id=data['id'],
            video_url=data['video_url'],
            video_name=data['video_name'],
            duration=int(data.get('duration') or 0),
            uploaded_at=data.get('uploaded_at') or datetime.now().isoformat(),
            segments=[TimelineSegment.from_dict(s) for s in data.get('segments', [])],
            transcript=[TranscriptLine.from_dict(t) for t in data.get('transcript', [])],
            analysis=VideoAnalysis.from_dict(data['analysis']) if data.get('analysis') else VideoAnalysis.default(),
            status=ProcessingStatus(data.get('status', ProcessingStatus.PENDING.value)),
            error=data.get('error'),
            stored_filename=data.get('stored_filename'),
        )


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================

def generate_video_id() -> str:
    """Generate a unique video ID."""
    return uuid.uuid4().hex
