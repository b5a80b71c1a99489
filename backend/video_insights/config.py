"""
Configuration Management Module
===============================
Centralized configuration system for the Video Insights service.

This module provides:
- Type-safe configuration via dataclasses
- Environment variable overrides
- JSON save/load for reproducible runs
- Default values with documentation

There is no process-wide configuration object. Build one explicitly and pass
it to the components that need it:

    from video_insights.config import load_config
    config = load_config()

    app = create_app(config)
    pipeline = VideoPipeline(config)

    # Access configuration
    policy = config.timeline.policy
    model_size = config.whisper.model_size
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Literal
import os
import json
import logging

logger = logging.getLogger(__name__)

ENV_PREFIX = "VIDEO_INSIGHTS_"


# =============================================================================
# CONFIGURATION DATACLASSES
# =============================================================================

@dataclass
class PathConfig:
    """Configuration for file system paths."""

    # Base directory (defaults to the package directory)
    base_dir: Path = field(default_factory=lambda: Path(__file__).parent)

    # Runtime directories
    upload_dir: str = "uploads"
    data_dir: str = "data"
    cache_dir: str = "cache"
    logs_dir: str = "logs"

    @property
    def uploads(self) -> Path:
        return self.base_dir / self.upload_dir

    @property
    def data(self) -> Path:
        return self.base_dir / self.data_dir

    @property
    def cache(self) -> Path:
        return self.base_dir / self.cache_dir

    @property
    def logs(self) -> Path:
        return self.base_dir / self.logs_dir

    def ensure_directories(self) -> None:
        """Create all required directories if they don't exist."""
        for dir_path in [self.uploads, self.data, self.cache, self.logs]:
            dir_path.mkdir(parents=True, exist_ok=True)


@dataclass
class WhisperConfig:
    """
    Configuration for the faster-whisper speech-to-text model.

    Segment-level timestamps are all the timeline needs, so the default
    'small' model is enough; word timestamps are never requested.
    """

    # Model size: tiny, base, small, medium, large, large-v2, large-v3
    model_size: str = "small"

    # Device configuration
    device: str = "auto"  # "auto", "cpu", "cuda"
    compute_type: str = "default"  # "default", "int8", "float16", "float32"

    # Transcription parameters
    language: Optional[str] = None  # None for auto-detect
    task: str = "transcribe"  # "transcribe" or "translate"
    beam_size: int = 5

    # VAD (Voice Activity Detection) parameters
    vad_filter: bool = True
    vad_parameters: dict = field(default_factory=lambda: {
        "threshold": 0.5,
        "min_speech_duration_ms": 250,
        "min_silence_duration_ms": 100
    })


@dataclass
class GeminiConfig:
    """Configuration for the Google Gemini transcript analysis model."""

    # Model selection
    model_name: str = "gemini-1.5-flash"

    # Generation parameters
    temperature: float = 0.4
    top_k: int = 1
    top_p: float = 0.8
    max_output_tokens: int = 8192

    # API configuration (loaded from environment)
    api_key: Optional[str] = field(default_factory=lambda: os.getenv("GOOGLE_API_KEY"))

    # Analysis can be deferred to the client; the server then stores the
    # default analysis and segments fall back to keyword topics.
    enabled: bool = True

    @property
    def is_available(self) -> bool:
        return self.enabled and bool(self.api_key)


@dataclass
class TimelineConfig:
    """
    Configuration for transcript-to-timeline segmentation.

    Two policies exist:
    - 'duration': segment count from the transcript length, at least
      `min_segment_seconds` per segment (keyword topics, no AI dependency)
    - 'analysis': one segment per analysis topic, `default_topic_count`
      segments when the analysis has no topics
    """

    policy: Literal["duration", "analysis"] = "duration"

    max_segments: int = 5
    min_segment_seconds: float = 120.0
    default_topic_count: int = 3

    # Keyword extraction
    keyword_limit: int = 5
    keyword_min_length: int = 5
    topic_keyword_count: int = 2

    palette: list = field(default_factory=lambda: [
        "#E8F4F8", "#FFE5E5", "#FFF4E5", "#E8F8E8", "#F0E8F8"
    ])


@dataclass
class VideoConfig:
    """Configuration for uploads and audio extraction."""

    # Allowed formats
    allowed_extensions: set = field(default_factory=lambda: {'mp4', 'mov', 'avi', 'mkv'})
    allowed_mimetypes: set = field(default_factory=lambda: {
        'video/mp4', 'video/quicktime', 'video/x-msvideo', 'video/x-matroska'
    })

    # Upload limits
    max_file_size_bytes: int = 500 * 1024 * 1024  # 500MB

    # Audio extraction settings
    audio_extension: str = "mp3"
    audio_codec: str = "libmp3lame"
    audio_bitrate: str = "128k"


@dataclass
class ProcessingConfig:
    """Configuration for the upload processing pipeline."""

    # Run the pipeline on a worker thread and answer the upload immediately
    background: bool = True
    max_workers: int = 2

    # Cache transcription output keyed by video content
    use_cache: bool = True

    # Keep the extracted audio next to the upload (debugging only)
    keep_audio: bool = False


@dataclass
class FlaskConfig:
    """Configuration for Flask web server."""

    # Server settings
    host: str = "0.0.0.0"
    port: int = 5000
    debug: bool = False

    # Security
    secret_key: str = field(default_factory=lambda: os.getenv("FLASK_SECRET_KEY", "dev-secret-key"))

    # CORS
    cors_origins: list = field(default_factory=lambda: ["*"])


@dataclass
class LoggingConfig:
    """Configuration for console and structured file logging."""

    log_level: str = "INFO"
    log_to_file: bool = True
    log_decisions: bool = True
    log_stages: bool = True
    run_name: str = "default"


@dataclass
class AppConfig:
    """
    Master configuration class that aggregates all configuration sections.

    This is the configuration object passed throughout the application.
    """

    paths: PathConfig = field(default_factory=PathConfig)
    whisper: WhisperConfig = field(default_factory=WhisperConfig)
    gemini: GeminiConfig = field(default_factory=GeminiConfig)
    timeline: TimelineConfig = field(default_factory=TimelineConfig)
    video: VideoConfig = field(default_factory=VideoConfig)
    processing: ProcessingConfig = field(default_factory=ProcessingConfig)
    flask: FlaskConfig = field(default_factory=FlaskConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def to_dict(self) -> dict:
        """Convert configuration to dictionary for serialization."""
        def convert(obj):
            if hasattr(obj, '__dataclass_fields__'):
                return {k: convert(v) for k, v in obj.__dict__.items()}
            elif isinstance(obj, Path):
                return str(obj)
            elif isinstance(obj, set):
                return sorted(obj)
            return obj
        return convert(self)

    def save(self, filepath: str) -> None:
        """Save configuration to JSON file."""
        data = self.to_dict()
        # Never write secrets to disk
        data['gemini']['api_key'] = None
        with open(filepath, 'w') as f:
            json.dump(data, f, indent=2)
        logger.info(f"Configuration saved to {filepath}")

    @classmethod
    def from_dict(cls, data: dict) -> "AppConfig":
        """Create configuration from dictionary."""
        # Handle PathConfig specially to convert base_dir back to Path
        paths_data = dict(data.get('paths', {}))
        if 'base_dir' in paths_data and isinstance(paths_data['base_dir'], str):
            paths_data['base_dir'] = Path(paths_data['base_dir'])

        # Handle VideoConfig specially to convert lists back to sets
        video_data = dict(data.get('video', {}))
        for key in ('allowed_extensions', 'allowed_mimetypes'):
            if key in video_data and isinstance(video_data[key], list):
                video_data[key] = set(video_data[key])

        gemini_data = dict(data.get('gemini', {}))
        if gemini_data.get('api_key') is None:
            gemini_data.pop('api_key', None)

        return cls(
            paths=PathConfig(**paths_data),
            whisper=WhisperConfig(**data.get('whisper', {})),
            gemini=GeminiConfig(**gemini_data),
            timeline=TimelineConfig(**data.get('timeline', {})),
            video=VideoConfig(**video_data),
            processing=ProcessingConfig(**data.get('processing', {})),
            flask=FlaskConfig(**data.get('flask', {})),
            logging=LoggingConfig(**data.get('logging', {}))
        )

    @classmethod
    def load(cls, filepath: str) -> "AppConfig":
        """Load configuration from JSON file."""
        with open(filepath, 'r') as f:
            data = json.load(f)
        logger.info(f"Configuration loaded from {filepath}")
        return cls.from_dict(data)


# =============================================================================
# CONFIGURATION LOADING
# =============================================================================

def load_config(filepath: Optional[str] = None, apply_env: bool = True) -> AppConfig:
    """
    Build an application configuration.

    Args:
        filepath: Optional JSON configuration file; defaults are used otherwise
        apply_env: Whether to apply environment variable overrides

    Returns:
        A new AppConfig instance
    """
    config = AppConfig.load(filepath) if filepath else AppConfig()
    if apply_env:
        apply_environment_overrides(config)
    return config


# =============================================================================
# ENVIRONMENT VARIABLE OVERRIDES
# =============================================================================

_SECTIONS = (
    'paths', 'whisper', 'gemini', 'timeline', 'video',
    'processing', 'flask', 'logging'
)


def apply_environment_overrides(config: AppConfig, environ: Optional[dict] = None) -> AppConfig:
    """
    Apply environment variable overrides to configuration.

    Environment variables follow the pattern:
    VIDEO_INSIGHTS_{SECTION}_{KEY}

    Examples:
        VIDEO_INSIGHTS_TIMELINE_POLICY=analysis
        VIDEO_INSIGHTS_FLASK_PORT=8080
        VIDEO_INSIGHTS_LOGGING_LOG_LEVEL=DEBUG

    Also supports common simplified environment variables:
        WHISPER_MODEL=tiny (maps to whisper.model_size)
        PORT=8080 (maps to flask.port)

    Args:
        config: Base configuration to override
        environ: Mapping to read from (defaults to os.environ)

    Returns:
        Configuration with environment overrides applied
    """
    environ = os.environ if environ is None else environ

    # Handle common simplified environment variables first
    if environ.get("WHISPER_MODEL"):
        config.whisper.model_size = environ["WHISPER_MODEL"]
        logger.info(f"Environment override: whisper.model_size = {config.whisper.model_size}")

    if environ.get("PORT"):
        try:
            config.flask.port = int(environ["PORT"])
            logger.info(f"Environment override: flask.port = {config.flask.port}")
        except ValueError:
            logger.warning(f"Ignoring non-numeric PORT value: {environ['PORT']}")

    for key, value in environ.items():
        if not key.startswith(ENV_PREFIX):
            continue

        parts = key[len(ENV_PREFIX):].lower().split('_', 1)
        if len(parts) != 2:
            continue

        section, attr = parts
        if section not in _SECTIONS:
            continue

        section_config = getattr(config, section, None)
        if section_config is None or not hasattr(section_config, attr):
            continue

        # Convert value to appropriate type
        current_value = getattr(section_config, attr)
        try:
            if isinstance(current_value, bool):
                typed_value = value.lower() in ('true', '1', 'yes')
            elif isinstance(current_value, int):
                typed_value = int(value)
            elif isinstance(current_value, float):
                typed_value = float(value)
            elif isinstance(current_value, Path):
                typed_value = Path(value)
            else:
                typed_value = value

            setattr(section_config, attr, typed_value)
            logger.info(f"Environment override: {section}.{attr} = {typed_value}")

        except (ValueError, TypeError) as e:
            logger.warning(f"Failed to apply environment override {key}: {e}")

    return config


# =============================================================================
# PRESET CONFIGURATIONS FOR COMMON SCENARIOS
# =============================================================================

def get_development_config() -> AppConfig:
    """Get configuration optimized for development."""
    config = AppConfig()
    config.flask.debug = True
    config.whisper.model_size = "tiny"  # Faster for development
    config.processing.background = False
    config.logging.log_level = "DEBUG"
    return config


def get_production_config() -> AppConfig:
    """Get configuration optimized for production."""
    config = AppConfig()
    config.flask.debug = False
    config.whisper.model_size = "medium"  # Better accuracy
    config.processing.background = True
    config.logging.log_level = "INFO"
    return config
