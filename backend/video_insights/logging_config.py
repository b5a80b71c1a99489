"""
Logging System
==============
Structured logging for processing observability.

This module provides:
- Human-readable console logging
- Structured JSON logging (one record per line) for machine-parseable outputs
- Specialized loggers for pipeline stages and timeline decisions
- Log file organization by run name

Usage:
    from video_insights.logging_config import configure_logging, get_research_logger

    configure_logging(config)
    logger = get_research_logger("pipeline")
    logger.info("Transcribed video", extra={"video_id": "...", "line_count": 42})

    # Convenience functions
    log_pipeline_decision("timeline_generated", {...}, video_id=video_id)
    log_stage_complete(stage_name, video_id, duration_seconds)
"""

import sys
import json
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional, Dict, Any, Union

from .config import AppConfig


# Attributes every LogRecord carries; anything else came in through extra={}
_RESERVED_ATTRS = frozenset((
    'name', 'msg', 'args', 'created', 'filename', 'funcName', 'levelname',
    'levelno', 'lineno', 'module', 'msecs', 'pathname', 'process',
    'processName', 'relativeCreated', 'stack_info', 'exc_info', 'exc_text',
    'thread', 'threadName', 'taskName', 'message', 'context',
))


# =============================================================================
# CUSTOM FORMATTERS
# =============================================================================

class StructuredFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Outputs log records as JSON objects with consistent structure:
    {
        "timestamp": "2025-10-28T10:30:00.123456",
        "level": "INFO",
        "logger": "research.pipeline",
        "message": "Completed stage: transcription (12.40s)",
        "context": {...}
    }
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if getattr(record, 'context', None):
            log_data['context'] = record.context

        for key, value in record.__dict__.items():
            if key in _RESERVED_ATTRS:
                continue
            try:
                # Keep serializable values as-is, stringify the rest
                json.dumps(value)
                log_data[key] = value
            except (TypeError, ValueError):
                log_data[key] = str(value)

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data)


class ConsoleFormatter(logging.Formatter):
    """
    Human-readable formatter for console output.

    Format: [LEVEL] logger: message (key=value, ...)
    """

    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
    }
    RESET = '\033[0m'

    def __init__(self, use_colors: bool = True):
        super().__init__()
        self.use_colors = use_colors and sys.stdout.isatty()

    def format(self, record: logging.LogRecord) -> str:
        level = record.levelname
        if self.use_colors and level in self.COLORS:
            level = f"{self.COLORS[level]}{level}{self.RESET}"

        msg = f"[{level}] {record.name}: {record.getMessage()}"

        extras = []
        for key, value in record.__dict__.items():
            if key in _RESERVED_ATTRS:
                continue
            if isinstance(value, (str, int, float, bool)):
                extras.append(f"{key}={value}")
            elif isinstance(value, dict) and len(value) < 3:
                extras.append(f"{key}={value}")

        if extras:
            msg += f" ({', '.join(extras)})"

        if record.exc_info:
            msg += "\n" + self.formatException(record.exc_info)

        return msg


# =============================================================================
# LOGGER FACTORY
# =============================================================================

@dataclass
class _LogSettings:
    level: int = logging.INFO
    logs_dir: Optional[Path] = None
    log_to_file: bool = False
    log_decisions: bool = True
    log_stages: bool = True
    run_name: str = "default"


_settings = _LogSettings()
_loggers: Dict[str, logging.Logger] = {}


def configure_logging(config: AppConfig) -> None:
    """
    Configure the root logger and research logger defaults from a config.

    Loggers created before this call keep their handlers; their levels are
    updated.
    """
    _settings.level = getattr(logging, config.logging.log_level.upper(), logging.INFO)
    _settings.logs_dir = config.paths.logs
    _settings.log_to_file = config.logging.log_to_file
    _settings.log_decisions = config.logging.log_decisions
    _settings.log_stages = config.logging.log_stages
    _settings.run_name = config.logging.run_name

    root_logger = logging.getLogger()
    root_logger.setLevel(_settings.level)
    root_logger.handlers = []

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(ConsoleFormatter())
    root_logger.addHandler(console_handler)

    for logger in _loggers.values():
        logger.setLevel(_settings.level)


def get_research_logger(
    name: str,
    log_to_file: Optional[bool] = None,
    run_name: Optional[str] = None
) -> logging.Logger:
    """
    Get or create a research logger.

    Args:
        name: Logger name (e.g., "pipeline", "decisions", "routes.videos")
        log_to_file: Whether to also write JSON lines to a file. Defaults to
            the configured setting; ignored until configure_logging() has set
            a log directory.
        run_name: Optional run name for file organization

    Returns:
        Configured logger instance
    """
    full_name = f"research.{name}"

    if full_name in _loggers:
        return _loggers[full_name]

    logger = logging.getLogger(full_name)
    logger.setLevel(_settings.level)
    logger.propagate = False

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(ConsoleFormatter())
    logger.addHandler(console_handler)

    if log_to_file is None:
        log_to_file = _settings.log_to_file

    if log_to_file and _settings.logs_dir is not None:
        log_file = get_log_path(run_name or _settings.run_name, name)
        log_file.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file, mode='a', encoding='utf-8')
        file_handler.setFormatter(StructuredFormatter())
        logger.addHandler(file_handler)

    _loggers[full_name] = logger
    return logger


def get_pipeline_logger(video_id: Optional[str] = None) -> Union[logging.Logger, logging.LoggerAdapter]:
    """Get a logger for pipeline execution."""
    logger = get_research_logger("pipeline")
    if video_id:
        # Attach video_id to every record from this logger
        return logging.LoggerAdapter(logger, {'video_id': video_id})
    return logger


def get_decision_logger() -> logging.Logger:
    """Get a logger for timeline and processing decisions."""
    return get_research_logger("decisions")


# =============================================================================
# CONVENIENCE LOGGING FUNCTIONS
# =============================================================================

def log_pipeline_decision(
    decision_type: str,
    details: Dict[str, Any],
    video_id: Optional[str] = None,
    logger: Optional[logging.Logger] = None
) -> None:
    """
    Log a high-level pipeline decision.

    Args:
        decision_type: Type of decision (e.g., "timeline_generated")
        details: Decision details
        video_id: Video the decision was made for
        logger: Optional logger override
    """
    if not _settings.log_decisions:
        return

    log = logger or get_decision_logger()
    extra = {
        'decision_type': decision_type,
        'details': details
    }
    if video_id:
        extra['video_id'] = video_id

    log.info(f"Decision: {decision_type}", extra=extra)


def log_stage_start(
    stage_name: str,
    video_id: str,
    logger: Optional[logging.Logger] = None
) -> None:
    """Log the start of a pipeline stage."""
    if not _settings.log_stages:
        return
    log = logger or get_research_logger("pipeline")
    log.info(
        f"Starting stage: {stage_name}",
        extra={
            'stage_name': stage_name,
            'video_id': video_id,
            'event': 'stage_start'
        }
    )


def log_stage_complete(
    stage_name: str,
    video_id: str,
    duration_seconds: float,
    summary: Optional[str] = None,
    logger: Optional[logging.Logger] = None
) -> None:
    """Log the completion of a pipeline stage."""
    if not _settings.log_stages:
        return
    log = logger or get_research_logger("pipeline")
    log.info(
        f"Completed stage: {stage_name} ({duration_seconds:.2f}s)",
        extra={
            'stage_name': stage_name,
            'video_id': video_id,
            'event': 'stage_complete',
            'duration_seconds': duration_seconds,
            'summary': summary or 'OK'
        }
    )


def log_stage_error(
    stage_name: str,
    video_id: str,
    error: str,
    duration_seconds: float,
    logger: Optional[logging.Logger] = None
) -> None:
    """Log a pipeline stage error."""
    log = logger or get_research_logger("pipeline")
    log.error(
        f"Stage failed: {stage_name}",
        extra={
            'stage_name': stage_name,
            'video_id': video_id,
            'event': 'stage_error',
            'error': error,
            'duration_seconds': duration_seconds
        }
    )


# =============================================================================
# LOG FILE UTILITIES
# =============================================================================

def get_log_path(run_name: str, log_type: str = "pipeline") -> Path:
    """Get the log file path for a run and log type."""
    if _settings.logs_dir is None:
        raise RuntimeError("Logging is not configured; call configure_logging() first")
    timestamp = datetime.now().strftime("%Y%m%d")
    return _settings.logs_dir / log_type / f"{run_name}_{timestamp}.jsonl"


def read_log_file(log_path: Union[str, Path]) -> list:
    """
    Read a JSONL log file and return list of log entries.

    Malformed lines are skipped.
    """
    entries = []
    with open(log_path, 'r', encoding='utf-8') as f:
        for line in f:
            line = line.strip()
            if line:
                try:
                    entries.append(json.loads(line))
                except json.JSONDecodeError:
                    continue
    return entries
