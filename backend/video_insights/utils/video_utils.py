"""
Video Utilities Module
======================
Canonical implementation of the media helpers used by the pipeline and
the upload route:
- File validation
- Upload naming
- Video metadata extraction
- Audio extraction for transcription

All other modules should import from here rather than defining their own versions.
"""

import os
import random
import time
import logging
import traceback
from typing import Optional

from moviepy.video.io.VideoFileClip import VideoFileClip
from werkzeug.utils import secure_filename

from ..config import VideoConfig

# Configure logging
logger = logging.getLogger(__name__)


# =============================================================================
# FILE VALIDATION
# =============================================================================

def allowed_file(
    filename: str,
    mimetype: Optional[str] = None,
    config: Optional[VideoConfig] = None
) -> bool:
    """
    Check if an upload is an accepted video.

    A file is accepted when either its extension or its MIME type is allowed.

    Args:
        filename: The name of the file as uploaded
        mimetype: The MIME type reported by the client, if any
        config: Video configuration (default: VideoConfig())

    Returns:
        True if the file is accepted, False otherwise
    """
    config = config or VideoConfig()

    if mimetype and mimetype.lower() in config.allowed_mimetypes:
        return True
    return '.' in filename and filename.rsplit('.', 1)[1].lower() in config.allowed_extensions


# =============================================================================
# UPLOAD NAMING
# =============================================================================

def unique_upload_filename(original_filename: str, prefix: str = "video") -> str:
    """
    Build a collision-resistant filename for a stored upload.

    The original extension is kept, e.g. "video-1712345678901-483920117.mp4".
    """
    _, ext = os.path.splitext(secure_filename(original_filename))
    suffix = f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}"
    return f"{prefix}-{suffix}{ext.lower()}"


def remove_file(filepath: Optional[str]) -> bool:
    """
    Delete a file if it exists.

    Returns:
        True if a file was removed
    """
    if not filepath or not os.path.exists(filepath):
        return False
    try:
        os.remove(filepath)
        return True
    except OSError as e:
        logger.error(f"Failed to delete {filepath}: {str(e)}")
        return False


# =============================================================================
# VIDEO METADATA
# =============================================================================

def get_video_info(filepath: str) -> dict:
    """
    Extract metadata from a video file.

    Args:
        filepath: Path to the video file

    Returns:
        Dictionary containing:
        - duration: Video length in seconds
        - has_audio: Whether the file has an audio track

    Raises:
        Exception: If video cannot be read or is corrupted
    """
    try:
        with VideoFileClip(filepath) as clip:
            return {
                'duration': clip.duration or 0.0,
                'has_audio': clip.audio is not None
            }
    except Exception as e:
        logger.error(f"Error getting video info for {filepath}: {str(e)}")
        logger.error(traceback.format_exc())
        raise


# =============================================================================
# AUDIO EXTRACTION
# =============================================================================

def audio_path_for(video_path: str, extension: str = "mp3") -> str:
    """Path of the temporary audio file extracted next to a video."""
    base, _ = os.path.splitext(video_path)
    return f"{base}.{extension}"


def extract_audio(
    video_path: str,
    audio_path: Optional[str] = None,
    config: Optional[VideoConfig] = None
) -> str:
    """
    Extract the audio track of a video to a file.

    Args:
        video_path: Path to the video file
        audio_path: Output path (default: video path with the audio extension)
        config: Video configuration for codec and bitrate

    Returns:
        Path to the written audio file

    Raises:
        ValueError: If the video has no audio track
    """
    config = config or VideoConfig()
    audio_path = audio_path or audio_path_for(video_path, config.audio_extension)

    with VideoFileClip(video_path) as clip:
        if clip.audio is None:
            raise ValueError(f"Video has no audio track: {video_path}")

        clip.audio.write_audiofile(
            audio_path,
            codec=config.audio_codec,
            bitrate=config.audio_bitrate,
            logger=None
        )

    logger.info(f"Extracted audio to {audio_path}")
    return audio_path
