"""
Video Routes Module
===================
REST API for stored videos: upload, listing, editing, deletion, timeline
regeneration and transcript export.

Endpoints:
- GET    /api/videos                      - List all videos
- GET    /api/videos/<id>                 - Get one video
- POST   /api/videos/upload               - Upload and process a video
- PATCH  /api/videos/<id>                 - Partially update a video
- DELETE /api/videos/<id>                 - Delete a video and its upload
- POST   /api/videos/<id>/timeline        - Rebuild the timeline segments
- GET    /api/videos/<id>/transcript.txt  - Download the transcript as text

The blueprint reads its collaborators from the application:
`current_app.app_config`, `current_app.video_store` and
`current_app.processor`.
"""

import os
import logging
import traceback
import unicodedata
from urllib.parse import quote

from flask import Blueprint, Response, current_app, jsonify, request, url_for

from ..models import ProcessingStatus, VideoAnalysis, VideoRecord, generate_video_id
from ..timeline import TimelineBuilder, export_transcript_text
from ..logging_config import get_research_logger, log_pipeline_decision
from ..utils.video_utils import allowed_file, remove_file, unique_upload_filename

# Configure logging
logger = get_research_logger("routes.videos", log_to_file=False)

# Create blueprint
videos_bp = Blueprint('videos', __name__)

# Wire names a client may change through PATCH
EDITABLE_FIELDS = ('videoName', 'segments', 'transcript', 'analysis', 'duration')


def _not_found():
    return jsonify({'error': 'Video not found'}), 404


def _upload_path(stored_filename: str) -> str:
    return os.path.join(current_app.app_config.paths.uploads, stored_filename)


# =============================================================================
# READ
# =============================================================================

@videos_bp.route('', methods=['GET'])
def list_videos():
    """Return every stored video."""
    try:
        videos = current_app.video_store.list()
        return jsonify([video.to_dict() for video in videos]), 200
    except Exception as e:
        logger.error(f"Error listing videos: {str(e)}")
        return jsonify({'error': 'Failed to fetch videos'}), 500


@videos_bp.route('/<video_id>', methods=['GET'])
def get_video(video_id):
    """Return one video or 404."""
    video = current_app.video_store.get(video_id)
    if video is None:
        return _not_found()
    return jsonify(video.to_dict()), 200


# =============================================================================
# UPLOAD
# =============================================================================

@videos_bp.route('/upload', methods=['POST'])
def upload_video():
    """
    Upload a video and process it.

    Multipart form with a `video` file field. With background processing
    enabled the pending record is returned with 202; otherwise the
    processed record is returned with 200.
    """
    if 'video' not in request.files:
        return jsonify({'error': 'No video file provided'}), 400

    file = request.files['video']

    if file.filename == '':
        return jsonify({'error': 'No selected file'}), 400

    config = current_app.app_config
    store = current_app.video_store

    if not allowed_file(file.filename, file.mimetype, config.video):
        return jsonify({'error': 'Invalid file type. Only video files are allowed.'}), 400

    stored_filename = unique_upload_filename(file.filename)
    filepath = _upload_path(stored_filename)
    record = None

    try:
        file.save(filepath)
        logger.info(f"Processing video: {file.filename} -> {stored_filename}")

        record = store.create(VideoRecord(
            id=generate_video_id(),
            video_url=url_for('serve_upload', filename=stored_filename, _external=True),
            video_name=file.filename,
            stored_filename=stored_filename
        ))

        future = current_app.processor.submit(record.id, filepath)

        if current_app.processor.background:
            return jsonify(record.to_dict()), 202

        processed = future.result()
        if processed is None or processed.status == ProcessingStatus.FAILED:
            raise RuntimeError(processed.error if processed else "Record disappeared during processing")

        return jsonify(processed.to_dict()), 200

    except Exception as e:
        logger.error(f"Upload error: {str(e)}")
        logger.error(traceback.format_exc())
        remove_file(filepath)
        if record is not None:
            store.delete(record.id)
        return jsonify({'error': 'Failed to process video upload'}), 500


# =============================================================================
# UPDATE / DELETE
# =============================================================================

@videos_bp.route('/<video_id>', methods=['PATCH'])
def update_video(video_id):
    """Apply a partial update of the editable fields."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({'error': 'Request body must be a JSON object'}), 400

    updates = {key: data[key] for key in EDITABLE_FIELDS if key in data}

    try:
        updated = current_app.video_store.update(video_id, updates)
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        logger.warning(f"Rejected update for video {video_id}: {e}")
        return jsonify({'error': 'Invalid video update'}), 400

    if updated is None:
        return _not_found()
    return jsonify(updated.to_dict()), 200


@videos_bp.route('/<video_id>', methods=['DELETE'])
def delete_video(video_id):
    """Delete a video record and its uploaded file."""
    store = current_app.video_store
    video = store.get(video_id)

    if video is None or not store.delete(video_id):
        return _not_found()

    if video.stored_filename:
        remove_file(_upload_path(video.stored_filename))

    return jsonify({'success': True}), 200


# =============================================================================
# TIMELINE AND TRANSCRIPT
# =============================================================================

@videos_bp.route('/<video_id>/timeline', methods=['POST'])
def rebuild_timeline(video_id):
    """
    Rebuild the timeline from the stored transcript.

    Request JSON (optional):
        {
            "policy": "duration" | "analysis",   # default: configured policy
            "analysis": {...}                    # replaces the stored analysis
        }
    """
    store = current_app.video_store
    video = store.get(video_id)
    if video is None:
        return _not_found()

    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify({'error': 'Request body must be a JSON object'}), 400

    try:
        builder = TimelineBuilder(config=current_app.app_config.timeline, policy=data.get('policy'))
        analysis = VideoAnalysis.from_dict(data['analysis']) if data.get('analysis') else video.analysis
    except (AttributeError, TypeError, ValueError) as e:
        return jsonify({'error': str(e)}), 400

    segments = builder.build(video.transcript, analysis)

    updates = {'segments': segments}
    if data.get('analysis'):
        updates['analysis'] = analysis
    updated = store.update(video_id, updates)
    if updated is None:
        return _not_found()

    log_pipeline_decision(
        "timeline_rebuilt",
        {
            'policy': builder.policy.name,
            'segment_count': len(segments),
            'analysis_supplied': bool(data.get('analysis')),
        },
        video_id=video_id
    )

    return jsonify(updated.to_dict()), 200


def transcript_download_headers(video_name: str) -> dict:
    """
    Content-Disposition parameters for a transcript download.

    Names that are not ASCII get an ASCII `filename` fallback plus an
    RFC 5987 `filename*` carrying the UTF-8 name.
    """
    download_name = f"transcript-{video_name}.txt"
    try:
        download_name.encode('ascii')
    except UnicodeEncodeError:
        simple = unicodedata.normalize('NFKD', download_name).encode('ascii', 'ignore').decode('ascii')
        quoted = quote(download_name, safe="!#$&+^`|~")
        return {'filename': simple, 'filename*': f"UTF-8''{quoted}"}
    return {'filename': download_name}


@videos_bp.route('/<video_id>/transcript.txt', methods=['GET'])
def export_transcript(video_id):
    """Download the transcript as plain text."""
    video = current_app.video_store.get(video_id)
    if video is None:
        return _not_found()

    response = Response(export_transcript_text(video.transcript), mimetype='text/plain')
    # Headers.set quotes and escapes the parameters
    response.headers.set('Content-Disposition', 'attachment', **transcript_download_headers(video.video_name))
    return response
