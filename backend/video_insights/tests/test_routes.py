"""
Route Tests
===========
Verifies the HTTP API with the Flask test client.

The pipeline is replaced with a mock so uploads need neither moviepy,
a Whisper model nor a Gemini key.
"""

import io
import os
import sys
import shutil
import tempfile
from pathlib import Path
from unittest.mock import Mock

from werkzeug.http import parse_options_header

# Add parent to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(__file__))))

from video_insights.app import create_app
from video_insights.config import AppConfig, VideoConfig
from video_insights.models import (
    ProcessingStatus,
    TopicRef,
    TranscriptLine,
    VideoAnalysis,
    VideoRecord,
)
from video_insights.pipeline import BackgroundProcessor, ProcessingResult
from video_insights.storage import VideoStore
from video_insights.utils.video_utils import allowed_file, remove_file, unique_upload_filename


# =============================================================================
# HELPERS
# =============================================================================

def create_mock_transcript():
    return [
        TranscriptLine(speaker="SPEAKER_00", text="Welcome to the quarterly budget review.", start=0.0, end=65.0),
        TranscriptLine(speaker="SPEAKER_01", text="Hiring plans come next.", start=65.0, end=130.0),
    ]


def create_mock_pipeline():
    pipeline = Mock()
    pipeline.run.return_value = ProcessingResult(
        video_id="ignored",
        duration=130,
        transcript=create_mock_transcript(),
        analysis=VideoAnalysis(summary="Review.", main_topics=[TopicRef(name="Budget")])
    )
    return pipeline


def create_test_app(base_dir, pipeline=None, background=False):
    config = AppConfig()
    config.paths.base_dir = Path(base_dir)
    config.gemini.api_key = None
    config.processing.background = background
    config.logging.log_to_file = False

    store = VideoStore(config.paths.data)
    processor = BackgroundProcessor(store, config, pipeline=pipeline or create_mock_pipeline())
    app = create_app(config, store=store, processor=processor)
    app.config['TESTING'] = True
    return app


def seed_video(app, video_id="vid-1", transcript=None, video_name="meeting.mp4"):
    stored_filename = "video-1-1.mp4"
    with open(os.path.join(app.app_config.paths.uploads, stored_filename), 'wb') as f:
        f.write(b"fake video content")

    return app.video_store.create(VideoRecord(
        id=video_id,
        video_url=f"http://localhost/uploads/{stored_filename}",
        video_name=video_name,
        duration=130,
        transcript=create_mock_transcript() if transcript is None else transcript,
        status=ProcessingStatus.COMPLETED,
        stored_filename=stored_filename
    ))


def upload(client, filename="meeting.mp4", content=b"fake video content"):
    return client.post(
        '/api/videos/upload',
        data={'video': (io.BytesIO(content), filename)},
        content_type='multipart/form-data'
    )


# =============================================================================
# UPLOAD HELPERS
# =============================================================================

def test_allowed_file():
    """Test extension and MIME type checks."""
    config = VideoConfig()

    assert allowed_file("clip.MP4", config=config)
    assert allowed_file("clip.mkv", config=config)
    assert allowed_file("clip", "video/quicktime", config)
    assert not allowed_file("notes.txt", "text/plain", config)
    assert not allowed_file("clip", None, config)

    print("[PASS] allowed_file test passed")


def test_unique_upload_filename():
    """Test stored filename generation."""
    first = unique_upload_filename("My Meeting.MOV")
    second = unique_upload_filename("My Meeting.MOV")

    assert first.startswith("video-")
    assert first.endswith(".mov")
    assert first != second
    assert "/" not in unique_upload_filename("../../etc/passwd.mp4")

    print("[PASS] unique_upload_filename test passed")


def test_remove_file():
    """Test removing existing and missing files."""
    tmpdir = tempfile.mkdtemp()
    try:
        path = os.path.join(tmpdir, "audio.mp3")
        with open(path, 'wb') as f:
            f.write(b"audio")

        assert remove_file(path) is True
        assert not os.path.exists(path)
        assert remove_file(path) is False
        assert remove_file(None) is False
    finally:
        shutil.rmtree(tmpdir)

    print("[PASS] remove_file test passed")


# =============================================================================
# CORE ROUTES
# =============================================================================

def test_health_check():
    """Test the health endpoint."""
    tmpdir = tempfile.mkdtemp()
    try:
        client = create_test_app(tmpdir).test_client()

        response = client.get('/health')

        assert response.status_code == 200
        data = response.get_json()
        assert data['status'] == 'healthy'
        assert data['timeline_policy'] == 'duration'
        assert data['version']
    finally:
        shutil.rmtree(tmpdir)

    print("[PASS] Health check test passed")


def test_unknown_route():
    """Test the JSON 404 handler."""
    tmpdir = tempfile.mkdtemp()
    try:
        client = create_test_app(tmpdir).test_client()

        response = client.get('/api/unknown')

        assert response.status_code == 404
        assert response.get_json() == {'error': 'Resource not found'}
    finally:
        shutil.rmtree(tmpdir)

    print("[PASS] Unknown route test passed")


# =============================================================================
# UPLOAD
# =============================================================================

def test_upload_validation():
    """Test rejected uploads."""
    tmpdir = tempfile.mkdtemp()
    try:
        app = create_test_app(tmpdir)
        client = app.test_client()

        response = client.post('/api/videos/upload', data={}, content_type='multipart/form-data')
        assert response.status_code == 400
        assert response.get_json()['error'] == 'No video file provided'

        response = upload(client, filename="")
        assert response.status_code == 400
        assert response.get_json()['error'] == 'No selected file'

        response = upload(client, filename="notes.txt")
        assert response.status_code == 400
        assert response.get_json()['error'] == 'Invalid file type. Only video files are allowed.'

        assert app.video_store.list() == []
        assert os.listdir(app.app_config.paths.uploads) == []
    finally:
        shutil.rmtree(tmpdir)

    print("[PASS] Upload validation test passed")


def test_upload_too_large():
    """Test the upload size limit."""
    tmpdir = tempfile.mkdtemp()
    try:
        app = create_test_app(tmpdir)
        app.config['MAX_CONTENT_LENGTH'] = 64
        client = app.test_client()

        response = upload(client, content=b"x" * 1024)

        assert response.status_code == 413
        assert 'too large' in response.get_json()['error']
    finally:
        shutil.rmtree(tmpdir)

    print("[PASS] Upload size limit test passed")


def test_upload_inline_success():
    """Test an upload processed before the response."""
    tmpdir = tempfile.mkdtemp()
    try:
        pipeline = create_mock_pipeline()
        app = create_test_app(tmpdir, pipeline=pipeline)
        client = app.test_client()

        response = upload(client)

        assert response.status_code == 200
        data = response.get_json()
        assert data['videoName'] == 'meeting.mp4'
        assert data['status'] == 'completed'
        assert data['duration'] == 130
        assert len(data['transcript']) == 2
        assert data['analysis']['mainTopics'][0]['name'] == 'Budget'
        assert data['videoUrl'].startswith('http://localhost/uploads/video-')

        stored = os.listdir(app.app_config.paths.uploads)
        assert stored == [data['storedFilename']]
        video_path, = pipeline.run.call_args[0]
        assert video_path == os.path.join(app.app_config.paths.uploads, data['storedFilename'])
        assert pipeline.run.call_args[1] == {'video_id': data['id']}

        listed = client.get('/api/videos').get_json()
        assert [v['id'] for v in listed] == [data['id']]
    finally:
        shutil.rmtree(tmpdir)

    print("[PASS] Inline upload test passed")


def test_upload_inline_failure_cleans_up():
    """Test that a failed inline run removes the file and record."""
    tmpdir = tempfile.mkdtemp()
    try:
        pipeline = Mock()
        pipeline.run.side_effect = RuntimeError("Pipeline failed at stage: transcription")
        app = create_test_app(tmpdir, pipeline=pipeline)
        client = app.test_client()

        response = upload(client)

        assert response.status_code == 500
        assert response.get_json() == {'error': 'Failed to process video upload'}
        assert os.listdir(app.app_config.paths.uploads) == []
        assert app.video_store.list() == []
    finally:
        shutil.rmtree(tmpdir)

    print("[PASS] Inline upload failure test passed")


def test_upload_background_returns_pending():
    """Test that background uploads answer with the pending record."""
    tmpdir = tempfile.mkdtemp()
    app = None
    try:
        app = create_test_app(tmpdir, background=True)
        client = app.test_client()

        response = upload(client)

        assert response.status_code == 202
        data = response.get_json()
        assert data['status'] == 'pending'

        app.processor.shutdown(wait=True)
        assert app.video_store.get(data['id']).status == ProcessingStatus.COMPLETED
    finally:
        if app is not None:
            app.processor.shutdown()
        shutil.rmtree(tmpdir)

    print("[PASS] Background upload test passed")


# =============================================================================
# READ / UPDATE / DELETE
# =============================================================================

def test_get_video():
    """Test fetching one video."""
    tmpdir = tempfile.mkdtemp()
    try:
        app = create_test_app(tmpdir)
        seed_video(app)
        client = app.test_client()

        response = client.get('/api/videos/vid-1')
        assert response.status_code == 200
        assert response.get_json()['videoName'] == 'meeting.mp4'

        response = client.get('/api/videos/missing')
        assert response.status_code == 404
        assert response.get_json() == {'error': 'Video not found'}
    finally:
        shutil.rmtree(tmpdir)

    print("[PASS] Get video test passed")


def test_patch_video():
    """Test partial updates of editable fields."""
    tmpdir = tempfile.mkdtemp()
    try:
        app = create_test_app(tmpdir)
        seed_video(app)
        client = app.test_client()

        response = client.patch('/api/videos/vid-1', json={
            'videoName': 'Renamed.mp4',
            'segments': [{'topic': 'Edited', 'description': 'Manual', 'startTime': 0,
                          'endTime': 130, 'keywords': [], 'color': '#E8F4F8'}],
            'id': 'hijacked',
            'status': 'failed',
        })

        assert response.status_code == 200
        data = response.get_json()
        assert data['id'] == 'vid-1'
        assert data['videoName'] == 'Renamed.mp4'
        assert data['segments'][0]['topic'] == 'Edited'
        assert data['status'] == 'completed'
        assert app.video_store.get('vid-1').video_name == 'Renamed.mp4'
    finally:
        shutil.rmtree(tmpdir)

    print("[PASS] Patch video test passed")


def test_patch_video_errors():
    """Test rejected and unknown updates."""
    tmpdir = tempfile.mkdtemp()
    try:
        app = create_test_app(tmpdir)
        seed_video(app)
        client = app.test_client()

        response = client.patch('/api/videos/vid-1', json=['not', 'an', 'object'])
        assert response.status_code == 400

        response = client.patch('/api/videos/vid-1', json={'segments': [{'topic': 'No times'}]})
        assert response.status_code == 400
        assert response.get_json() == {'error': 'Invalid video update'}

        response = client.patch('/api/videos/missing', json={'videoName': 'x.mp4'})
        assert response.status_code == 404
    finally:
        shutil.rmtree(tmpdir)

    print("[PASS] Patch error test passed")


def test_delete_video():
    """Test deleting a video and its upload."""
    tmpdir = tempfile.mkdtemp()
    try:
        app = create_test_app(tmpdir)
        seed_video(app)
        client = app.test_client()
        upload_path = os.path.join(app.app_config.paths.uploads, "video-1-1.mp4")

        response = client.delete('/api/videos/vid-1')

        assert response.status_code == 200
        assert response.get_json() == {'success': True}
        assert not os.path.exists(upload_path)
        assert client.get('/api/videos/vid-1').status_code == 404
        assert client.delete('/api/videos/vid-1').status_code == 404
    finally:
        shutil.rmtree(tmpdir)

    print("[PASS] Delete video test passed")


# =============================================================================
# TIMELINE AND TRANSCRIPT
# =============================================================================

def test_rebuild_timeline_default_policy():
    """Test rebuilding the timeline with the configured policy."""
    tmpdir = tempfile.mkdtemp()
    try:
        app = create_test_app(tmpdir)
        seed_video(app)
        client = app.test_client()

        response = client.post('/api/videos/vid-1/timeline')

        assert response.status_code == 200
        segments = response.get_json()['segments']
        # 130s with a 120s minimum segment length gives ceil(130 / 120) = 2
        assert len(segments) == 2
        assert segments[0]['startTime'] == 0
        assert segments[-1]['endTime'] == 130
        assert len(app.video_store.get('vid-1').segments) == 2
    finally:
        shutil.rmtree(tmpdir)

    print("[PASS] Timeline rebuild test passed")


def test_rebuild_timeline_with_analysis():
    """Test the analysis policy with a supplied analysis."""
    tmpdir = tempfile.mkdtemp()
    try:
        app = create_test_app(tmpdir)
        seed_video(app)
        client = app.test_client()

        response = client.post('/api/videos/vid-1/timeline', json={
            'policy': 'analysis',
            'analysis': {
                'summary': 'Client summary',
                'mainTopics': [{'name': 'Budget'}, {'name': 'Hiring'}, {'name': 'Wrap-up'}],
            },
        })

        assert response.status_code == 200
        data = response.get_json()
        assert [s['topic'] for s in data['segments']] == ['Budget', 'Hiring', 'Wrap-up']
        assert data['analysis']['summary'] == 'Client summary'
        assert app.video_store.get('vid-1').analysis.summary == 'Client summary'
    finally:
        shutil.rmtree(tmpdir)

    print("[PASS] Timeline rebuild with analysis test passed")


def test_rebuild_timeline_errors():
    """Test unknown policies and videos."""
    tmpdir = tempfile.mkdtemp()
    try:
        app = create_test_app(tmpdir)
        seed_video(app)
        client = app.test_client()

        response = client.post('/api/videos/vid-1/timeline', json={'policy': 'chapters'})
        assert response.status_code == 400
        assert 'Unknown timeline policy' in response.get_json()['error']

        response = client.post('/api/videos/missing/timeline', json={})
        assert response.status_code == 404
    finally:
        shutil.rmtree(tmpdir)

    print("[PASS] Timeline rebuild error test passed")


def test_export_transcript():
    """Test the plain-text transcript download."""
    tmpdir = tempfile.mkdtemp()
    try:
        app = create_test_app(tmpdir)
        seed_video(app)
        client = app.test_client()

        response = client.get('/api/videos/vid-1/transcript.txt')

        assert response.status_code == 200
        assert response.mimetype == 'text/plain'
        disposition, options = parse_options_header(response.headers['Content-Disposition'])
        assert disposition == 'attachment'
        assert options['filename'] == 'transcript-meeting.mp4.txt'
        assert response.get_data(as_text=True) == (
            "[0:00] SPEAKER_00: Welcome to the quarterly budget review.\n\n"
            "[1:05] SPEAKER_01: Hiring plans come next."
        )

        assert client.get('/api/videos/missing/transcript.txt').status_code == 404
    finally:
        shutil.rmtree(tmpdir)

    print("[PASS] Transcript export test passed")


def test_export_transcript_non_ascii_name():
    """Test the download header for names outside latin-1."""
    tmpdir = tempfile.mkdtemp()
    try:
        app = create_test_app(tmpdir)
        seed_video(app, video_name="会議.mp4")
        client = app.test_client()

        response = client.get('/api/videos/vid-1/transcript.txt')

        assert response.status_code == 200
        header = response.headers['Content-Disposition']
        header.encode('latin-1')
        assert header.startswith('attachment')
        assert "filename*=UTF-8''transcript-%E4%BC%9A%E8%AD%B0.mp4.txt" in header
        assert response.get_data(as_text=True).startswith("[0:00] SPEAKER_00:")
    finally:
        shutil.rmtree(tmpdir)

    print("[PASS] Non-ASCII transcript export test passed")


def test_export_transcript_quoted_name():
    """Test that quotes in the name stay inside the filename parameter."""
    tmpdir = tempfile.mkdtemp()
    try:
        app = create_test_app(tmpdir)
        seed_video(app, video_name='say "hi".mp4')
        client = app.test_client()

        response = client.get('/api/videos/vid-1/transcript.txt')

        disposition, options = parse_options_header(response.headers['Content-Disposition'])
        assert disposition == 'attachment'
        assert options['filename'] == 'transcript-say "hi".mp4.txt'
    finally:
        shutil.rmtree(tmpdir)

    print("[PASS] Quoted transcript export test passed")


def run_all_tests():
    """Run all route tests."""
    print("\n" + "="*60)
    print("ROUTE TESTS")
    print("="*60 + "\n")

    test_allowed_file()
    test_unique_upload_filename()
    test_remove_file()
    test_health_check()
    test_unknown_route()
    test_upload_validation()
    test_upload_too_large()
    test_upload_inline_success()
    test_upload_inline_failure_cleans_up()
    test_upload_background_returns_pending()
    test_get_video()
    test_patch_video()
    test_patch_video_errors()
    test_delete_video()
    test_rebuild_timeline_default_policy()
    test_rebuild_timeline_with_analysis()
    test_rebuild_timeline_errors()
    test_export_transcript()
    test_export_transcript_non_ascii_name()
    test_export_transcript_quoted_name()

    print("\n" + "="*60)
    print("ALL ROUTE TESTS PASSED")
    print("="*60 + "\n")


if __name__ == "__main__":
    run_all_tests()
