"""
Video Insights - Transcript and Timeline Service
=================================================
Main application entry point that configures Flask and registers blueprints.

This module:
- Creates the Flask application factory
- Wires the configuration, video store and background processor
- Registers the video API blueprint
- Defines core routes (/health, file serving) and error handlers

Route Organization:
- /health               -> Health check
- /uploads/<filename>   -> Serve uploaded videos
- /api/videos/*         -> Video operations (upload, list, edit, timeline)
"""

from typing import Optional

from dotenv import load_dotenv
from flask import Flask, jsonify, send_from_directory
from flask_cors import CORS

from .config import AppConfig, load_config
from .logging_config import configure_logging, get_research_logger
from .pipeline import BackgroundProcessor
from .routes.video_routes import videos_bp
from .storage import VideoStore

# Load environment variables
load_dotenv()

__version__ = "1.0.0"


def create_app(
    config: Optional[AppConfig] = None,
    store: Optional[VideoStore] = None,
    processor: Optional[BackgroundProcessor] = None
) -> Flask:
    """
    Application factory function.

    Creates and configures the Flask application with:
    - CORS support
    - Blueprint registration
    - Directory setup
    - File upload limits

    Args:
        config: Configuration to use (default: load_config())
        store: Optional video store (default: JSON store under paths.data)
        processor: Optional processor (default: BackgroundProcessor)

    Returns:
        Configured Flask application instance
    """
    app_config = config or load_config()

    configure_logging(app_config)
    logger = get_research_logger("app", log_to_file=False)

    app = Flask(__name__)
    CORS(app, origins=app_config.flask.cors_origins)

    # ==========================================================================
    # CONFIGURE DIRECTORIES, LIMITS AND COLLABORATORS
    # ==========================================================================

    app_config.paths.ensure_directories()

    app.config['MAX_CONTENT_LENGTH'] = app_config.video.max_file_size_bytes
    app.config['UPLOAD_FOLDER'] = app_config.paths.uploads
    app.config['SECRET_KEY'] = app_config.flask.secret_key

    app.app_config = app_config
    app.video_store = store or VideoStore(app_config.paths.data)
    app.processor = processor or BackgroundProcessor(app.video_store, app_config)

    # ==========================================================================
    # REGISTER BLUEPRINTS
    # ==========================================================================

    app.register_blueprint(videos_bp, url_prefix='/api/videos')

    logger.info(
        "Initialized Flask app",
        extra={
            'whisper_model': app_config.whisper.model_size,
            'timeline_policy': app_config.timeline.policy,
            'analysis_enabled': app_config.gemini.is_available,
            'background': app_config.processing.background
        }
    )

    # ==========================================================================
    # CORE ROUTES
    # ==========================================================================

    @app.route('/health', methods=['GET'])
    def health_check():
        """Health check endpoint for monitoring."""
        return {
            'status': 'healthy',
            'timeline_policy': app_config.timeline.policy,
            'version': __version__
        }, 200

    @app.route('/uploads/<filename>')
    def serve_upload(filename):
        """Serve uploaded video files."""
        return send_from_directory(app.config['UPLOAD_FOLDER'], filename)

    # ==========================================================================
    # ERROR HANDLERS
    # ==========================================================================

    @app.errorhandler(413)
    def request_entity_too_large(error):
        """Handle file too large errors."""
        return jsonify({
            'error': f'File is too large. Maximum size is {app_config.video.max_file_size_bytes / (1024*1024):.0f}MB.'
        }), 413

    @app.errorhandler(404)
    def not_found(error):
        """Handle 404 errors."""
        return jsonify({'error': 'Resource not found'}), 404

    @app.errorhandler(500)
    def internal_error(error):
        """Handle 500 errors."""
        logger.error(f"Internal server error: {error}")
        return jsonify({'error': 'Internal server error'}), 500

    return app


def main() -> None:
    """Run the development server."""
    config = load_config()
    app = create_app(config)
    app.run(
        debug=config.flask.debug,
        host=config.flask.host,
        port=config.flask.port
    )


if __name__ == '__main__':
    main()
