"""
Background Processing Module
============================
Runs the video pipeline for stored records, either inline or on a thread
pool, and writes status and results back to the store.

Record status moves pending -> in_progress -> completed, or -> failed with
the error message.

Usage:
    processor = BackgroundProcessor(store, config)
    future = processor.submit(record.id, video_path)
    ...
    processor.shutdown()
"""

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Optional

from .pipeline import VideoPipeline
from ..config import AppConfig
from ..logging_config import get_pipeline_logger
from ..models import ProcessingStatus, VideoRecord
from ..storage import VideoStore

logger = logging.getLogger(__name__)


class BackgroundProcessor:
    """
    Schedules processing runs and persists their outcome.

    With `processing.background` enabled, runs go to a ThreadPoolExecutor of
    `processing.max_workers` threads; otherwise submit() runs inline and
    returns an already-completed future.
    """

    def __init__(
        self,
        store: VideoStore,
        config: AppConfig,
        pipeline: Optional[VideoPipeline] = None
    ):
        """
        Initialize the processor.

        Args:
            store: Store the records live in
            config: Application configuration
            pipeline: Pipeline to run (default: VideoPipeline(config))
        """
        self.store = store
        self.config = config
        self.pipeline = pipeline or VideoPipeline(config)
        self.background = config.processing.background
        self._executor: Optional[ThreadPoolExecutor] = None

        if self.background:
            self._executor = ThreadPoolExecutor(
                max_workers=config.processing.max_workers,
                thread_name_prefix="video-processing"
            )

    def submit(self, video_id: str, video_path: str) -> Future:
        """
        Schedule processing for a stored record.

        Returns:
            Future resolving to the final VideoRecord (or None if the record
            was deleted while processing)
        """
        if self._executor is not None:
            logger.info(f"Queued video {video_id} for background processing")
            return self._executor.submit(self.process, video_id, video_path)

        future = Future()
        future.set_result(self.process(video_id, video_path))
        return future

    def process(self, video_id: str, video_path: str) -> Optional[VideoRecord]:
        """
        Run the pipeline for one record and store the outcome.

        Failures are stored on the record, not raised.
        """
        run_logger = get_pipeline_logger(video_id)
        self.store.update(video_id, {'status': ProcessingStatus.IN_PROGRESS, 'error': None})

        try:
            result = self.pipeline.run(video_path, video_id=video_id)
        except Exception as e:
            run_logger.error(f"Processing failed for video {video_id}: {e}")
            return self.store.update(video_id, {
                'status': ProcessingStatus.FAILED,
                'error': str(e),
            })

        run_logger.info(
            f"Processing complete for video {video_id}: "
            f"{len(result.transcript)} lines, {len(result.segments)} segments "
            f"in {result.processing_time_seconds:.1f}s"
        )
        return self.store.update(video_id, {
            'duration': result.duration,
            'transcript': result.transcript,
            'segments': result.segments,
            'analysis': result.analysis,
            'status': ProcessingStatus.COMPLETED,
            'error': None,
        })

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting work and optionally wait for running jobs."""
        if self._executor is not None:
            self._executor.shutdown(wait=wait)
            self._executor = None
