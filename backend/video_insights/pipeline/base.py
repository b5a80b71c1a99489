"""
Pipeline Base Module
====================
Stage contract shared by video ingest, transcription, analysis and
timeline generation.

A stage reads what earlier stages left on the PipelineContext for one
video and writes its own results back. Running a stage always leaves a
StageResult on the context, so the processor can report which step of a
video's run failed and why.

Only transcription is worth caching: it is the slow, deterministic step.
Its output is stored as JSON under the cache directory, keyed by
PipelineContext.get_cache_key().
"""

import json
import logging
import time
from abc import ABC, abstractmethod

from .context import PipelineContext
from ..logging_config import (
    get_pipeline_logger,
    log_stage_start,
    log_stage_complete,
    log_stage_error,
)

logger = logging.getLogger(__name__)


class PipelineStage(ABC):
    """
    One step of processing an uploaded video.

    Concrete stages provide `name`, `description` and `_execute()`.
    A stage that sets `cacheable` also provides `_get_cache_data()` and
    `_restore_from_cache()`; `run()` then consults the transcription cache
    before doing any work.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Key used in stage results, logs and `stage_names` filters."""

    @property
    @abstractmethod
    def description(self) -> str:
        pass

    @property
    def cacheable(self) -> bool:
        return False

    @abstractmethod
    def _execute(self, context: PipelineContext) -> None:
        """Do the stage's work, storing results on `context`. Raise on failure."""

    def _get_output_summary(self, context: PipelineContext) -> str:
        return "completed"

    def _get_cache_data(self, context: PipelineContext) -> dict:
        return {}

    def _restore_from_cache(self, context: PipelineContext, cached_data: dict) -> None:
        pass

    def _load_from_cache(self, context: PipelineContext) -> bool:
        """Fill `context` from a cached run of this stage; False on a miss."""
        if not self.cacheable:
            return False

        cache_path = context.get_cache_path(self.name)
        if not cache_path.exists():
            return False

        try:
            cached_data = json.loads(cache_path.read_text(encoding='utf-8'))
            self._restore_from_cache(context, cached_data)
        except Exception as e:
            # A corrupt entry is a miss; the stage reruns and overwrites it
            logger.warning(f"Ignoring unreadable {self.name} cache {cache_path}: {e}")
            return False

        logger.info(f"Reused cached {self.name} for video {context.video_id}")
        return True

    def _save_to_cache(self, context: PipelineContext) -> None:
        if not self.cacheable:
            return

        try:
            cache_path = context.get_cache_path(self.name)
            cache_path.write_text(
                json.dumps(self._get_cache_data(context), indent=2),
                encoding='utf-8'
            )
        except Exception as e:
            logger.warning(f"Could not write {self.name} cache for video {context.video_id}: {e}")
            return

        logger.info(f"Stored {self.name} cache at {cache_path}")

    def run(self, context: PipelineContext, use_cache: bool = True) -> bool:
        """
        Execute the stage for the video on `context`.

        Exceptions raised by the stage are logged and recorded on the
        context instead of propagating; the caller decides whether a
        failed stage aborts the video's run.

        Args:
            context: Context of the video being processed
            use_cache: Read and write the transcription cache

        Returns:
            True if the stage succeeded (or was served from cache)
        """
        pipeline_logger = get_pipeline_logger()
        log_stage_start(self.name, context.video_id, logger=pipeline_logger)
        started = time.time()

        try:
            if use_cache and self._load_from_cache(context):
                summary = "loaded from cache"
            else:
                self._execute(context)
                if use_cache:
                    self._save_to_cache(context)
                summary = self._get_output_summary(context)
        except Exception as e:
            elapsed = time.time() - started
            logger.exception(f"Stage {self.name} failed for video {context.video_id}: {e}")
            context.record_stage(self.name, success=False, duration=elapsed, error=str(e))
            log_stage_error(self.name, context.video_id, str(e), elapsed, logger=pipeline_logger)
            return False

        elapsed = time.time() - started
        context.record_stage(self.name, success=True, duration=elapsed, summary=summary)
        log_stage_complete(
            self.name, context.video_id, elapsed,
            summary=summary, logger=pipeline_logger
        )
        return True

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}: {self.name}>"


class ConditionalStage(PipelineStage):
    """
    A stage that may be skipped for a video.

    Analysis uses this to pass through when no Gemini key is configured.
    A skip is recorded as a successful stage so the run continues.
    """

    @abstractmethod
    def should_run(self, context: PipelineContext) -> bool:
        pass

    def run(self, context: PipelineContext, use_cache: bool = True) -> bool:
        if self.should_run(context):
            return super().run(context, use_cache)

        logger.info(f"Skipping stage {self.name} for video {context.video_id}")
        context.record_stage(
            self.name,
            success=True,
            duration=0.0,
            summary="skipped (condition not met)"
        )
        return True
