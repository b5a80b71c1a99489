"""
Video Store Module
==================
JSON-file persistence for VideoRecord entities.

Each record lives in `<data_dir>/videos/<id>.json` using the camelCase wire
form, so stored files can be served to the player as-is. Writes go through
a temporary file and an atomic rename; a lock serialises access between
request threads and background workers.

Usage:
    from video_insights.storage import VideoStore

    store = VideoStore(config.paths.data)
    record = store.create(VideoRecord(id="", video_url=url, video_name="talk.mp4"))
    store.update(record.id, {"videoName": "Quarterly review"})
"""

import json
import logging
import os
import threading
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .models import BaseModel, VideoRecord, generate_video_id

logger = logging.getLogger(__name__)

# Fields a caller may never overwrite through update()
IMMUTABLE_FIELDS = frozenset(('id',))


def _to_plain(value: Any) -> Any:
    """Convert models (and lists of them) to their dictionary form."""
    if isinstance(value, BaseModel):
        return value.to_dict()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (list, tuple)):
        return [_to_plain(v) for v in value]
    return value


class VideoStore:
    """
    Repository of VideoRecord objects backed by one JSON file per record.
    """

    def __init__(self, data_dir: Union[str, Path]):
        """
        Initialize the store.

        Args:
            data_dir: Base data directory; records go in its `videos` folder
        """
        self.root = Path(data_dir) / "videos"
        self.root.mkdir(parents=True, exist_ok=True)
        self._lock = threading.RLock()

    def _path(self, video_id: str) -> Path:
        return self.root / f"{video_id}.json"

    def _read(self, path: Path) -> Optional[VideoRecord]:
        try:
            with open(path, 'r', encoding='utf-8') as f:
                return VideoRecord.from_dict(json.load(f))
        except FileNotFoundError:
            return None

    def _write(self, record: VideoRecord) -> None:
        path = self._path(record.id)
        tmp_path = path.with_suffix('.json.tmp')
        with open(tmp_path, 'w', encoding='utf-8') as f:
            json.dump(record.to_dict(), f, indent=2)
        os.replace(tmp_path, path)

    # =========================================================================
    # CRUD OPERATIONS
    # =========================================================================

    def list(self) -> List[VideoRecord]:
        """All stored records, oldest upload first."""
        with self._lock:
            records = []
            for path in self.root.glob("*.json"):
                try:
                    record = self._read(path)
                except (json.JSONDecodeError, KeyError, ValueError) as e:
                    logger.warning(f"Skipping unreadable record {path.name}: {e}")
                    continue
                if record is not None:
                    records.append(record)
        return sorted(records, key=lambda r: r.uploaded_at)

    def get(self, video_id: str) -> Optional[VideoRecord]:
        """Record by id, or None."""
        with self._lock:
            return self._read(self._path(video_id))

    def create(self, record: VideoRecord) -> VideoRecord:
        """
        Persist a new record.

        An empty id is replaced by a generated one.
        """
        with self._lock:
            if not record.id:
                record.id = generate_video_id()
            self._write(record)
        logger.info(f"Created video record {record.id} ({record.video_name})")
        return record

    def update(self, video_id: str, updates: Dict[str, Any]) -> Optional[VideoRecord]:
        """
        Apply a partial update.

        Args:
            video_id: Record to update
            updates: Fields to replace, by wire name or attribute name. Model
                values are accepted as objects or dictionaries.

        Returns:
            The updated record, or None if no record has this id
        """
        with self._lock:
            record = self._read(self._path(video_id))
            if record is None:
                return None

            merged = VideoRecord._unalias(record.to_dict())
            changes = {
                name: _to_plain(value)
                for name, value in VideoRecord._unalias(updates).items()
                if name not in IMMUTABLE_FIELDS
            }
            merged.update(changes)

            updated = VideoRecord.from_dict(merged)
            self._write(updated)

        logger.debug(f"Updated video record {video_id}: {sorted(changes)}")
        return updated

    def delete(self, video_id: str) -> bool:
        """Delete a record. Returns False if it did not exist."""
        with self._lock:
            path = self._path(video_id)
            if not path.exists():
                return False
            path.unlink()
        logger.info(f"Deleted video record {video_id}")
        return True
