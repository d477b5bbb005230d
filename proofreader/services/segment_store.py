"""
Segment Store
=============
Ordered, persisted collection of review segments.
"""
import json
import sqlite3
import threading
from dataclasses import fields, replace
from typing import Iterable, List, Optional, Sequence

from proofreader.config.constants import (
    DEFAULT_SEGMENTS,
    LEGACY_SEGMENTS_STORAGE_KEYS,
    SEGMENTS_STORAGE_KEY,
    ReviewStatus
)
from proofreader.database.repositories import KeyValueRepository
from proofreader.models.schemas import ReviewStats
from proofreader.models.segment import Segment, generate_segment_id
from proofreader.utils.logging import get_logger

_SEGMENT_FIELDS = frozenset(f.name for f in fields(Segment)) - {'id'}


def default_segments() -> List[Segment]:
    """Fresh copies of the built-in seed segments."""
    return [Segment.from_dict(data) for data in DEFAULT_SEGMENTS]


class SegmentStore:
    """
    In-memory reducer over the segment list, mirrored to storage.

    Segments are replaced on update, never mutated in place, so every value
    handed out by get() or all() is a stable snapshot. All operations are
    total: a missing id is a no-op and storage errors are logged.
    """

    def __init__(
        self,
        repository: KeyValueRepository,
        key: str = SEGMENTS_STORAGE_KEY,
        legacy_keys: Sequence[str] = LEGACY_SEGMENTS_STORAGE_KEYS
    ):
        self.repository = repository
        self.key = key
        self.legacy_keys = tuple(legacy_keys)
        self.logger = get_logger().storage_logger
        self._segments: List[Segment] = []
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Loading and persistence
    # ------------------------------------------------------------------

    def load(self) -> List[Segment]:
        """
        Load the collection from storage.

        Reads the current key; falls back once to a legacy key (writing the
        migrated data under the current key) and finally to the seed data.
        """
        raw = self._read(self.key)
        source_key = self.key
        if raw is None:
            for legacy_key in self.legacy_keys:
                raw = self._read(legacy_key)
                if raw is not None:
                    source_key = legacy_key
                    break

        segments = None
        if raw is not None:
            try:
                segments = self._parse(raw)
            except (ValueError, TypeError) as e:
                self.logger.error(f"Failed to load project state from '{source_key}': {e}")

        with self._lock:
            if segments is None:
                self._segments = self._unique(default_segments())
            else:
                self._segments = self._unique(segments)
                if source_key != self.key:
                    self.logger.info(f"Migrated {len(segments)} segments from '{source_key}'")
                    self._persist()
            return list(self._segments)

    def _read(self, key: str) -> Optional[str]:
        try:
            return self.repository.get(key)
        except sqlite3.Error as e:
            self.logger.error(f"Failed to read '{key}': {e}")
            return None

    @staticmethod
    def _parse(raw: str) -> List[Segment]:
        data = json.loads(raw)
        if not isinstance(data, list):
            raise ValueError("stored project state is not a list")
        return [Segment.from_dict(item) for item in data]

    def _persist(self) -> None:
        """Write the whole collection; caller holds the lock."""
        payload = json.dumps(
            [segment.to_dict(include_transient=False) for segment in self._segments],
            ensure_ascii=False
        )
        try:
            self.repository.set(self.key, payload)
        except sqlite3.Error as e:
            self.logger.error(f"Failed to persist project state: {e}")

    def _unique(self, segments: Iterable[Segment]) -> List[Segment]:
        seen = set()
        result = []
        for segment in segments:
            if segment.id in seen:
                new_id = self._fresh_id(seen)
                self.logger.warning(f"Duplicate segment id '{segment.id}' reassigned to '{new_id}'")
                segment = replace(segment, id=new_id)
            seen.add(segment.id)
            result.append(segment)
        return result

    @staticmethod
    def _fresh_id(taken) -> str:
        while True:
            candidate = generate_segment_id()
            if candidate not in taken:
                return candidate

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def all(self) -> List[Segment]:
        with self._lock:
            return list(self._segments)

    def get(self, segment_id: str) -> Optional[Segment]:
        with self._lock:
            for segment in self._segments:
                if segment.id == segment_id:
                    return segment
            return None

    def __len__(self) -> int:
        with self._lock:
            return len(self._segments)

    def stats(self) -> ReviewStats:
        with self._lock:
            statuses = [segment.status for segment in self._segments]
        return ReviewStats(
            total=len(statuses),
            approved=statuses.count(ReviewStatus.APPROVED),
            needs_work=statuses.count(ReviewStatus.NEEDS_WORK),
            reviewed=statuses.count(ReviewStatus.REVIEWED),
        )

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def update(self, segment_id: str, **changes) -> Optional[Segment]:
        """Merge changes into the segment with this id. No-op if absent."""
        unknown = set(changes) - _SEGMENT_FIELDS
        if unknown:
            self.logger.warning(f"Ignoring unknown segment fields: {', '.join(sorted(unknown))}")
            changes = {k: v for k, v in changes.items() if k in _SEGMENT_FIELDS}

        with self._lock:
            for index, segment in enumerate(self._segments):
                if segment.id == segment_id:
                    updated = replace(segment, **changes)
                    self._segments[index] = updated
                    self._persist()
                    return updated
            return None

    def append(self, segment: Segment = None) -> Segment:
        """Append a segment (a blank one by default) to the end."""
        segment = segment or Segment()
        with self._lock:
            taken = {s.id for s in self._segments}
            if segment.id in taken:
                segment = replace(segment, id=self._fresh_id(taken))
            self._segments.append(segment)
            self._persist()
        self.logger.info(f"Segment {segment.id} added")
        return segment

    def remove(self, segment_id: str) -> bool:
        """Delete by id. Returns True if a segment was removed."""
        with self._lock:
            for index, segment in enumerate(self._segments):
                if segment.id == segment_id:
                    self._segments.pop(index)
                    self._persist()
                    self.logger.info(f"Segment {segment_id} deleted")
                    return True
            return False

    def replace_all(self, segments: Iterable[Segment]) -> List[Segment]:
        """Replace the whole collection."""
        with self._lock:
            self._segments = self._unique(segments)
            self._persist()
            return list(self._segments)

    def clear(self) -> None:
        """Remove every segment."""
        self.replace_all([])
        self.logger.info("All segments cleared")
