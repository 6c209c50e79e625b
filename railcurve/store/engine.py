"""
RAILCURVE - TRACK STORE
=======================

In-memory registry of tracks, each owning a versioned ControlPointSet.

Key Features:
- Mutations serialized by one asyncio.Lock
- Readers get immutable snapshots (points + revision), never the live set
- Every edit bumps the track revision so frame drivers know when to rebuild

Tracks live for the lifetime of the process only; nothing is written to disk.
"""
from __future__ import annotations

import time
import uuid
import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

from railcurve.core.curve import (
    MIN_CONTROL_POINTS,
    ControlPoint,
    ControlPointSet,
    InsufficientControlPoints
)
from railcurve.core.curve.spline import PointLike


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TrackSnapshot:
    """
    Immutable view of a track at one revision.

    Attributes:
        track_id: Track UUID
        name: Display name
        points: Control points at this revision
        revision: Mutation counter of the point set
        created_at: Unix timestamp
        updated_at: Unix timestamp of the last edit
    """
    track_id: str
    name: str
    points: Tuple[ControlPoint, ...]
    revision: int
    created_at: float
    updated_at: float

    def points_json(self) -> List[List[float]]:
        return [[p.x, p.y] for p in self.points]


@dataclass
class _Track:
    track_id: str
    name: str
    points: ControlPointSet
    created_at: float
    updated_at: float

    def snapshot(self) -> TrackSnapshot:
        return TrackSnapshot(
            track_id=self.track_id,
            name=self.name,
            points=self.points.snapshot(),
            revision=self.points.revision,
            created_at=self.created_at,
            updated_at=self.updated_at
        )


class TrackStore:
    """
    Holds every live track.

    Usage:
        store = await get_store()
        track = await store.create_track()
        track = await store.move_point(track.track_id, 1, 210, 360)
        track.revision  # -> 1
    """

    def __init__(self, default_points: Optional[Sequence[PointLike]] = None):
        """
        Args:
            default_points: Points used when a track is created without any
        """
        self.default_points: List[PointLike] = list(default_points or [])
        self._tracks: Dict[str, _Track] = {}
        self._lock = asyncio.Lock()

    def _require(self, track_id: str) -> _Track:
        track = self._tracks.get(track_id)
        if track is None:
            raise KeyError(track_id)
        return track

    # ========================================================================
    # TRACK LIFECYCLE
    # ========================================================================

    async def create_track(
        self,
        points: Optional[Sequence[PointLike]] = None,
        name: Optional[str] = None
    ) -> TrackSnapshot:
        """
        Register a new track.

        Raises:
            InsufficientControlPoints: If fewer than 3 points end up on the track
        """
        initial = list(points) if points else list(self.default_points)
        if len(initial) < MIN_CONTROL_POINTS:
            raise InsufficientControlPoints(len(initial))

        now = time.time()
        track_id = str(uuid.uuid4())
        track = _Track(
            track_id=track_id,
            name=name or f"track-{track_id[:8]}",
            points=ControlPointSet(initial),
            created_at=now,
            updated_at=now
        )

        async with self._lock:
            self._tracks[track_id] = track

        logger.info("[TrackStore] Created %s with %d points", track_id, len(initial))
        return track.snapshot()

    async def get_track(self, track_id: str) -> Optional[TrackSnapshot]:
        track = self._tracks.get(track_id)
        return track.snapshot() if track else None

    async def list_tracks(self) -> List[TrackSnapshot]:
        tracks = sorted(self._tracks.values(), key=lambda t: t.created_at)
        return [t.snapshot() for t in tracks]

    async def delete_track(self, track_id: str) -> bool:
        async with self._lock:
            removed = self._tracks.pop(track_id, None)

        if removed:
            logger.info("[TrackStore] Deleted %s", track_id)
        return removed is not None

    # ========================================================================
    # POINT EDITS (drag collaborator)
    # ========================================================================

    async def replace_points(self, track_id: str, points: Sequence[PointLike]) -> TrackSnapshot:
        """
        Replace every control point.

        Raises:
            KeyError: Unknown track
            InsufficientControlPoints: Fewer than 3 points
        """
        if len(points) < MIN_CONTROL_POINTS:
            raise InsufficientControlPoints(len(points))

        async with self._lock:
            track = self._require(track_id)
            track.points.replace(points)
            track.updated_at = time.time()
            return track.snapshot()

    async def move_point(self, track_id: str, index: int, x: float, y: float) -> TrackSnapshot:
        """Move point `index` (wraps cyclically) to (x, y)."""
        async with self._lock:
            track = self._require(track_id)
            track.points.move(index, x, y)
            track.updated_at = time.time()
            return track.snapshot()

    async def insert_point(
        self,
        track_id: str,
        x: float,
        y: float,
        index: Optional[int] = None
    ) -> TrackSnapshot:
        """Insert before `index` (cyclic), or append when index is None."""
        async with self._lock:
            track = self._require(track_id)
            position = len(track.points) if index is None else index
            track.points.insert(position, (x, y))
            track.updated_at = time.time()
            return track.snapshot()

    async def remove_point(self, track_id: str, index: int) -> TrackSnapshot:
        """
        Raises:
            KeyError: Unknown track
            InsufficientControlPoints: Track already has only 3 points
        """
        async with self._lock:
            track = self._require(track_id)
            track.points.remove(index)
            track.updated_at = time.time()
            return track.snapshot()

    # ========================================================================
    # UTILITIES
    # ========================================================================

    async def get_stats(self) -> Dict[str, Any]:
        """Track and point counts."""
        tracks = list(self._tracks.values())
        return {
            'tracks': len(tracks),
            'control_points': sum(len(t.points) for t in tracks),
            'revisions': sum(t.points.revision for t in tracks)
        }

    async def clear(self) -> None:
        async with self._lock:
            self._tracks.clear()


# ============================================================================
# SINGLETON INSTANCE (Dependency Injection ready)
# ============================================================================

_store_instance: Optional[TrackStore] = None


async def get_store(default_points: Optional[Sequence[PointLike]] = None) -> TrackStore:
    """
    Get or create the track store (singleton pattern).

    Usage:
        store = await get_store()
        tracks = await store.list_tracks()
    """
    global _store_instance

    if _store_instance is None:
        _store_instance = TrackStore(default_points)
        logger.info("[TrackStore] Initialized")

    return _store_instance


async def close_store() -> None:
    """
    Drop every track.

    Call on application shutdown.
    """
    global _store_instance
    if _store_instance is not None:
        await _store_instance.clear()
    _store_instance = None
    logger.info("[TrackStore] Closed")
