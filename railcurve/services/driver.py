"""
RAILCURVE - FRAME DRIVER SERVICE
================================

Per-frame driver sitting between the track store and the curve engine.

The engine caches nothing. This service owns the rebuild policy:
- one (evaluator, arc-length table) entry per track, keyed by the track
  revision and the sampling step Δ
- an edit bumps the revision, so the next frame rebuilds; unchanged tracks
  reuse the table
- a frame that hits a degenerate tangent reuses the previous valid frame
  (same object count) or is skipped; it never raises to the renderer
"""
from __future__ import annotations

import time
import logging
from typing import Any, Dict, List, Optional, Tuple
from dataclasses import dataclass, field

from railcurve.core.curve import (
    ArcLengthTable,
    DegenerateTangent,
    InsufficientControlPoints,
    ObjectPlacer,
    ParameterOutOfRange,
    Placement,
    SplineEvaluator,
    SpeedMode,
    TrackGeometry,
    BOUNDARY_EPSILON,
    DEFAULT_LENGTH_SPACING,
    DEFAULT_PARAMETER_SPACING,
    DEFAULT_SAMPLE_STEP
)
from railcurve.core.curve.spline import TANGENT_EPSILON
from railcurve.store.engine import TrackSnapshot


logger = logging.getLogger(__name__)


# ============================================================================
# RESULTS
# ============================================================================

@dataclass(frozen=True)
class FrameResult:
    """
    Outcome of one animation frame.

    Attributes:
        track_id: Track the frame was computed for
        revision: Point-set revision the frame reflects
        drive: Drive parameter supplied by the caller
        mode: Speed mode used
        placements: Leader first; empty when skipped
        total_length: Tabulated track length (None if the curve could not be built)
        skipped: Nothing valid to draw this frame
        reused: Placements are the previous valid frame's
        error: Name of the curve error that interrupted the pass
        cache_hit: Arc-length table reused from an earlier frame
        latency_ms: Time spent computing the frame
    """
    track_id: str
    revision: int
    drive: float
    mode: SpeedMode
    placements: List[Placement] = field(default_factory=list)
    total_length: Optional[float] = None
    skipped: bool = False
    reused: bool = False
    error: Optional[str] = None
    cache_hit: bool = False
    latency_ms: float = 0.0


@dataclass(frozen=True)
class _CurveEntry:
    revision: int
    step: float
    evaluator: SplineEvaluator
    table: ArcLengthTable


# ============================================================================
# DRIVER
# ============================================================================

class FrameDriver:
    """
    Builds frames for tracks, rebuilding curve data only when a track changes.

    Usage:
        driver = FrameDriver(sample_step=0.1)
        frame = driver.render(snapshot, drive=1.5, count=3)
        if not frame.skipped:
            draw(frame.placements)
    """

    def __init__(
        self,
        sample_step: float = DEFAULT_SAMPLE_STEP,
        boundary_epsilon: float = BOUNDARY_EPSILON,
        tangent_epsilon: float = TANGENT_EPSILON
    ):
        self.sample_step = sample_step
        self.boundary_epsilon = boundary_epsilon
        self.tangent_epsilon = tangent_epsilon

        self._curves: Dict[str, _CurveEntry] = {}
        self._last_frames: Dict[str, List[Placement]] = {}

        self._stats = {
            'frames': 0,
            'skipped_frames': 0,
            'reused_frames': 0,
            'table_builds': 0,
            'table_hits': 0
        }

    # ── Curve cache ──────────────────────────────────────────────────────────

    def curve(
        self,
        snapshot: TrackSnapshot,
        step: Optional[float] = None
    ) -> Tuple[SplineEvaluator, ArcLengthTable, bool]:
        """
        Evaluator and table for the snapshot's revision.

        Returns:
            (evaluator, table, cache_hit)

        Raises:
            InsufficientControlPoints: If the snapshot has fewer than 3 points
        """
        step = step or self.sample_step
        entry = self._curves.get(snapshot.track_id)

        if entry is not None and entry.revision == snapshot.revision and entry.step == step:
            self._stats['table_hits'] += 1
            return entry.evaluator, entry.table, True

        evaluator = SplineEvaluator(snapshot.points, tangent_epsilon=self.tangent_epsilon)
        table = ArcLengthTable.build(evaluator, step)
        self._curves[snapshot.track_id] = _CurveEntry(snapshot.revision, step, evaluator, table)
        self._stats['table_builds'] += 1

        logger.debug(
            "[FrameDriver] Rebuilt table for %s rev %d: %d rows, L=%.2f",
            snapshot.track_id, snapshot.revision, len(table), table.total_length
        )
        return evaluator, table, False

    def invalidate(self, track_id: str) -> None:
        """Forget cached curve data and the last frame of a track."""
        self._curves.pop(track_id, None)
        self._last_frames.pop(track_id, None)

    # ── Frames ───────────────────────────────────────────────────────────────

    def render(
        self,
        snapshot: TrackSnapshot,
        drive: float,
        count: int = 1,
        mode: SpeedMode = SpeedMode.ARC_LENGTH,
        parameter_spacing: float = DEFAULT_PARAMETER_SPACING,
        length_spacing: float = DEFAULT_LENGTH_SPACING,
        step: Optional[float] = None
    ) -> FrameResult:
        """
        Place the train and its cars for one frame.

        Curve errors never escape: the frame comes back skipped, or with the
        previous valid placements when only the heading went undefined.

        Raises:
            ValueError: If count < 1
        """
        if count < 1:
            raise ValueError(f"Object count must be >= 1, got {count}")

        start_time = time.time()
        mode = SpeedMode(mode)
        self._stats['frames'] += 1

        total_length = None
        cache_hit = False

        try:
            evaluator, table, cache_hit = self.curve(snapshot, step)
            total_length = table.total_length

            placer = ObjectPlacer(
                evaluator,
                table,
                mode=mode,
                parameter_spacing=parameter_spacing,
                length_spacing=length_spacing,
                epsilon=self.boundary_epsilon
            )
            placements = placer.place(drive, count)

        except DegenerateTangent as e:
            previous = self._last_frames.get(snapshot.track_id)
            reusable = previous is not None and len(previous) == count
            logger.warning(
                "[FrameDriver] %s rev %d: %s (%s)",
                snapshot.track_id, snapshot.revision, e,
                "reusing previous frame" if reusable else "frame skipped"
            )
            if reusable:
                self._stats['reused_frames'] += 1
            else:
                self._stats['skipped_frames'] += 1
            return FrameResult(
                track_id=snapshot.track_id,
                revision=snapshot.revision,
                drive=drive,
                mode=mode,
                placements=list(previous) if reusable else [],
                total_length=total_length,
                skipped=not reusable,
                reused=reusable,
                error=e.code,
                cache_hit=cache_hit,
                latency_ms=(time.time() - start_time) * 1000
            )

        except (InsufficientControlPoints, ParameterOutOfRange) as e:
            logger.warning("[FrameDriver] %s rev %d: %s (frame skipped)",
                           snapshot.track_id, snapshot.revision, e)
            self._stats['skipped_frames'] += 1
            return FrameResult(
                track_id=snapshot.track_id,
                revision=snapshot.revision,
                drive=drive,
                mode=mode,
                total_length=total_length,
                skipped=True,
                error=e.code,
                cache_hit=cache_hit,
                latency_ms=(time.time() - start_time) * 1000
            )

        self._last_frames[snapshot.track_id] = placements

        return FrameResult(
            track_id=snapshot.track_id,
            revision=snapshot.revision,
            drive=drive,
            mode=mode,
            placements=placements,
            total_length=total_length,
            cache_hit=cache_hit,
            latency_ms=(time.time() - start_time) * 1000
        )

    def geometry(
        self,
        snapshot: TrackSnapshot,
        rail_offset: float,
        rail_step: float,
        tie_spacing: float,
        step: Optional[float] = None
    ) -> TrackGeometry:
        """
        Bezier spans, rails and ties for the snapshot's revision.

        Raises:
            CurveError: Unlike frames, geometry failures propagate
        """
        evaluator, table, _ = self.curve(snapshot, step)
        return TrackGeometry.build(
            evaluator,
            table,
            rail_offset=rail_offset,
            rail_step=rail_step,
            tie_spacing=tie_spacing
        )

    def get_stats(self) -> Dict[str, Any]:
        stats: Dict[str, Any] = dict(self._stats)
        stats['cached_tracks'] = len(self._curves)
        return stats


# ============================================================================
# SINGLETON INSTANCE
# ============================================================================

_driver_instance: Optional[FrameDriver] = None


def get_driver(**kwargs) -> FrameDriver:
    """
    Get or create the frame driver (singleton pattern).

    Keyword arguments are only used on first creation.
    """
    global _driver_instance

    if _driver_instance is None:
        _driver_instance = FrameDriver(**kwargs)

    return _driver_instance


def close_driver() -> None:
    global _driver_instance
    _driver_instance = None
