"""
RAILCURVE - FRAMES & GEOMETRY API
=================================

Per-frame placements plus the drawing aids a renderer needs.
"""
from __future__ import annotations

import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query

from railcurve.app.api.tracks import get_track_store, get_frame_driver, not_found
from railcurve.app.models import (
    FrameRequest,
    FrameResponse,
    GeometryResponse,
    PlacementModel,
    SegmentModel,
    TableResponse
)
from railcurve.config import AppConfig, get_config
from railcurve.core.curve import Placement
from railcurve.services import FrameDriver
from railcurve.store import TrackStore


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tracks", tags=["frames"])


def _placement_model(placement: Placement) -> PlacementModel:
    return PlacementModel(**placement.to_dict())


# ============================================================================
# FRAME ENDPOINT
# ============================================================================

@router.post("/{track_id}/frame", response_model=FrameResponse)
async def render_frame(
    track_id: str,
    request: FrameRequest,
    store: TrackStore = Depends(get_track_store),
    driver: FrameDriver = Depends(get_frame_driver),
    config: AppConfig = Depends(get_config)
):
    """
    Place the train and its cars for one animation frame.

    Workflow:
    1. Snapshot the track (points + revision)
    2. Reuse or rebuild the arc-length table for that revision
    3. Place leader + cars
    4. On a curve error, return a skipped (or reused) frame instead of failing

    Example Request:
        POST /tracks/abc-123/frame
        {"drive": 2.35, "count": 3, "mode": "arc_length", "length_spacing": 65}

    Example Response:
        {
            "track_id": "abc-123",
            "revision": 3,
            "placements": [{"index": 0, "x": 310.5, "y": 402.1, "orientation": 1.2, "parameter": 2.4}, ...],
            "skipped": false
        }
    """
    snapshot = await store.get_track(track_id)
    if snapshot is None:
        raise not_found(track_id)

    defaults = config.placement
    count = min(request.count, defaults.max_objects)
    if count < request.count:
        logger.debug("Object count %d capped at %d", request.count, count)

    frame = driver.render(
        snapshot,
        drive=request.drive,
        count=count,
        mode=request.mode or defaults.mode,
        parameter_spacing=(
            request.parameter_spacing
            if request.parameter_spacing is not None
            else defaults.parameter_spacing
        ),
        length_spacing=(
            request.length_spacing
            if request.length_spacing is not None
            else defaults.length_spacing
        ),
        step=request.sample_step
    )

    return FrameResponse(
        track_id=frame.track_id,
        revision=frame.revision,
        drive=frame.drive,
        mode=frame.mode,
        placements=[_placement_model(p) for p in frame.placements],
        total_length=frame.total_length,
        skipped=frame.skipped,
        reused=frame.reused,
        error=frame.error,
        cache_hit=frame.cache_hit,
        latency_ms=frame.latency_ms
    )


# ============================================================================
# GEOMETRY ENDPOINTS
# ============================================================================

@router.get("/{track_id}/geometry", response_model=GeometryResponse)
async def get_geometry(
    track_id: str,
    rail_offset: Optional[float] = None,
    rail_step: Optional[float] = Query(None, gt=0.0),
    tie_spacing: Optional[float] = Query(None, gt=0.0),
    sample_step: Optional[float] = Query(None, gt=0.0),
    store: TrackStore = Depends(get_track_store),
    driver: FrameDriver = Depends(get_frame_driver),
    config: AppConfig = Depends(get_config)
):
    """
    Bezier spans, rails and ties of the track's current revision.

    Example:
        GET /tracks/abc-123/geometry?rail_offset=15&tie_spacing=30
    """
    snapshot = await store.get_track(track_id)
    if snapshot is None:
        raise not_found(track_id)

    defaults = config.geometry
    geometry = driver.geometry(
        snapshot,
        rail_offset=rail_offset if rail_offset is not None else defaults.rail_offset,
        rail_step=rail_step or defaults.rail_step,
        tie_spacing=tie_spacing or defaults.tie_spacing,
        step=sample_step
    )

    return GeometryResponse(
        track_id=snapshot.track_id,
        revision=snapshot.revision,
        segments=[SegmentModel(**s.to_dict()) for s in geometry.segments],
        left_rail=[list(p) for p in geometry.left_rail],
        right_rail=[list(p) for p in geometry.right_rail],
        ties=[_placement_model(t) for t in geometry.ties],
        total_length=geometry.total_length
    )


@router.get("/{track_id}/table", response_model=TableResponse)
async def get_table(
    track_id: str,
    rows: int = Query(20, ge=2, le=10000),
    sample_step: Optional[float] = Query(None, gt=0.0),
    store: TrackStore = Depends(get_track_store),
    driver: FrameDriver = Depends(get_frame_driver)
):
    """
    Thinned preview of the arc-length table.

    Example:
        GET /tracks/abc-123/table?rows=10
    """
    snapshot = await store.get_track(track_id)
    if snapshot is None:
        raise not_found(track_id)

    _, table, _ = driver.curve(snapshot, sample_step)

    return TableResponse(
        track_id=snapshot.track_id,
        revision=snapshot.revision,
        step=table.step,
        rows=len(table),
        total_length=table.total_length,
        samples=[s.to_dict() for s in table.preview(rows)]
    )
