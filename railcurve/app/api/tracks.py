"""
RAILCURVE - TRACKS API
======================

Endpoints for track management and control-point editing (drag).
"""
from __future__ import annotations

from typing import Optional
from fastapi import APIRouter, HTTPException, Depends

from railcurve.app.models import (
    TrackCreateRequest,
    TrackResponse,
    TrackListResponse,
    PointsReplaceRequest,
    PointMoveRequest,
    format_timestamp
)
from railcurve.config import get_config
from railcurve.core.curve import CurveError
from railcurve.services import FrameDriver, get_driver
from railcurve.store import TrackStore, TrackSnapshot, get_store


router = APIRouter(prefix="/tracks", tags=["tracks"])


# ============================================================================
# DEPENDENCIES
# ============================================================================

async def get_track_store() -> TrackStore:
    """Dependency: Track store instance."""
    return await get_store(get_config().track.default_points)


def get_frame_driver() -> FrameDriver:
    """Dependency: Frame driver instance."""
    config = get_config()
    return get_driver(
        sample_step=config.track.sample_step,
        boundary_epsilon=config.placement.boundary_epsilon,
        tangent_epsilon=config.placement.tangent_epsilon
    )


def not_found(track_id: str) -> HTTPException:
    return HTTPException(status_code=404, detail=f"Track '{track_id}' not found")


def track_response(snapshot: TrackSnapshot, driver: FrameDriver) -> TrackResponse:
    """Snapshot → response, with the tabulated length when the curve is valid."""
    try:
        _, table, _ = driver.curve(snapshot)
        total_length = table.total_length
    except CurveError:
        total_length = None

    return TrackResponse(
        track_id=snapshot.track_id,
        name=snapshot.name,
        points=snapshot.points_json(),
        revision=snapshot.revision,
        total_length=total_length,
        created_at=format_timestamp(snapshot.created_at),
        updated_at=format_timestamp(snapshot.updated_at)
    )


# ============================================================================
# TRACK ENDPOINTS
# ============================================================================

@router.post("", response_model=TrackResponse)
async def create_track(
    request: TrackCreateRequest,
    store: TrackStore = Depends(get_track_store),
    driver: FrameDriver = Depends(get_frame_driver)
):
    """
    Create a new track.

    Example:
        POST /tracks
        {"points": [[0, 0], [10, 0], [10, 10], [0, 10]]}

    Returns:
        {"track_id": "abc-123", "revision": 0, "total_length": 39.4, ...}
    """
    snapshot = await store.create_track(points=request.points, name=request.name)
    return track_response(snapshot, driver)


@router.get("", response_model=TrackListResponse)
async def list_tracks(
    store: TrackStore = Depends(get_track_store),
    driver: FrameDriver = Depends(get_frame_driver)
):
    """List all live tracks, oldest first."""
    snapshots = await store.list_tracks()
    return TrackListResponse(tracks=[track_response(s, driver) for s in snapshots])


@router.get("/{track_id}", response_model=TrackResponse)
async def get_track(
    track_id: str,
    store: TrackStore = Depends(get_track_store),
    driver: FrameDriver = Depends(get_frame_driver)
):
    """
    Get track information.

    Example:
        GET /tracks/abc-123
    """
    snapshot = await store.get_track(track_id)
    if snapshot is None:
        raise not_found(track_id)
    return track_response(snapshot, driver)


@router.delete("/{track_id}")
async def delete_track(
    track_id: str,
    store: TrackStore = Depends(get_track_store),
    driver: FrameDriver = Depends(get_frame_driver)
):
    """
    Delete a track.

    Returns:
        {"status": "deleted", "track_id": "abc-123"}
    """
    if not await store.delete_track(track_id):
        raise not_found(track_id)

    driver.invalidate(track_id)

    return {
        "status": "deleted",
        "track_id": track_id
    }


# ============================================================================
# POINT ENDPOINTS
# ============================================================================

@router.put("/{track_id}/points", response_model=TrackResponse)
async def replace_points(
    track_id: str,
    request: PointsReplaceRequest,
    store: TrackStore = Depends(get_track_store),
    driver: FrameDriver = Depends(get_frame_driver)
):
    """Replace every control point of a track."""
    try:
        snapshot = await store.replace_points(track_id, request.points)
    except KeyError:
        raise not_found(track_id)
    return track_response(snapshot, driver)


@router.patch("/{track_id}/points/{index}", response_model=TrackResponse)
async def move_point(
    track_id: str,
    index: int,
    request: PointMoveRequest,
    store: TrackStore = Depends(get_track_store),
    driver: FrameDriver = Depends(get_frame_driver)
):
    """
    Move one control point (drag). The index wraps cyclically.

    Example:
        PATCH /tracks/abc-123/points/1
        {"x": 210, "y": 360}
    """
    try:
        snapshot = await store.move_point(track_id, index, request.x, request.y)
    except KeyError:
        raise not_found(track_id)
    return track_response(snapshot, driver)


@router.post("/{track_id}/points", response_model=TrackResponse)
async def insert_point(
    track_id: str,
    request: PointMoveRequest,
    index: Optional[int] = None,
    store: TrackStore = Depends(get_track_store),
    driver: FrameDriver = Depends(get_frame_driver)
):
    """
    Insert a control point before `index` (append when omitted).

    Example:
        POST /tracks/abc-123/points?index=2
        {"x": 300, "y": 300}
    """
    try:
        snapshot = await store.insert_point(track_id, request.x, request.y, index=index)
    except KeyError:
        raise not_found(track_id)
    return track_response(snapshot, driver)


@router.delete("/{track_id}/points/{index}", response_model=TrackResponse)
async def remove_point(
    track_id: str,
    index: int,
    store: TrackStore = Depends(get_track_store),
    driver: FrameDriver = Depends(get_frame_driver)
):
    """
    Remove a control point. Refused (422) when only 3 remain.
    """
    try:
        snapshot = await store.remove_point(track_id, index)
    except KeyError:
        raise not_found(track_id)
    return track_response(snapshot, driver)
