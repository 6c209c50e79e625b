"""
RAILCURVE - API MODELS
======================

Pydantic models for request/response validation.

Responses are immutable (frozen=True via ConfigDict).
"""
from __future__ import annotations

from typing import Optional, List, Dict, Any
from pydantic import BaseModel, Field, ConfigDict, field_validator
from datetime import datetime

from railcurve.core.curve import MIN_CONTROL_POINTS, SpeedMode


# ============================================================================
# TRACK MODELS
# ============================================================================

def _check_pairs(points: List[List[float]]) -> List[List[float]]:
    for point in points:
        if len(point) != 2:
            raise ValueError("Each control point must be an [x, y] pair")
    return points


class TrackCreateRequest(BaseModel):
    """
    Create new track request.

    Example:
        {
            "name": "figure-eight",
            "points": [[125, 150], [200, 350], [100, 540], [450, 450]]
        }
    """
    name: Optional[str] = Field(None, max_length=200, description="Display name")
    points: Optional[List[List[float]]] = Field(
        None,
        min_length=MIN_CONTROL_POINTS,
        description="Control points [[x, y], ...] (default track if omitted)"
    )

    model_config = ConfigDict(frozen=False)

    @field_validator("points")
    @classmethod
    def _pairs(cls, value: Optional[List[List[float]]]) -> Optional[List[List[float]]]:
        return _check_pairs(value) if value is not None else value


class PointsReplaceRequest(BaseModel):
    """Replace every control point of a track."""
    points: List[List[float]] = Field(..., min_length=MIN_CONTROL_POINTS)

    model_config = ConfigDict(frozen=False)

    @field_validator("points")
    @classmethod
    def _pairs(cls, value: List[List[float]]) -> List[List[float]]:
        return _check_pairs(value)


class PointMoveRequest(BaseModel):
    """
    Move (drag) or insert one control point.

    Example:
        {"x": 210.0, "y": 360.0}
    """
    x: float
    y: float

    model_config = ConfigDict(frozen=False)


class TrackResponse(BaseModel):
    """
    Track information.

    Example:
        {
            "track_id": "abc-123",
            "name": "track-abc12345",
            "points": [[125, 150], ...],
            "revision": 3,
            "total_length": 1534.2,
            "created_at": "2025-01-01T12:00:00Z"
        }
    """
    track_id: str
    name: str
    points: List[List[float]]
    revision: int
    total_length: Optional[float] = Field(None, description="Tabulated arc length (None if degenerate)")
    created_at: str  # ISO format
    updated_at: str  # ISO format

    model_config = ConfigDict(frozen=True)


class TrackListResponse(BaseModel):
    tracks: List[TrackResponse]

    model_config = ConfigDict(frozen=True)


# ============================================================================
# FRAME MODELS
# ============================================================================

class FrameRequest(BaseModel):
    """
    One animation frame.

    `drive` is in parameter units: [0, n) covers one lap of an n-point track.

    Example:
        {
            "drive": 2.35,
            "count": 4,
            "mode": "arc_length",
            "length_spacing": 65
        }
    """
    drive: float = Field(..., allow_inf_nan=False, description="Drive parameter (parameter units)")
    count: int = Field(1, ge=1, description="Leader + cars")
    mode: Optional[SpeedMode] = Field(None, description="Speed mode (config default if omitted)")
    parameter_spacing: Optional[float] = Field(None, description="Car gap in parameter units")
    length_spacing: Optional[float] = Field(None, description="Car gap in arc-length units")
    sample_step: Optional[float] = Field(None, gt=0.0, description="Arc-length table step Δ")

    model_config = ConfigDict(frozen=False)


class PlacementModel(BaseModel):
    index: int
    x: float
    y: float
    orientation: float = Field(..., description="Heading in radians")
    parameter: float

    model_config = ConfigDict(frozen=True)


class FrameResponse(BaseModel):
    """
    Placements for one frame.

    Example:
        {
            "track_id": "abc-123",
            "revision": 3,
            "drive": 2.35,
            "mode": "arc_length",
            "placements": [{"index": 0, "x": 310.5, "y": 402.1, "orientation": 1.2, "parameter": 2.4}],
            "skipped": false,
            "reused": false
        }
    """
    track_id: str
    revision: int
    drive: float
    mode: SpeedMode
    placements: List[PlacementModel]
    total_length: Optional[float] = None
    skipped: bool = False
    reused: bool = False
    error: Optional[str] = None
    cache_hit: bool = False
    latency_ms: float = 0.0

    model_config = ConfigDict(frozen=True)


# ============================================================================
# GEOMETRY MODELS
# ============================================================================

class SegmentModel(BaseModel):
    start: List[float]
    cp1: List[float]
    cp2: List[float]
    end: List[float]

    model_config = ConfigDict(frozen=True)


class GeometryResponse(BaseModel):
    """
    Drawing aids for a track revision.

    Example:
        {
            "track_id": "abc-123",
            "revision": 3,
            "segments": [{"start": [125, 150], "cp1": [...], "cp2": [...], "end": [200, 350]}],
            "left_rail": [[110.2, 152.7], ...],
            "right_rail": [[139.8, 147.3], ...],
            "ties": [{"index": 0, "x": 125, "y": 150, "orientation": 0.3, "parameter": 0}],
            "total_length": 1534.2
        }
    """
    track_id: str
    revision: int
    segments: List[SegmentModel]
    left_rail: List[List[float]]
    right_rail: List[List[float]]
    ties: List[PlacementModel]
    total_length: float

    model_config = ConfigDict(frozen=True)


class TableResponse(BaseModel):
    """
    Arc-length table preview.

    Example:
        {
            "track_id": "abc-123",
            "revision": 3,
            "step": 0.1,
            "rows": 50,
            "total_length": 1534.2,
            "samples": [{"u": 0.0, "a": 0.0}, {"u": 0.1, "a": 21.7}]
        }
    """
    track_id: str
    revision: int
    step: float
    rows: int
    total_length: float
    samples: List[Dict[str, float]]

    model_config = ConfigDict(frozen=True)


# ============================================================================
# SYSTEM MODELS
# ============================================================================

class HealthResponse(BaseModel):
    """
    System health check.

    Example:
        {
            "status": "healthy",
            "store": {"ready": true, "tracks": 2},
            "engine": {"ready": true},
            "version": "1.0.0"
        }
    """
    status: str = Field(..., description="healthy, degraded, or unhealthy")
    store: Dict[str, Any]
    engine: Dict[str, Any]
    version: str
    uptime_seconds: float = 0.0

    model_config = ConfigDict(frozen=True)


class StatsResponse(BaseModel):
    """
    System statistics.

    Example:
        {
            "store": {"tracks": 2, "control_points": 9, "revisions": 14},
            "frames": {"frames": 1523, "skipped_frames": 0, "table_builds": 14},
            "performance": {"uptime_seconds": 3600.5}
        }
    """
    store: Dict[str, Any]
    frames: Dict[str, Any]
    performance: Dict[str, float]

    model_config = ConfigDict(frozen=True)


# ============================================================================
# ERROR MODELS
# ============================================================================

class ErrorResponse(BaseModel):
    """
    Standard error response.

    Example:
        {
            "error": "insufficient_control_points",
            "message": "A closed track requires at least 3 control points, got 2",
            "details": {...}
        }
    """
    error: str = Field(..., description="Error code")
    message: str = Field(..., description="Human-readable message")
    details: Optional[Dict[str, Any]] = Field(None, description="Additional context")

    model_config = ConfigDict(frozen=True)


# ============================================================================
# UTILITIES
# ============================================================================

def format_timestamp(unix_time: float) -> str:
    """
    Format Unix timestamp as ISO 8601.

    Args:
        unix_time: Unix timestamp (seconds)

    Returns:
        ISO format string (e.g., "2025-01-01T12:00:00Z")
    """
    return datetime.fromtimestamp(unix_time).isoformat() + "Z"
