"""
RAILCURVE - TRACK GEOMETRY
==========================

Drawing aids a renderer needs besides the train itself.

- Simple track: the n Bezier spans, one `bezierCurveTo` each
- Rails: the centerline offset sideways, sampled at a fixed arc-length pitch
- Ties: cross ties every `spacing` units of arc length, oriented along the track

Everything is sampled by arc length, so ties stay evenly spaced on tight
bends as well as on straights.
"""
from __future__ import annotations

from typing import List
from dataclasses import dataclass, field
import math

from .arclength import ArcLengthTable
from .placement import Placement
from .spline import BezierSegment, SplineEvaluator, Vec2


DEFAULT_RAIL_OFFSET = 15.0
DEFAULT_RAIL_STEP = 5.0
DEFAULT_TIE_SPACING = 30.0


def _check_pitch(name: str, value: float) -> None:
    if not (math.isfinite(value) and value > 0.0):
        raise ValueError(f"{name} must be a positive number, got {value}")


def bezier_segments(evaluator: SplineEvaluator) -> List[BezierSegment]:
    """Spans of the simple track, closing back to point 0."""
    return evaluator.segments()


def rail(
    evaluator: SplineEvaluator,
    table: ArcLengthTable,
    offset: float,
    step: float = DEFAULT_RAIL_STEP
) -> List[Vec2]:
    """
    Polyline running parallel to the centerline at signed distance `offset`.

    Positive offsets lie to the left of the direction of travel (y up).

    Args:
        evaluator: Track curve
        table: Arc-length table of the same curve
        offset: Signed sideways distance
        step: Arc-length pitch between polyline vertices (> 0)

    Raises:
        DegenerateTangent: If the sideways direction is undefined somewhere
    """
    _check_pitch("Rail step", step)

    total = table.total_length
    vertices = []
    for k in range(int(math.floor(total / step)) + 1):
        u = table.parameter_at_length(k * step)
        x, y = evaluator.position(u)
        tx, ty = evaluator.direction(u)
        vertices.append((x - ty * offset, y + tx * offset))
    return vertices


def ties(
    evaluator: SplineEvaluator,
    table: ArcLengthTable,
    spacing: float = DEFAULT_TIE_SPACING
) -> List[Placement]:
    """
    Cross ties every `spacing` units, starting at the u = 0 seam.

    Raises:
        DegenerateTangent: If a tie's heading is undefined
    """
    _check_pitch("Tie spacing", spacing)

    placements = []
    k = 0
    while k * spacing < table.total_length:
        u = table.parameter_at_length(k * spacing)
        x, y = evaluator.position(u)
        placements.append(Placement(
            index=k,
            x=x,
            y=y,
            orientation=evaluator.orientation(u),
            parameter=u
        ))
        k += 1
    return placements


@dataclass(frozen=True)
class TrackGeometry:
    """
    Everything needed to draw the track for one revision of its points.

    Attributes:
        segments: Bezier spans (simple track)
        left_rail: Rail at +offset
        right_rail: Rail at -offset
        ties: Cross tie poses
        total_length: Tabulated track length
    """
    segments: List[BezierSegment]
    left_rail: List[Vec2] = field(default_factory=list)
    right_rail: List[Vec2] = field(default_factory=list)
    ties: List[Placement] = field(default_factory=list)
    total_length: float = 0.0

    @classmethod
    def build(
        cls,
        evaluator: SplineEvaluator,
        table: ArcLengthTable,
        rail_offset: float = DEFAULT_RAIL_OFFSET,
        rail_step: float = DEFAULT_RAIL_STEP,
        tie_spacing: float = DEFAULT_TIE_SPACING
    ) -> "TrackGeometry":
        return cls(
            segments=bezier_segments(evaluator),
            left_rail=rail(evaluator, table, rail_offset, rail_step),
            right_rail=rail(evaluator, table, -rail_offset, rail_step),
            ties=ties(evaluator, table, tie_spacing),
            total_length=table.total_length
        )
