"""
Curve engine for closed Catmull-Rom tracks.

Exports:
- ControlPointSet: Versioned, cyclic list of control points
- SplineEvaluator: Position / tangent at any curve parameter
- ArcLengthTable: Parameter ↔ distance lookup
- ObjectPlacer: Train + car placements per frame
- TrackGeometry: Bezier spans, rails and ties for drawing
- DriveMapper: Clock / slider → drive parameter
"""
from .errors import (
    MIN_CONTROL_POINTS,
    CurveError,
    InsufficientControlPoints,
    DegenerateTangent,
    ParameterOutOfRange
)
from .spline import (
    ControlPoint,
    ControlPointSet,
    BezierSegment,
    SplineEvaluator,
    wrap_index,
    wrap_parameter
)
from .arclength import ArcLengthSample, ArcLengthTable, DEFAULT_SAMPLE_STEP
from .placement import (
    SpeedMode,
    Placement,
    ObjectPlacer,
    place_objects,
    wrap_with_nudge,
    BOUNDARY_EPSILON,
    DEFAULT_LENGTH_SPACING,
    DEFAULT_PARAMETER_SPACING
)
from .geometry import TrackGeometry, bezier_segments, rail, ties
from .drive import DriveMapper

__all__ = [
    'MIN_CONTROL_POINTS',
    'CurveError',
    'InsufficientControlPoints',
    'DegenerateTangent',
    'ParameterOutOfRange',
    'ControlPoint',
    'ControlPointSet',
    'BezierSegment',
    'SplineEvaluator',
    'wrap_index',
    'wrap_parameter',
    'ArcLengthSample',
    'ArcLengthTable',
    'DEFAULT_SAMPLE_STEP',
    'SpeedMode',
    'Placement',
    'ObjectPlacer',
    'place_objects',
    'wrap_with_nudge',
    'BOUNDARY_EPSILON',
    'DEFAULT_LENGTH_SPACING',
    'DEFAULT_PARAMETER_SPACING',
    'TrackGeometry',
    'bezier_segments',
    'rail',
    'ties',
    'DriveMapper'
]
