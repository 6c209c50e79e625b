"""
RAILCURVE - CLOSED CATMULL-ROM SPLINE
=====================================

Closed interpolating track curve through a cyclic list of 2D control points.

Every span between control points i and i+1 is drawn as a cubic Bezier
whose inner handles come from the Catmull-Rom construction (tension 1/6):

    cp1 = P[i]   + (P[i+1] - P[i-1]) / 6
    cp2 = P[i+1] - (P[i+2] - P[i])   / 6

Mathematical Foundation:
- Cubic Bezier: B(f) = (1-f)³P₀ + 3(1-f)²f P₁ + 3(1-f)f² P₂ + f³ P₃
- Derivative:   B'(f) = 3(1-f)²(P₁-P₀) + 6(1-f)f(P₂-P₁) + 3f²(P₃-P₂)
- Curve parameter t: floor(t) mod n picks the span, t - floor(t) is f

The parameter domain is ℝ mod n, so the curve is closed and passes through
P[i] exactly at t = i.
"""
from __future__ import annotations

from typing import Iterable, Iterator, List, Sequence, Tuple, Union
from dataclasses import dataclass
import math

from .errors import (
    MIN_CONTROL_POINTS,
    DegenerateTangent,
    InsufficientControlPoints,
    ParameterOutOfRange,
)


Vec2 = Tuple[float, float]

CATMULL_ROM_TENSION = 1.0 / 6.0
TANGENT_EPSILON = 1e-9


# ============================================================================
# INDEX / PARAMETER WRAPPING
# ============================================================================

def wrap_index(index: int, n: int) -> int:
    """
    Map any integer index onto [0, n) for a cyclic sequence of length n.

    Example:
        >>> wrap_index(-1, 5)
        4
        >>> wrap_index(7, 5)
        2
    """
    if n <= 0:
        raise ValueError(f"Cyclic sequence length must be positive, got {n}")
    return index % n


def wrap_parameter(t: float, n: int) -> float:
    """
    Reduce a curve parameter into [0, n), negative values included.

    Raises:
        ParameterOutOfRange: If t is not finite
    """
    if not math.isfinite(t):
        raise ParameterOutOfRange(f"Curve parameter must be finite, got {t}")
    u = t % n
    # -1e-17 % n rounds up to n; that point is t = 0 on a closed curve
    if u >= n:
        u = 0.0
    return u


# ============================================================================
# CONTROL POINTS
# ============================================================================

@dataclass(frozen=True)
class ControlPoint:
    """
    Track control point.

    Attributes:
        x: Horizontal coordinate
        y: Vertical coordinate
    """
    x: float
    y: float

    def __post_init__(self):
        """Validate coordinates."""
        if not (math.isfinite(self.x) and math.isfinite(self.y)):
            raise ValueError(f"Control point coordinates must be finite, got ({self.x}, {self.y})")

    def as_tuple(self) -> Vec2:
        return (self.x, self.y)


PointLike = Union[ControlPoint, Sequence[float]]


def to_control_point(point: PointLike) -> ControlPoint:
    """Accept a ControlPoint or any (x, y) pair."""
    if isinstance(point, ControlPoint):
        return point
    if len(point) != 2:
        raise ValueError(f"Control point must have exactly 2 coordinates, got {len(point)}")
    return ControlPoint(float(point[0]), float(point[1]))


class ControlPointSet:
    """
    Ordered, mutable, cyclic list of control points with a revision counter.

    Indexing wraps modulo n. Every mutation bumps `revision`, which lets a
    caching caller decide whether an arc-length table must be rebuilt
    without the engine watching for changes itself.

    Usage:
        points = ControlPointSet([(125, 150), (200, 350), (100, 540)])
        points.move(1, 210, 360)       # drag
        points.revision                # -> 1
        evaluator = SplineEvaluator(points.snapshot())
    """

    def __init__(self, points: Iterable[PointLike] = (), revision: int = 0):
        self._points: List[ControlPoint] = [to_control_point(p) for p in points]
        self._revision = revision

    def __len__(self) -> int:
        return len(self._points)

    def __iter__(self) -> Iterator[ControlPoint]:
        return iter(self._points)

    def __getitem__(self, index: int) -> ControlPoint:
        return self._points[wrap_index(index, len(self._points))]

    def __repr__(self) -> str:
        return f"ControlPointSet(n={len(self)}, revision={self._revision})"

    @property
    def revision(self) -> int:
        return self._revision

    def snapshot(self) -> Tuple[ControlPoint, ...]:
        """Immutable copy of the current points."""
        return tuple(self._points)

    # ── Mutation (drag collaborator) ─────────────────────────────────────────

    def move(self, index: int, x: float, y: float) -> ControlPoint:
        """Move point `index` (cyclic) to (x, y)."""
        i = wrap_index(index, len(self._points))
        self._points[i] = ControlPoint(float(x), float(y))
        self._revision += 1
        return self._points[i]

    def replace(self, points: Iterable[PointLike]) -> None:
        self._points = [to_control_point(p) for p in points]
        self._revision += 1

    def insert(self, index: int, point: PointLike) -> None:
        """Insert before `index`; an index equal to n appends."""
        n = len(self._points)
        if n == 0 or index == n:
            position = n
        else:
            position = wrap_index(index, n)
        self._points.insert(position, to_control_point(point))
        self._revision += 1

    def remove(self, index: int) -> ControlPoint:
        """
        Remove point `index` (cyclic).

        Raises:
            InsufficientControlPoints: If the track would drop below 3 points
        """
        n = len(self._points)
        if n - 1 < MIN_CONTROL_POINTS:
            raise InsufficientControlPoints(n - 1)
        removed = self._points.pop(wrap_index(index, n))
        self._revision += 1
        return removed

    # ── Serialization ────────────────────────────────────────────────────────

    def to_json(self) -> List[List[float]]:
        return [[p.x, p.y] for p in self._points]

    @classmethod
    def from_json(cls, points_json: List[List[float]]) -> "ControlPointSet":
        """
        Create a point set from [[x, y], ...].

        Example:
            ControlPointSet.from_json([[0, 0], [10, 0], [10, 10], [0, 10]])
        """
        return cls(points_json)


# ============================================================================
# BEZIER SPAN
# ============================================================================

@dataclass(frozen=True)
class BezierSegment:
    """
    One cubic span of the track, ready for a `bezierCurveTo`-style primitive.

    Attributes:
        start: Control point i
        cp1: First handle
        cp2: Second handle
        end: Control point i+1
    """
    start: Vec2
    cp1: Vec2
    cp2: Vec2
    end: Vec2

    def evaluate(self, f: float) -> Vec2:
        """Bernstein form of the span at local parameter f ∈ [0, 1]."""
        g = 1.0 - f
        b0 = g * g * g
        b1 = 3.0 * g * g * f
        b2 = 3.0 * g * f * f
        b3 = f * f * f
        return (
            b0 * self.start[0] + b1 * self.cp1[0] + b2 * self.cp2[0] + b3 * self.end[0],
            b0 * self.start[1] + b1 * self.cp1[1] + b2 * self.cp2[1] + b3 * self.end[1],
        )

    def derivative(self, f: float) -> Vec2:
        """dB/df at local parameter f."""
        g = 1.0 - f
        d0 = 3.0 * g * g
        d1 = 6.0 * g * f
        d2 = 3.0 * f * f
        return (
            d0 * (self.cp1[0] - self.start[0]) + d1 * (self.cp2[0] - self.cp1[0]) + d2 * (self.end[0] - self.cp2[0]),
            d0 * (self.cp1[1] - self.start[1]) + d1 * (self.cp2[1] - self.cp1[1]) + d2 * (self.end[1] - self.cp2[1]),
        )

    def to_dict(self) -> dict:
        return {
            'start': list(self.start),
            'cp1': list(self.cp1),
            'cp2': list(self.cp2),
            'end': list(self.end),
        }


# ============================================================================
# EVALUATOR
# ============================================================================

class SplineEvaluator:
    """
    Position and tangent of the closed track at any real parameter.

    Holds a frozen copy of the points it was built from; build a new one
    whenever the control points change.

    Usage:
        evaluator = SplineEvaluator([(0, 0), (10, 0), (10, 10), (0, 10)])
        evaluator.position(2)      # -> (10.0, 10.0)
        evaluator.tangent(0.5)     # unnormalized derivative

    Raises:
        InsufficientControlPoints: If fewer than 3 points are supplied
    """

    def __init__(
        self,
        points: Iterable[PointLike],
        tangent_epsilon: float = TANGENT_EPSILON
    ):
        self.points: Tuple[Vec2, ...] = tuple(
            to_control_point(p).as_tuple() for p in points
        )
        if len(self.points) < MIN_CONTROL_POINTS:
            raise InsufficientControlPoints(len(self.points))
        self.tangent_epsilon = tangent_epsilon

    @property
    def n(self) -> int:
        """Number of control points (= parameter period)."""
        return len(self.points)

    def segment(self, index: int) -> BezierSegment:
        """Bezier span from control point `index` to `index + 1` (cyclic)."""
        n = self.n
        i = wrap_index(index, n)
        prev = self.points[wrap_index(i - 1, n)]
        curr = self.points[i]
        nxt = self.points[wrap_index(i + 1, n)]
        nxt2 = self.points[wrap_index(i + 2, n)]

        k = CATMULL_ROM_TENSION
        cp1 = (curr[0] + (nxt[0] - prev[0]) * k, curr[1] + (nxt[1] - prev[1]) * k)
        cp2 = (nxt[0] - (nxt2[0] - curr[0]) * k, nxt[1] - (nxt2[1] - curr[1]) * k)
        return BezierSegment(start=curr, cp1=cp1, cp2=cp2, end=nxt)

    def segments(self) -> List[BezierSegment]:
        """All n spans in order, closing back to point 0."""
        return [self.segment(i) for i in range(self.n)]

    def locate(self, t: float) -> Tuple[int, float]:
        """Split a parameter into (span index, local f ∈ [0, 1))."""
        u = wrap_parameter(t, self.n)
        i = int(math.floor(u))
        return i, u - i

    def position(self, t: float) -> Vec2:
        i, f = self.locate(t)
        return self.segment(i).evaluate(f)

    def tangent(self, t: float) -> Vec2:
        """
        Unnormalized derivative at t.

        Raises:
            DegenerateTangent: If |tangent| < tangent_epsilon
        """
        i, f = self.locate(t)
        d = self.segment(i).derivative(f)
        magnitude = math.hypot(d[0], d[1])
        if magnitude < self.tangent_epsilon:
            raise DegenerateTangent(t, magnitude)
        return d

    def direction(self, t: float) -> Vec2:
        """Unit tangent at t."""
        dx, dy = self.tangent(t)
        magnitude = math.hypot(dx, dy)
        return (dx / magnitude, dy / magnitude)

    def orientation(self, t: float) -> float:
        """Heading angle (radians) of the track at t."""
        dx, dy = self.tangent(t)
        return math.atan2(dy, dx)
