"""
RAILCURVE - CURVE ENGINE ERRORS
===============================

Failures the curve engine signals to its immediate caller.

None of them is retried: each one only goes away when the control points
change. The per-frame driver turns them into a skipped (or reused) frame.
"""
from __future__ import annotations


MIN_CONTROL_POINTS = 3


class CurveError(Exception):
    """Base class for all curve engine failures."""

    code = "curve_error"


class InsufficientControlPoints(CurveError, ValueError):
    """
    Fewer control points than a closed Catmull-Rom curve needs.

    Attributes:
        count: Number of points that were supplied
        minimum: Number of points required
    """

    code = "insufficient_control_points"

    def __init__(self, count: int, minimum: int = MIN_CONTROL_POINTS):
        self.count = count
        self.minimum = minimum
        super().__init__(
            f"A closed track requires at least {minimum} control points, got {count}"
        )


class DegenerateTangent(CurveError):
    """
    Tangent magnitude too small to define a direction.

    Happens where three or more consecutive control points coincide.

    Attributes:
        parameter: Curve parameter at which the tangent vanished
        magnitude: Length of the tangent vector
    """

    code = "degenerate_tangent"

    def __init__(self, parameter: float, magnitude: float):
        self.parameter = parameter
        self.magnitude = magnitude
        super().__init__(
            f"Tangent vanishes at t={parameter:.6f} (|d|={magnitude:.3e})"
        )


class ParameterOutOfRange(CurveError, ValueError):
    """A parameter or arc length cannot be reduced into the curve's domain."""

    code = "parameter_out_of_range"
