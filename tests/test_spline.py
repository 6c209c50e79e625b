import math

import pytest

from railcurve.core.curve import (
    ControlPoint,
    ControlPointSet,
    CurveError,
    DegenerateTangent,
    InsufficientControlPoints,
    ParameterOutOfRange,
    SplineEvaluator,
    wrap_index,
    wrap_parameter,
)


def approx_point(point, abs=1e-9):
    return pytest.approx(point, abs=abs)


# ── Evaluator ────────────────────────────────────────────────────────────────

def test_passes_through_every_control_point(default_track):
    evaluator = SplineEvaluator(default_track)
    for i, point in enumerate(default_track):
        assert evaluator.position(i) == approx_point(point)


def test_square_corners(square):
    evaluator = SplineEvaluator(square)
    assert evaluator.position(0) == approx_point((0.0, 0.0))
    assert evaluator.position(2) == approx_point((10.0, 10.0))


def test_square_span_midpoints_bulge_outwards(square):
    evaluator = SplineEvaluator(square)
    assert evaluator.position(0.5) == approx_point((5.0, -1.25))
    assert evaluator.position(1.5) == approx_point((11.25, 5.0))
    assert evaluator.position(3.5) == approx_point((-1.25, 5.0))


@pytest.mark.parametrize("t", [0.0, 0.3, 1.75, 2.5, 4.99])
def test_position_is_periodic(default_track, t):
    evaluator = SplineEvaluator(default_track)
    n = evaluator.n
    assert evaluator.position(t + n) == approx_point(evaluator.position(t), abs=1e-7)
    assert evaluator.position(t - n) == approx_point(evaluator.position(t), abs=1e-7)


def test_negative_parameter_wraps(square):
    evaluator = SplineEvaluator(square)
    assert evaluator.position(-0.5) == approx_point((-1.25, 5.0))


def test_two_points_raise():
    with pytest.raises(InsufficientControlPoints) as excinfo:
        SplineEvaluator([(0, 0), (10, 0)])
    assert excinfo.value.count == 2
    assert excinfo.value.code == "insufficient_control_points"
    assert isinstance(excinfo.value, ValueError)
    assert isinstance(excinfo.value, CurveError)


def test_non_finite_parameter_raises(square):
    evaluator = SplineEvaluator(square)
    with pytest.raises(ParameterOutOfRange):
        evaluator.position(float("nan"))
    with pytest.raises(ParameterOutOfRange):
        evaluator.tangent(float("inf"))


def test_degenerate_tangent(degenerate):
    evaluator = SplineEvaluator(degenerate)
    with pytest.raises(DegenerateTangent) as excinfo:
        evaluator.tangent(1.0)
    assert excinfo.value.magnitude == 0.0
    assert excinfo.value.code == "degenerate_tangent"
    # Position is still defined there
    assert evaluator.position(1.0) == approx_point((0.0, 0.0))


def test_direction_is_unit_length(default_track):
    evaluator = SplineEvaluator(default_track)
    for t in (0.0, 0.4, 2.2, 4.9):
        dx, dy = evaluator.direction(t)
        assert math.hypot(dx, dy) == pytest.approx(1.0)


def test_orientation_matches_tangent(square):
    evaluator = SplineEvaluator(square)
    # Bottom side runs in +x at its midpoint
    assert evaluator.orientation(0.5) == pytest.approx(0.0, abs=1e-12)
    # Right side runs in +y
    assert evaluator.orientation(1.5) == pytest.approx(math.pi / 2)


def test_segments_close_the_loop(default_track):
    segments = SplineEvaluator(default_track).segments()
    assert len(segments) == len(default_track)
    for current, following in zip(segments, segments[1:] + segments[:1]):
        assert current.end == following.start


def test_segment_handles_use_neighbours(square):
    segment = SplineEvaluator(square).segment(0)
    assert segment.cp1 == approx_point((10 / 6, -10 / 6))
    assert segment.cp2 == approx_point((10 - 10 / 6, -10 / 6))
    assert SplineEvaluator(square).segment(4) == segment


# ── Wrapping ─────────────────────────────────────────────────────────────────

@pytest.mark.parametrize("index, expected", [(0, 0), (4, 4), (5, 0), (7, 2), (-1, 4), (-6, 4)])
def test_wrap_index(index, expected):
    assert wrap_index(index, 5) == expected


def test_wrap_index_rejects_empty_sequence():
    with pytest.raises(ValueError):
        wrap_index(0, 0)


def test_wrap_parameter_stays_below_period():
    assert wrap_parameter(-1e-18, 4) == 0.0
    assert wrap_parameter(4.0, 4) == 0.0
    assert wrap_parameter(-0.5, 4) == pytest.approx(3.5)


# ── Control points ───────────────────────────────────────────────────────────

def test_control_point_rejects_non_finite():
    with pytest.raises(ValueError):
        ControlPoint(float("nan"), 0.0)


def test_point_set_indexing_is_cyclic(square):
    points = ControlPointSet(square)
    assert points[4] == points[0]
    assert points[-1] == ControlPoint(0.0, 10.0)


def test_every_mutation_bumps_revision(square):
    points = ControlPointSet(square)
    assert points.revision == 0

    points.move(1, 12, 1)
    assert points.revision == 1
    assert points[1] == ControlPoint(12.0, 1.0)

    points.insert(4, (5, 15))
    assert points.revision == 2
    assert points[4] == ControlPoint(5.0, 15.0)

    points.remove(-1)
    assert points.revision == 3
    assert len(points) == 4

    points.replace(square)
    assert points.revision == 4


def test_insert_wraps_negative_index(square):
    points = ControlPointSet(square)
    points.insert(-1, (0, 5))
    assert points.to_json()[3] == [0.0, 5.0]
    assert points.to_json()[4] == [0.0, 10.0]


def test_remove_refuses_to_go_below_three(square):
    points = ControlPointSet(square)
    points.remove(0)
    with pytest.raises(InsufficientControlPoints):
        points.remove(0)
    assert len(points) == 3
    assert points.revision == 1


def test_snapshot_is_detached(square):
    points = ControlPointSet(square)
    snapshot = points.snapshot()
    points.move(0, 99, 99)
    assert snapshot[0] == ControlPoint(0.0, 0.0)


def test_json_round_trip(square):
    points = ControlPointSet.from_json([list(p) for p in square])
    assert points.to_json() == [list(p) for p in square]
