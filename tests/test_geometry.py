import math

import pytest

from railcurve.core.curve import (
    ArcLengthTable,
    DegenerateTangent,
    SplineEvaluator,
    TrackGeometry,
    bezier_segments,
    rail,
    ties,
)


@pytest.fixture
def curve(default_track):
    evaluator = SplineEvaluator(default_track)
    return evaluator, ArcLengthTable.build(evaluator)


def test_one_segment_per_control_point(curve):
    evaluator, _ = curve
    segments = bezier_segments(evaluator)
    assert len(segments) == evaluator.n
    assert segments[-1].end == segments[0].start


def test_rail_sits_at_offset_from_centerline(curve):
    evaluator, table = curve
    vertices = rail(evaluator, table, offset=15.0, step=5.0)
    assert len(vertices) == int(math.floor(table.total_length / 5.0)) + 1

    for k, (x, y) in enumerate(vertices):
        cx, cy = evaluator.position(table.parameter_at_length(k * 5.0))
        assert math.hypot(x - cx, y - cy) == pytest.approx(15.0)


def test_rails_are_mirror_images(curve):
    evaluator, table = curve
    left = rail(evaluator, table, offset=15.0, step=20.0)
    right = rail(evaluator, table, offset=-15.0, step=20.0)
    for (lx, ly), (rx, ry) in zip(left, right):
        assert math.hypot(lx - rx, ly - ry) == pytest.approx(30.0)


def test_ties_are_evenly_spaced(curve):
    evaluator, table = curve
    placed = ties(evaluator, table, spacing=30.0)

    assert (len(placed) - 1) * 30.0 < table.total_length <= len(placed) * 30.0
    assert placed[0].parameter == 0.0
    lengths = [table.length_at_parameter(t.parameter) for t in placed]
    for k, length in enumerate(lengths):
        assert length == pytest.approx(k * 30.0, abs=1e-6)


@pytest.mark.parametrize("bad", [0.0, -5.0, float("nan")])
def test_pitch_must_be_positive(curve, bad):
    evaluator, table = curve
    with pytest.raises(ValueError):
        rail(evaluator, table, offset=15.0, step=bad)
    with pytest.raises(ValueError):
        ties(evaluator, table, spacing=bad)


def test_build_collects_everything(curve):
    evaluator, table = curve
    geometry = TrackGeometry.build(evaluator, table, rail_offset=10.0, rail_step=10.0, tie_spacing=50.0)
    assert len(geometry.segments) == evaluator.n
    assert len(geometry.left_rail) == len(geometry.right_rail)
    assert geometry.ties
    assert geometry.total_length == table.total_length


def test_tie_on_degenerate_point_raises(degenerate):
    evaluator = SplineEvaluator(degenerate)
    table = ArcLengthTable.build(evaluator, step=0.5)
    assert table.samples[2].u == 1.0

    # Second tie lands exactly on u = 1, where the heading is undefined
    with pytest.raises(DegenerateTangent):
        ties(evaluator, table, spacing=table.samples[2].a)
