import math

import pytest

from railcurve.core.curve import (
    ArcLengthSample,
    ArcLengthTable,
    InsufficientControlPoints,
    ParameterOutOfRange,
    SplineEvaluator,
)


def test_last_row_closes_the_loop(square):
    table = ArcLengthTable.build(square, step=0.1)
    assert len(table) == 41
    assert table.samples[0].u == 0.0
    assert table.samples[0].a == 0.0
    assert table.samples[-2].u == pytest.approx(3.9)
    assert table.samples[-1].u == 4.0
    assert table.samples[-1].a == table.total_length


def test_table_is_monotonic(default_track):
    table = ArcLengthTable.build(default_track, step=0.05)
    lengths = [s.a for s in table]
    assert all(b >= a for a, b in zip(lengths, lengths[1:]))


def test_total_matches_independent_chord_sum(default_track):
    evaluator = SplineEvaluator(default_track)
    step = 0.1
    count = int(math.ceil(evaluator.n / step - 1e-9))

    expected = 0.0
    previous = evaluator.position(0.0)
    for k in range(1, count):
        current = evaluator.position(k * step)
        expected += math.hypot(current[0] - previous[0], current[1] - previous[1])
        previous = current
    first = evaluator.position(0.0)
    expected += math.hypot(first[0] - previous[0], first[1] - previous[1])

    table = ArcLengthTable.build(evaluator, step)
    assert table.total_length == pytest.approx(expected, rel=1e-12)


def test_accepts_points_or_evaluator(square):
    from_points = ArcLengthTable.build(square)
    from_evaluator = ArcLengthTable.build(SplineEvaluator(square))
    assert from_points.total_length == from_evaluator.total_length


def test_rows_invert(default_track):
    table = ArcLengthTable.build(default_track)
    for row in table.samples[:-1]:
        assert table.parameter_at_length(row.a) == pytest.approx(row.u, abs=1e-9)


@pytest.mark.parametrize("u", [0.05, 1.37, 2.5, 3.85])
def test_parameter_length_round_trip(square, u):
    table = ArcLengthTable.build(square)
    assert table.parameter_at_length(table.length_at_parameter(u)) == pytest.approx(u, abs=1e-9)


def test_total_length_maps_onto_the_seam(square):
    table = ArcLengthTable.build(square)
    assert table.parameter_at_length(table.total_length) == 4.0


def test_targets_outside_range_wrap(default_track):
    table = ArcLengthTable.build(default_track)
    total = table.total_length
    assert table.parameter_at_length(total + 100.0) == pytest.approx(table.parameter_at_length(100.0))
    assert table.parameter_at_length(-100.0) == pytest.approx(table.parameter_at_length(total - 100.0))


def test_zero_length_track_cannot_be_inverted():
    table = ArcLengthTable.build([(1.0, 1.0)] * 3)
    assert table.total_length == 0.0
    with pytest.raises(ParameterOutOfRange):
        table.parameter_at_length(0.0)


def test_non_finite_target_raises(square):
    table = ArcLengthTable.build(square)
    with pytest.raises(ParameterOutOfRange):
        table.parameter_at_length(float("nan"))


@pytest.mark.parametrize("step", [0.0, -0.1, float("nan"), float("inf")])
def test_step_must_be_positive(square, step):
    with pytest.raises(ValueError):
        ArcLengthTable.build(square, step)


def test_too_few_points_raise():
    with pytest.raises(InsufficientControlPoints):
        ArcLengthTable.build([(0, 0), (1, 1)])


def test_finer_step_measures_more(default_track):
    coarse = ArcLengthTable.build(default_track, 0.1)
    fine = ArcLengthTable.build(default_track, 0.01)
    assert fine.total_length > coarse.total_length
    assert len(fine) == 501


def test_length_at_parameter_bounds(square):
    table = ArcLengthTable.build(square)
    assert table.length_at_parameter(0.0) == 0.0
    assert table.length_at_parameter(-1.0) == 0.0
    assert table.length_at_parameter(4.0) == table.total_length
    assert table.length_at_parameter(3.95) < table.total_length


def test_preview_keeps_first_and_last_rows(default_track):
    table = ArcLengthTable.build(default_track)
    rows = table.preview(5)
    assert len(rows) == 5
    assert rows[0] == table.samples[0]
    assert rows[-1] == table.samples[-1]
    assert table.preview(10_000) == table.samples
    with pytest.raises(ValueError):
        table.preview(1)


def test_total_is_the_full_perimeter(default_track):
    evaluator = SplineEvaluator(default_track)
    perimeter = 0.0
    previous = evaluator.position(0.0)
    for k in range(1, 50001):
        current = evaluator.position(k * 0.0001)
        perimeter += math.hypot(current[0] - previous[0], current[1] - previous[1])
        previous = current

    table = ArcLengthTable.build(evaluator, 0.1)
    assert table.total_length == pytest.approx(perimeter, rel=2e-3)


def test_flat_rows_resolve_to_the_last_equal_row():
    table = ArcLengthTable(
        [
            ArcLengthSample(0.0, 0.0),
            ArcLengthSample(1.0, 5.0),
            ArcLengthSample(2.0, 5.0),
            ArcLengthSample(3.0, 5.0),
            ArcLengthSample(4.0, 8.0),
        ],
        step=1.0
    )
    # Only rows 3 and 4 satisfy a[i] <= 5 < a[i+1]
    assert table.parameter_at_length(5.0) == 3.0
    assert table.parameter_at_length(6.5) == 3.5
    assert table.parameter_at_length(8.0) == 4.0
    assert table.parameter_at_length(2.5) == 0.5
