import pytest

from railcurve.core.curve import ControlPoint, InsufficientControlPoints, SpeedMode
from railcurve.services import FrameDriver, close_driver, get_driver
from railcurve.store import TrackSnapshot


def snapshot(points, revision=0, track_id="track-1"):
    return TrackSnapshot(
        track_id=track_id,
        name=track_id,
        points=tuple(ControlPoint(float(x), float(y)) for x, y in points),
        revision=revision,
        created_at=0.0,
        updated_at=0.0
    )


# ── Curve cache ──────────────────────────────────────────────────────────────

def test_table_reused_for_unchanged_revision(square):
    driver = FrameDriver(sample_step=0.1)
    _, first, hit = driver.curve(snapshot(square))
    assert hit is False
    _, second, hit = driver.curve(snapshot(square))
    assert hit is True
    assert second is first
    assert driver.get_stats()['table_builds'] == 1
    assert driver.get_stats()['table_hits'] == 1


def test_table_rebuilt_after_a_move(square):
    driver = FrameDriver()
    _, before, _ = driver.curve(snapshot(square, revision=0))

    moved = list(square)
    moved[1] = (20.0, 0.0)
    _, after, hit = driver.curve(snapshot(moved, revision=1))

    assert hit is False
    assert after.total_length > before.total_length


def test_table_rebuilt_for_a_new_step(square):
    driver = FrameDriver(sample_step=0.1)
    driver.curve(snapshot(square))
    _, table, hit = driver.curve(snapshot(square), step=0.05)
    assert hit is False
    assert table.step == 0.05


def test_invalidate(square):
    driver = FrameDriver()
    driver.curve(snapshot(square))
    driver.invalidate("track-1")
    assert driver.get_stats()['cached_tracks'] == 0
    _, _, hit = driver.curve(snapshot(square))
    assert hit is False


# ── Frames ───────────────────────────────────────────────────────────────────

def test_render_frame(default_track):
    driver = FrameDriver()
    frame = driver.render(snapshot(default_track), drive=1.2, count=3)

    assert frame.skipped is False
    assert frame.reused is False
    assert frame.error is None
    assert frame.mode is SpeedMode.ARC_LENGTH
    assert [p.index for p in frame.placements] == [0, 1, 2]
    assert frame.total_length > 0

    again = driver.render(snapshot(default_track), drive=1.3, count=3)
    assert again.cache_hit is True


def test_degenerate_frame_reuses_previous_placements(degenerate):
    driver = FrameDriver()
    track = snapshot(degenerate)

    good = driver.render(track, drive=1.5, count=1, mode=SpeedMode.RAW_PARAMETER)
    assert good.skipped is False

    bad = driver.render(track, drive=1.0, count=1, mode=SpeedMode.RAW_PARAMETER)
    assert bad.reused is True
    assert bad.skipped is False
    assert bad.error == "degenerate_tangent"
    assert bad.placements == good.placements


def test_degenerate_frame_skipped_when_count_changes(degenerate):
    driver = FrameDriver()
    track = snapshot(degenerate)
    driver.render(track, drive=1.5, count=1, mode=SpeedMode.RAW_PARAMETER)

    frame = driver.render(track, drive=1.0, count=2, mode=SpeedMode.RAW_PARAMETER,
                          parameter_spacing=0.25)
    assert frame.skipped is True
    assert frame.reused is False
    assert frame.placements == []
    assert driver.get_stats()['skipped_frames'] == 1


def test_short_track_frame_is_skipped(square):
    driver = FrameDriver()
    frame = driver.render(snapshot(square[:2]), drive=0.0, count=1)
    assert frame.skipped is True
    assert frame.error == "insufficient_control_points"
    assert frame.total_length is None


def test_count_must_be_positive(square):
    with pytest.raises(ValueError):
        FrameDriver().render(snapshot(square), drive=0.0, count=0)


def test_geometry_errors_propagate(square):
    with pytest.raises(InsufficientControlPoints):
        FrameDriver().geometry(snapshot(square[:2]), rail_offset=15.0, rail_step=5.0, tie_spacing=30.0)


def test_geometry(square):
    geometry = FrameDriver().geometry(snapshot(square), rail_offset=1.0, rail_step=1.0, tie_spacing=5.0)
    assert len(geometry.segments) == 4
    assert geometry.ties


def test_singleton():
    driver = get_driver(sample_step=0.2)
    assert get_driver() is driver
    assert driver.sample_step == 0.2
    close_driver()
    assert get_driver() is not driver
