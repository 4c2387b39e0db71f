import math

import numpy as np
import pytest

from lorenzattractor import config
from lorenzattractor.controller.viewer import ViewerController
from lorenzattractor.model.buffer import TrajectoryBuffer
from lorenzattractor.model.camera import (
    CameraPreset,
    FollowMode,
    follow_target,
    orbit_camera_position,
    segment_styles,
    track_camera_position,
)


def make_snapshot(n=9, offset=0.0):
    buf = TrajectoryBuffer(capacity=100)
    idx = np.arange(n, dtype=float) + offset
    buf.extend(np.column_stack([idx, idx + 100.0, idx + 200.0]))
    return buf.snapshot(sequence=1)


@pytest.mark.parametrize("angle", [0.0, math.pi / 2, math.pi, 7.5])
def test_orbit_position_on_circle(angle):
    target = np.array([1.0, 2.0, 3.0])
    pos = orbit_camera_position(target, angle, radius=50.0)
    assert pos[1] == pytest.approx(2.0)
    assert np.hypot(pos[0] - 1.0, pos[2] - 3.0) == pytest.approx(50.0)
    assert pos[0] == pytest.approx(1.0 + 50.0 * math.cos(angle))
    assert pos[2] == pytest.approx(3.0 + 50.0 * math.sin(angle))


def test_orbit_wraps_with_full_turn():
    target = np.zeros(3)
    np.testing.assert_allclose(
        orbit_camera_position(target, 0.3), orbit_camera_position(target, 0.3 + 2 * math.pi), atol=1e-9
    )


def test_track_position_moves_with_target():
    pos = track_camera_position(np.array([0.0, 0.0, 100.0]), np.zeros(3), np.array([1.0, 2.0, 3.0]))
    np.testing.assert_allclose(pos, [1.0, 2.0, 103.0])


def test_follow_target_is_last_point_of_segment():
    snap = make_snapshot(9)
    np.testing.assert_array_equal(follow_target(snap, 1), [2.0, 102.0, 202.0])
    np.testing.assert_array_equal(follow_target(snap, 2), [5.0, 105.0, 205.0])
    np.testing.assert_array_equal(follow_target(snap, 3), [8.0, 108.0, 208.0])


def test_follow_target_without_data():
    assert follow_target(None, 1) is None
    assert follow_target(make_snapshot(2), 1) is None  # first third is empty
    np.testing.assert_array_equal(follow_target(make_snapshot(2), 3), [1.0, 101.0, 201.0])


def test_segment_styles_full_opacity_when_not_following():
    styles = segment_styles(following=False)
    assert [s.color for s in styles] == ["blue", "red", "green"]
    assert all(s.opacity == 1.0 for s in styles)


@pytest.mark.parametrize("segment", [1, 2, 3])
def test_segment_styles_dim_other_segments(segment):
    styles = segment_styles(following=True, segment=segment)
    for index, style in enumerate(styles, start=1):
        expected = 1.0 if index == segment else config.DIMMED_OPACITY
        assert style.opacity == expected


def test_presets():
    np.testing.assert_array_equal(CameraPreset.STANDARD.position, [0.0, 0.0, 100.0])
    np.testing.assert_array_equal(CameraPreset.SIDE.position, [100.0, 0.0, 0.0])
    np.testing.assert_array_equal(CameraPreset.TOP.position, [0.0, 100.0, 0.0])


def test_controller_orbits_followed_segment(qapp):
    ctl = ViewerController(angle_step=0.01)
    snap = make_snapshot(9)
    ctl.on_snapshot(snap)
    ctl.start_following(3)

    first = ctl.advance_frame()
    second = ctl.advance_frame()

    target = np.array([8.0, 108.0, 208.0])
    np.testing.assert_array_equal(first.target, target)
    np.testing.assert_allclose(first.camera_position, orbit_camera_position(target, 0.01, config.ORBIT_RADIUS))
    np.testing.assert_allclose(second.camera_position, orbit_camera_position(target, 0.02, config.ORBIT_RADIUS))
    assert first.axes_visible is False
    assert [s.opacity for s in first.segment_styles] == [config.DIMMED_OPACITY, config.DIMMED_OPACITY, 1.0]


def test_controller_target_follows_new_snapshots(qapp):
    ctl = ViewerController()
    ctl.on_snapshot(make_snapshot(9))
    ctl.start_following(1)
    ctl.advance_frame()
    ctl.on_snapshot(make_snapshot(9, offset=10.0))
    directive = ctl.advance_frame()
    np.testing.assert_array_equal(directive.target, [12.0, 112.0, 212.0])


def test_controller_track_mode(qapp):
    ctl = ViewerController()
    ctl.on_snapshot(make_snapshot(9))
    ctl.start_following(2, mode=FollowMode.TRACK)
    first = ctl.advance_frame()
    np.testing.assert_allclose(first.camera_position, CameraPreset.STANDARD.position + [5.0, 105.0, 205.0])

    ctl.on_snapshot(make_snapshot(9, offset=1.0))
    second = ctl.advance_frame()
    np.testing.assert_allclose(second.camera_position - second.target, first.camera_position - first.target)


def test_controller_without_snapshot_keeps_camera(qapp):
    ctl = ViewerController()
    ctl.start_following(1)
    directive = ctl.advance_frame()
    np.testing.assert_array_equal(directive.camera_position, CameraPreset.STANDARD.position)
    assert ctl.state.orbit_angle == 0.0


def test_switch_camera_stops_following_and_targets_center(qapp):
    ctl = ViewerController()
    emitted = []
    ctl.directive_changed.connect(emitted.append)
    ctl.on_snapshot(make_snapshot(9))
    ctl.on_center_changed(np.array([1.0, 2.0, 3.0]))
    ctl.start_following(2)
    ctl.advance_frame()

    directive = ctl.switch_camera(CameraPreset.SIDE)
    assert ctl.state.following is False
    np.testing.assert_array_equal(directive.camera_position, [100.0, 0.0, 0.0])
    np.testing.assert_array_equal(directive.target, [1.0, 2.0, 3.0])
    assert directive.axes_visible is True
    assert all(s.opacity == 1.0 for s in directive.segment_styles)
    assert len(emitted) == 1 and emitted[0] is directive


def test_stop_following_restores_axes(qapp):
    ctl = ViewerController()
    ctl.start_following(1)
    assert ctl.directive().axes_visible is False
    ctl.stop_following()
    assert ctl.directive().axes_visible is True


@pytest.mark.parametrize("segment", [0, 4])
def test_start_following_rejects_unknown_segment(qapp, segment):
    with pytest.raises(ValueError):
        ViewerController().start_following(segment)


def test_stop_following_emits_directive_in_place(qapp):
    ctl = ViewerController()
    emitted = []
    ctl.directive_changed.connect(emitted.append)
    ctl.on_snapshot(make_snapshot(9))
    ctl.start_following(3)
    followed = ctl.advance_frame()

    directive = ctl.stop_following()
    assert len(emitted) == 1 and emitted[0] is directive
    np.testing.assert_array_equal(directive.camera_position, followed.camera_position)
    assert all(s.opacity == 1.0 for s in directive.segment_styles)


def test_poll_frame_skips_unchanged_frames(qapp):
    ctl = ViewerController()
    ctl.on_snapshot(make_snapshot(9))

    assert ctl.poll_frame() is not None
    assert ctl.poll_frame() is None
    assert ctl.poll_frame() is None

    ctl.start_following(1)
    following = [ctl.poll_frame() for _ in range(3)]
    assert all(d is not None for d in following)

    ctl.stop_following()
    assert ctl.poll_frame() is None


def test_poll_frame_after_style_change_without_emit(qapp):
    ctl = ViewerController()
    ctl.poll_frame()
    ctl.state.following = True
    ctl.state.follow_segment = 2
    ctl.poll_frame()
    ctl.state.following = False

    directive = ctl.poll_frame()
    assert directive is not None
    assert directive.axes_visible is True
    assert ctl.poll_frame() is None


def test_set_follow_mode_switches_running_follow(qapp):
    ctl = ViewerController()
    ctl.on_snapshot(make_snapshot(9))
    ctl.start_following(2)
    ctl.advance_frame()
    angle = ctl.state.orbit_angle

    ctl.set_follow_mode(FollowMode.TRACK)
    before = ctl.directive()
    ctl.on_snapshot(make_snapshot(9, offset=2.0))
    after = ctl.advance_frame()

    assert ctl.state.orbit_angle == angle
    np.testing.assert_allclose(after.camera_position - after.target, before.camera_position - before.target)


def test_reset_returns_to_standard_view(qapp):
    ctl = ViewerController()
    emitted = []
    ctl.directive_changed.connect(emitted.append)
    ctl.on_snapshot(make_snapshot(9))
    ctl.on_center_changed(np.array([1.0, 2.0, 3.0]))
    ctl.start_following(1, mode=FollowMode.TRACK)
    ctl.advance_frame()

    directive = ctl.reset()
    assert len(emitted) == 1 and emitted[0] is directive
    assert ctl.state.following is False
    assert ctl.state.follow_segment is None
    assert ctl.state.follow_mode is FollowMode.ORBIT
    assert ctl.state.orbit_angle == 0.0
    np.testing.assert_array_equal(directive.camera_position, CameraPreset.STANDARD.position)
    np.testing.assert_array_equal(ctl.state.center, np.zeros(3))

    ctl.start_following(1)
    np.testing.assert_array_equal(ctl.advance_frame().camera_position, CameraPreset.STANDARD.position)
