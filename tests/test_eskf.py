import numpy as np
import pytest

from autoslam.eskf import ESKF, ESKFOptions
from autoslam.lie import SE3, rot_z, so3_log
from autoslam.measurements import GNSS, IMU, NavState, Odom

GRAVITY = np.array([0.0, 0.0, -9.8])


def _stationary_imu(t):
    return IMU(t, np.zeros(3), -GRAVITY)


def _diag_sum(matrix):
    return float(np.diagonal(matrix).sum())


def test_predict_skips_large_gap_and_moves_clock():
    eskf = ESKF()
    assert eskf.predict(_stationary_imu(3.0)) is False
    assert eskf.current_time == 3.0
    assert np.allclose(eskf.position, 0.0)


def test_predict_rejects_older_reading():
    eskf = ESKF()
    eskf.predict(_stationary_imu(3.0))
    with pytest.raises(ValueError):
        eskf.predict(_stationary_imu(2.0))


def test_stationary_prediction_keeps_state_and_grows_covariance():
    eskf = ESKF()
    sum_before = _diag_sum(eskf.cov)
    results = [eskf.predict(_stationary_imu(0.01 * i)) for i in range(20)]
    assert all(results)
    assert np.allclose(eskf.position, 0.0, atol=1e-12)
    assert np.allclose(eskf.velocity, 0.0, atol=1e-12)
    assert np.allclose(eskf.rotation, np.eye(3))
    assert _diag_sum(eskf.cov) > sum_before
    assert np.allclose(eskf.cov, eskf.cov.T)


def test_set_initial_conditions_resets_covariance():
    eskf = ESKF()
    bg = np.array([0.01, 0.02, 0.03])
    ba = np.array([0.1, 0.2, 0.3])
    eskf.set_initial_conditions(ESKFOptions(), bg, ba, GRAVITY)
    assert np.allclose(eskf.cov, np.eye(18) * 1e-4)
    assert np.allclose(eskf.bg, bg)
    assert np.allclose(eskf.ba, ba)
    assert np.allclose(eskf.gravity, GRAVITY)


def test_set_x_round_trip():
    eskf = ESKF()
    state = NavState(5.0, rot_z(0.2), [1.0, 2.0, 3.0], [0.1, 0.0, 0.0], [0.01] * 3, [0.02] * 3)
    grav = [0.0, 0.0, -9.81]
    eskf.set_x(state, grav)
    out = eskf.nominal_state()
    assert out.timestamp == 5.0
    assert np.allclose(out.rotation, state.rotation)
    assert np.allclose(out.position, state.position)
    assert np.allclose(out.velocity, state.velocity)
    assert np.allclose(out.bg, state.bg)
    assert np.allclose(out.ba, state.ba)
    assert np.allclose(eskf.gravity, grav)
    se3 = eskf.nominal_se3()
    assert np.allclose(se3.translation, state.position)
    assert np.allclose(se3.rotation, state.rotation)


def test_observe_se3_moves_state_towards_observation():
    eskf = ESKF()
    target = SE3(rot_z(0.3), [1.0, 2.0, 3.0])
    errors = []
    for _ in range(5):
        eskf.observe_se3(target)
        errors.append(np.linalg.norm(eskf.position - target.translation))
    assert all(b < a for a, b in zip(errors, errors[1:]))
    assert errors[0] < np.linalg.norm(target.translation)
    ang_err = np.linalg.norm(so3_log(eskf.rotation.T @ target.rotation))
    assert ang_err < 0.3


def test_observe_se3_reduces_covariance():
    eskf = ESKF()
    before = eskf.cov.copy()
    eskf.observe_se3(SE3(np.eye(3), [0.5, 0.0, 0.0]))
    assert _diag_sum(eskf.cov[0:3, 0:3]) < _diag_sum(before[0:3, 0:3])
    assert _diag_sum(eskf.cov[6:9, 6:9]) < _diag_sum(before[6:9, 6:9])


def test_set_cov_is_used():
    eskf = ESKF()
    cov = np.eye(18) * 1e-4
    eskf.set_cov(cov)
    assert np.allclose(eskf.cov, cov)


def _predict_with_rotation(eskf):
    gyro = np.array([0.0, 0.0, 0.2])
    for i in range(10):
        eskf.predict(IMU(0.01 * i, gyro, -GRAVITY))
    eskf.observe_se3(SE3(rot_z(0.5), eskf.position))


def test_gyro_bias_updated_by_default():
    eskf = ESKF()
    _predict_with_rotation(eskf)
    assert np.linalg.norm(eskf.bg) > 0.0


def test_gyro_bias_frozen_when_disabled():
    eskf = ESKF(ESKFOptions(update_bias_gyro=False))
    _predict_with_rotation(eskf)
    assert np.allclose(eskf.bg, 0.0)


def test_wheel_speed_updates_forward_velocity():
    eskf = ESKF()
    eskf.observe_wheel_speed(Odom(0.0, 100, 100))
    assert eskf.velocity[0] > 0.0
    assert eskf.velocity[1] == pytest.approx(0.0, abs=1e-12)
    assert eskf.velocity[2] == pytest.approx(0.0, abs=1e-12)
    assert np.allclose(eskf.position, 0.0)


def test_wheel_speed_zero_pulses_keeps_zero_velocity():
    eskf = ESKF()
    eskf.observe_wheel_speed(Odom(0.0, 0, 0))
    assert np.allclose(eskf.velocity, 0.0)


def test_wheel_speed_rejects_old_reading():
    eskf = ESKF()
    eskf.predict(_stationary_imu(3.0))
    with pytest.raises(ValueError):
        eskf.observe_wheel_speed(Odom(1.0, 0, 0))


def test_first_gps_sets_pose():
    eskf = ESKF()
    pose = SE3(rot_z(0.7), [10.0, 20.0, 1.0])
    eskf.observe_gps(GNSS(unix_time=4.0, heading_valid=True, utm_pose=pose))
    assert np.allclose(eskf.position, pose.translation)
    assert np.allclose(eskf.rotation, pose.rotation)
    assert eskf.current_time == 4.0


def test_gps_without_heading_rejected_after_first():
    eskf = ESKF()
    eskf.observe_gps(GNSS(unix_time=1.0, heading_valid=True, utm_pose=SE3()))
    with pytest.raises(ValueError):
        eskf.observe_gps(GNSS(unix_time=2.0, heading_valid=False, utm_pose=SE3()))


def test_gps_older_than_filter_rejected():
    eskf = ESKF()
    eskf.observe_gps(GNSS(unix_time=10.0, heading_valid=True, utm_pose=SE3()))
    with pytest.raises(ValueError):
        eskf.observe_gps(GNSS(unix_time=5.0, heading_valid=True, utm_pose=SE3()))


def test_second_gps_corrects_and_advances_clock():
    eskf = ESKF()
    eskf.observe_gps(GNSS(unix_time=1.0, heading_valid=True, utm_pose=SE3()))
    target = SE3(np.eye(3), [1.0, 0.0, 0.0])
    eskf.observe_gps(GNSS(unix_time=2.0, heading_valid=True, utm_pose=target))
    assert eskf.current_time == 2.0
    assert 0.0 < eskf.position[0] < 1.0