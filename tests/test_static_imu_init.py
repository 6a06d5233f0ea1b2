import numpy as np
import pytest

from autoslam.measurements import IMU, Odom
from autoslam.static_imu_init import StaticIMUInit, StaticIMUInitOptions

GYRO_BIAS = np.array([0.001, -0.002, 0.0005])
ACCE = np.array([0.05, -0.03, 9.9])


def _feed(init, seconds, gyro_noise=0.0, seed=0):
    rng = np.random.default_rng(seed)
    results = []
    for i in range(int(seconds * 100) + 1):
        gyro = GYRO_BIAS + rng.normal(0.0, gyro_noise, 3) if gyro_noise else GYRO_BIAS
        results.append(init.add_imu(IMU(i * 0.01, gyro, ACCE)))
    return results


def test_static_data_initialises():
    init = StaticIMUInit()
    assert init.add_odom(Odom(0.0, 0, 0)) is True
    _feed(init, 11.0)
    assert init.init_success
    assert np.allclose(init.init_bg, GYRO_BIAS)
    assert np.linalg.norm(init.gravity) == pytest.approx(9.81)
    assert np.allclose(init.init_ba, ACCE + init.gravity)
    assert np.allclose(init.gravity / np.linalg.norm(init.gravity), -ACCE / np.linalg.norm(ACCE))


def test_returns_true_after_success():
    init = StaticIMUInit(StaticIMUInitOptions(use_speed_for_static_checking=False))
    _feed(init, 11.0)
    assert init.add_imu(IMU(20.0, GYRO_BIAS, ACCE)) is True
    assert init.add_odom(Odom(20.0, 100, 100)) is True


def test_too_short_does_not_initialise():
    init = StaticIMUInit(StaticIMUInitOptions(use_speed_for_static_checking=False))
    results = _feed(init, 5.0)
    assert not any(results)
    assert init.init_success is False


def test_moving_vehicle_waits():
    init = StaticIMUInit()
    init.add_odom(Odom(0.0, 10, 10))
    results = _feed(init, 12.0)
    assert not any(results)
    assert init.init_success is False


def test_noisy_gyro_rejected():
    init = StaticIMUInit(StaticIMUInitOptions(use_speed_for_static_checking=False))
    _feed(init, 11.0, gyro_noise=1.0)
    assert init.init_success is False
    assert np.linalg.norm(init.cov_gyro) > init.options.max_static_gyro_var