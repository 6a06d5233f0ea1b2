"""Error-state Kalman filter fusing IMU, wheel odometry, GNSS and pose observations."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

import numpy as np

from autoslam.lie import SE3, hat, so3_exp, so3_log
from autoslam.measurements import GNSS, IMU, NavState, Odom

logger = logging.getLogger(__name__)

_DIM = 18


@dataclass
class ESKFOptions:
    """Noise and sensor parameters of the filter.

    IMU noise terms are discrete-time standard deviations.
    """

    imu_dt: float = 0.01
    gyro_var: float = 1e-5
    acce_var: float = 1e-2
    bias_gyro_var: float = 1e-6
    bias_acce_var: float = 1e-4

    odom_var: float = 0.5
    odom_span: float = 0.1
    wheel_radius: float = 0.155
    circle_pulse: float = 1024.0

    gnss_pos_noise: float = 0.1
    gnss_height_noise: float = 0.1
    gnss_ang_noise: float = math.radians(1.0)

    update_bias_gyro: bool = True
    update_bias_acce: bool = True


class ESKF:
    """18-dimensional error-state Kalman filter.

    State order: position, velocity, rotation, gyro bias, accelerometer bias,
    gravity. The nominal state is kept in ``position``, ``velocity``,
    ``rotation``, ``bg``, ``ba`` and ``gravity``; its covariance in ``cov``.
    """

    def __init__(self, options: ESKFOptions | None = None) -> None:
        self.options = options if options is not None else ESKFOptions()
        self.current_time = 0.0
        self.position = np.zeros(3)
        self.velocity = np.zeros(3)
        self.rotation = np.eye(3)
        self.bg = np.zeros(3)
        self.ba = np.zeros(3)
        self.gravity = np.array([0.0, 0.0, -9.8])
        self.cov = np.eye(_DIM)
        self._dx = np.zeros(_DIM)
        self._q = np.zeros((_DIM, _DIM))
        self._odom_noise = np.zeros((3, 3))
        self._gnss_noise = np.zeros((6, 6))
        self._first_gnss = True
        self._build_noise(self.options)

    def set_initial_conditions(
        self, options: ESKFOptions, init_bg, init_ba, gravity=(0.0, 0.0, -9.8)
    ) -> None:
        """Set noise options, initial biases and gravity; reset the covariance."""
        self._build_noise(options)
        self.options = options
        self.bg = np.array(init_bg, dtype=float).reshape(3)
        self.ba = np.array(init_ba, dtype=float).reshape(3)
        self.gravity = np.array(gravity, dtype=float).reshape(3)
        self.cov = np.eye(_DIM) * 1e-4

    def predict(self, imu: IMU) -> bool:
        """Propagate the state with one IMU reading.

        Returns False when the time gap is too large (the reading only moves
        the clock). Raises ValueError for a reading older than the filter time.
        """
        if imu.timestamp < self.current_time:
            raise ValueError(
                f"IMU time {imu.timestamp} is earlier than filter time {self.current_time}"
            )

        dt = imu.timestamp - self.current_time
        if dt > 5 * self.options.imu_dt or dt < 0:
            logger.info("skip this imu because dt = %g", dt)
            self.current_time = imu.timestamp
            return False

        acc = imu.acce - self.ba
        acc_world = self.rotation @ acc
        gyr = imu.gyro - self.bg

        new_p = (
            self.position
            + self.velocity * dt
            + 0.5 * acc_world * dt * dt
            + 0.5 * self.gravity * dt * dt
        )
        new_v = self.velocity + acc_world * dt + self.gravity * dt
        new_r = self.rotation @ so3_exp(gyr * dt)

        self.rotation = new_r
        self.velocity = new_v
        self.position = new_p

        eye3 = np.eye(3)
        f = np.eye(_DIM)
        f[0:3, 3:6] = eye3 * dt
        f[3:6, 6:9] = -self.rotation @ hat(acc) * dt
        f[3:6, 12:15] = -self.rotation * dt
        f[3:6, 15:18] = eye3 * dt
        f[6:9, 6:9] = so3_exp(-gyr * dt)
        f[6:9, 9:12] = -eye3 * dt

        self._dx = f @ self._dx
        self.cov = f @ self.cov @ f.T + self._q
        self.current_time = imu.timestamp
        return True

    def observe_wheel_speed(self, odom: Odom) -> None:
        """Correct the velocity with the mean forward speed of the two wheels."""
        if odom.timestamp < self.current_time:
            raise ValueError(
                f"odom time {odom.timestamp} is earlier than filter time {self.current_time}"
            )
        h = np.zeros((3, _DIM))
        h[0:3, 3:6] = np.eye(3)

        k = self.cov @ h.T @ np.linalg.inv(h @ self.cov @ h.T + self._odom_noise)

        opts = self.options
        scale = opts.wheel_radius / opts.circle_pulse * 2 * math.pi / opts.odom_span
        velo_l = scale * odom.left_pulse
        velo_r = scale * odom.right_pulse
        average_vel = 0.5 * (velo_l + velo_r)

        vel_world = self.rotation @ np.array([average_vel, 0.0, 0.0])

        self._dx = k @ (vel_world - self.velocity)
        self.cov = (np.eye(_DIM) - k @ h) @ self.cov
        self._update_and_reset()

    def observe_gps(self, gnss: GNSS) -> None:
        """Use a GNSS pose; the first one sets the state, later ones correct it."""
        if gnss.unix_time < self.current_time:
            raise ValueError(
                f"GNSS time {gnss.unix_time} is earlier than filter time {self.current_time}"
            )

        if self._first_gnss:
            self.rotation = gnss.utm_pose.rotation.copy()
            self.position = gnss.utm_pose.translation.copy()
            self._first_gnss = False
            self.current_time = gnss.unix_time
            return

        if not gnss.heading_valid:
            raise ValueError("GNSS observation requires a valid heading")
        self.observe_se3(gnss.utm_pose, self.options.gnss_pos_noise, self.options.gnss_ang_noise)
        self.current_time = gnss.unix_time

    def observe_se3(
        self, pose: SE3, trans_noise: float = 0.1, ang_noise: float = math.radians(1.0)
    ) -> None:
        """Correct position and rotation with an observed pose."""
        h = np.zeros((6, _DIM))
        h[0:3, 0:3] = np.eye(3)
        h[3:6, 6:9] = np.eye(3)

        v = np.diag([trans_noise] * 3 + [ang_noise] * 3)
        k = self.cov @ h.T @ np.linalg.inv(h @ self.cov @ h.T + v)

        innov = np.concatenate(
            (
                pose.translation - self.position,
                so3_log(self.rotation.T @ pose.rotation),
            )
        )

        self._dx = k @ innov
        self.cov = (np.eye(_DIM) - k @ h) @ self.cov
        self._update_and_reset()

    def nominal_state(self) -> NavState:
        return NavState(
            self.current_time, self.rotation, self.position, self.velocity, self.bg, self.ba
        )

    def nominal_se3(self) -> SE3:
        return SE3(self.rotation, self.position)

    def set_x(self, x: NavState, grav) -> None:
        """Overwrite the nominal state and gravity."""
        self.current_time = x.timestamp
        self.rotation = x.rotation.copy()
        self.position = x.position.copy()
        self.velocity = x.velocity.copy()
        self.bg = x.bg.copy()
        self.ba = x.ba.copy()
        self.gravity = np.array(grav, dtype=float).reshape(3)

    def set_cov(self, cov) -> None:
        self.cov = np.array(cov, dtype=float).reshape(_DIM, _DIM)

    def _build_noise(self, options: ESKFOptions) -> None:
        ev = options.acce_var
        et = options.gyro_var
        eg = options.bias_gyro_var
        ea = options.bias_acce_var
        self._q = np.diag([0.0] * 3 + [ev] * 3 + [et] * 3 + [eg] * 3 + [ea] * 3 + [0.0] * 3)

        # odometry noise comes from the options already in use
        o2 = self.options.odom_var * self.options.odom_var
        self._odom_noise = np.diag([o2, o2, o2])

        gp2 = options.gnss_pos_noise * options.gnss_pos_noise
        gh2 = options.gnss_height_noise * options.gnss_height_noise
        ga2 = options.gnss_ang_noise * options.gnss_ang_noise
        self._gnss_noise = np.diag([gp2, gp2, gh2, ga2, ga2, ga2])

    def _update_and_reset(self) -> None:
        dx = self._dx
        self.position = self.position + dx[0:3]
        self.velocity = self.velocity + dx[3:6]
        self.rotation = self.rotation @ so3_exp(dx[6:9])
        if self.options.update_bias_gyro:
            self.bg = self.bg + dx[9:12]
        if self.options.update_bias_acce:
            self.ba = self.ba + dx[12:15]
        self.gravity = self.gravity + dx[15:18]
        self._project_cov()
        self._dx = np.zeros(_DIM)

    def _project_cov(self) -> None:
        j = np.eye(_DIM)
        j[6:9, 6:9] = np.eye(3) - 0.5 * hat(self._dx[6:9])
        self.cov = j @ self.cov @ j.T