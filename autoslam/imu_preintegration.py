"""IMU preintegration with first-order bias correction."""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

from autoslam.lie import (
    hat,
    matrix_from_quaternion,
    quaternion_from_matrix,
    right_jacobian,
    so3_exp,
)
from autoslam.measurements import IMU, NavState


@dataclass(eq=False)
class PreintegrationOptions:
    """Initial biases and measurement noise (standard deviations)."""

    init_bg: np.ndarray = field(default_factory=lambda: np.zeros(3))
    init_ba: np.ndarray = field(default_factory=lambda: np.zeros(3))
    noise_gyro: float = 1e-2
    noise_acce: float = 1e-1


class IMUPreintegration:
    """Accumulates IMU readings into relative rotation, velocity and position.

    The preintegrated quantities are ``d_rot``, ``d_vel`` and ``d_pos`` over
    ``dt`` seconds, with noise covariance ``cov`` (order: rotation, velocity,
    position) and Jacobians with respect to the biases.
    """

    def __init__(self, options: PreintegrationOptions | None = None) -> None:
        options = options if options is not None else PreintegrationOptions()
        self.dt = 0.0
        self.cov = np.zeros((9, 9))
        self.bg = np.array(options.init_bg, dtype=float).reshape(3)
        self.ba = np.array(options.init_ba, dtype=float).reshape(3)
        ng2 = float(np.float32(options.noise_gyro * options.noise_gyro))
        na2 = float(np.float32(options.noise_acce * options.noise_acce))
        self.noise_gyro_acce = np.diag([ng2, ng2, ng2, na2, na2, na2])

        self.d_rot = np.eye(3)
        self.d_vel = np.zeros(3)
        self.d_pos = np.zeros(3)

        self.d_rot_dbg = np.zeros((3, 3))
        self.d_vel_dbg = np.zeros((3, 3))
        self.d_vel_dba = np.zeros((3, 3))
        self.d_pos_dbg = np.zeros((3, 3))
        self.d_pos_dba = np.zeros((3, 3))

    def integrate(self, imu: IMU, dt: float) -> None:
        """Add one IMU reading held for ``dt`` seconds."""
        gyr = imu.gyro - self.bg
        acc = imu.acce - self.ba
        r = self.d_rot

        self.d_pos = self.d_pos + self.d_vel * dt + 0.5 * (r @ acc) * dt * dt
        self.d_vel = self.d_vel + (r @ acc) * dt

        a = np.eye(9)
        b = np.zeros((9, 6))
        acc_hat = hat(acc)
        dt2 = dt * dt

        a[3:6, 0:3] = -(r * dt) @ acc_hat
        a[6:9, 0:3] = -0.5 * (r @ acc_hat) * dt2
        a[6:9, 3:6] = dt * np.eye(3)

        b[3:6, 3:6] = r * dt
        b[6:9, 3:6] = 0.5 * r * dt2

        self.d_pos_dba = self.d_pos_dba + self.d_vel_dba * dt - 0.5 * r * dt2
        self.d_pos_dbg = (
            self.d_pos_dbg + self.d_vel_dbg * dt - (0.5 * r * dt2) @ acc_hat @ self.d_rot_dbg
        )
        self.d_vel_dba = self.d_vel_dba - r * dt
        self.d_vel_dbg = self.d_vel_dbg - (r * dt) @ acc_hat @ self.d_rot_dbg

        omega = gyr * dt
        right_j = right_jacobian(omega)
        delta_r = so3_exp(omega)
        self.d_rot = matrix_from_quaternion(quaternion_from_matrix(r @ delta_r))

        a[0:3, 0:3] = delta_r.T
        b[0:3, 0:3] = right_j * dt

        self.cov = a @ self.cov @ a.T + b @ self.noise_gyro_acce @ b.T
        self.d_rot_dbg = delta_r.T @ self.d_rot_dbg - right_j * dt
        self.dt += dt

    def delta_rotation(self, bg) -> np.ndarray:
        """Preintegrated rotation corrected to gyro bias ``bg``."""
        dbg = np.asarray(bg, dtype=float).reshape(3) - self.bg
        return self.d_rot @ so3_exp(self.d_rot_dbg @ dbg)

    def delta_velocity(self, bg, ba) -> np.ndarray:
        """Preintegrated velocity corrected to biases ``bg`` and ``ba``."""
        dbg = np.asarray(bg, dtype=float).reshape(3) - self.bg
        dba = np.asarray(ba, dtype=float).reshape(3) - self.ba
        return self.d_vel + self.d_vel_dbg @ dbg + self.d_vel_dba @ dba

    def delta_position(self, bg, ba) -> np.ndarray:
        """Preintegrated position corrected to biases ``bg`` and ``ba``."""
        dbg = np.asarray(bg, dtype=float).reshape(3) - self.bg
        dba = np.asarray(ba, dtype=float).reshape(3) - self.ba
        return self.d_pos + self.d_pos_dbg @ dbg + self.d_pos_dba @ dba

    def predict(self, start: NavState, grav=(0.0, 0.0, -9.81)) -> NavState:
        """State reached from ``start`` after the integrated interval."""
        g = np.asarray(grav, dtype=float).reshape(3)
        rj = start.rotation @ self.d_rot
        vj = start.rotation @ self.d_vel + start.velocity + g * self.dt
        pj = (
            start.rotation @ self.d_pos
            + start.position
            + start.velocity * self.dt
            + 0.5 * g * self.dt * self.dt
        )
        return NavState(start.timestamp + self.dt, rj, pj, vj, self.bg, self.ba)