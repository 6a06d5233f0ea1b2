"""Preintegration residual linking two consecutive navigation states."""

from __future__ import annotations

import numpy as np

from autoslam.imu_preintegration import IMUPreintegration
from autoslam.lie import SE3, hat, right_jacobian, right_jacobian_inv, so3_log


def _vec3(v) -> np.ndarray:
    return np.asarray(v, dtype=float).reshape(3)


class EdgeInertial:
    """Nine-dimensional preintegration residual (rotation, velocity, position).

    It connects the pose, velocity, gyro bias and accelerometer bias of one
    state with the pose and velocity of the next. Pose increments are taken as
    a right-multiplied rotation followed by an additive translation, so each
    pose Jacobian has six columns: rotation first, then translation.
    """

    def __init__(self, preinteg: IMUPreintegration, gravity, weight: float = 1.0) -> None:
        self.preint = preinteg
        self.dt = preinteg.dt
        self.gravity = _vec3(gravity)
        self.information = np.linalg.inv(preinteg.cov) * weight

    def compute_error(self, pose1: SE3, v1, bg1, ba1, pose2: SE3, v2) -> np.ndarray:
        """Residual between the preintegrated motion and the two states."""
        v1, v2, bg, ba = _vec3(v1), _vec3(v2), _vec3(bg1), _vec3(ba1)
        dt, g = self.dt, self.gravity

        d_rot = self.preint.delta_rotation(bg)
        d_vel = self.preint.delta_velocity(bg, ba)
        d_pos = self.preint.delta_position(bg, ba)

        r1t = pose1.rotation.T
        er = so3_log(d_rot.T @ r1t @ pose2.rotation)
        ev = r1t @ (v2 - v1 - g * dt) - d_vel
        ep = r1t @ (pose2.translation - pose1.translation - v1 * dt - g * dt * dt / 2) - d_pos
        return np.concatenate((er, ev, ep))

    def linearize(self, pose1: SE3, v1, bg1, ba1, pose2: SE3, v2) -> tuple[np.ndarray, ...]:
        """Jacobians of the residual with respect to the six connected variables."""
        v1, v2, bg = _vec3(v1), _vec3(v2), _vec3(bg1)
        dt, g = self.dt, self.gravity
        pre = self.preint
        dbg = bg - pre.bg

        r1 = pose1.rotation
        r1t = r1.T
        r2 = pose2.rotation
        pi, pj = pose1.translation, pose2.translation

        d_rot = pre.delta_rotation(bg)
        e_rot = d_rot.T @ r1t @ r2
        inv_jr = right_jacobian_inv(so3_log(e_rot))

        j_pose1 = np.zeros((9, 6))
        j_pose1[0:3, 0:3] = -inv_jr @ (r2.T @ r1)
        j_pose1[3:6, 0:3] = hat(r1t @ (v2 - v1 - g * dt))
        j_pose1[6:9, 0:3] = hat(r1t @ (pj - pi - v1 * dt - 0.5 * g * dt * dt))
        j_pose1[6:9, 3:6] = -r1t

        j_v1 = np.zeros((9, 3))
        j_v1[3:6] = -r1t
        j_v1[6:9] = -r1t * dt

        j_bg = np.zeros((9, 3))
        j_bg[0:3] = -inv_jr @ e_rot.T @ right_jacobian(pre.d_rot_dbg @ dbg) @ pre.d_rot_dbg
        j_bg[3:6] = -pre.d_vel_dbg
        j_bg[6:9] = -pre.d_pos_dbg

        j_ba = np.zeros((9, 3))
        j_ba[3:6] = -pre.d_vel_dba
        j_ba[6:9] = -pre.d_pos_dba

        j_pose2 = np.zeros((9, 6))
        j_pose2[0:3, 0:3] = inv_jr
        j_pose2[6:9, 3:6] = r1t

        j_v2 = np.zeros((9, 3))
        j_v2[3:6] = r1t

        return j_pose1, j_v1, j_bg, j_ba, j_pose2, j_v2

    def hessian(self, pose1: SE3, v1, bg1, ba1, pose2: SE3, v2) -> np.ndarray:
        """24x24 Gauss-Newton Hessian J^T * information * J."""
        j = np.hstack(self.linearize(pose1, v1, bg1, ba1, pose2, v2))
        return j.T @ self.information @ j