"""Rotation and rigid-transform helpers on SO(3) and SE(3)."""

from __future__ import annotations

import math
from dataclasses import dataclass, field

import numpy as np

_EPS = 1e-10


def _vec3(v) -> np.ndarray:
    return np.asarray(v, dtype=float).reshape(3)


def hat(v) -> np.ndarray:
    """Skew-symmetric matrix of a 3-vector, so that hat(a) @ b == cross(a, b)."""
    x, y, z = _vec3(v)
    return np.array([[0.0, -z, y], [z, 0.0, -x], [-y, x, 0.0]])


def vee(m) -> np.ndarray:
    """Inverse of :func:`hat`."""
    m = np.asarray(m, dtype=float)
    return np.array([m[2, 1], m[0, 2], m[1, 0]])


def matrix_from_quaternion(q) -> np.ndarray:
    """Rotation matrix of a quaternion given as (w, x, y, z); it is normalised first."""
    q = np.asarray(q, dtype=float).reshape(4)
    norm = float(np.linalg.norm(q))
    if norm == 0.0:
        raise ValueError("zero quaternion has no rotation")
    w, x, y, z = q / norm
    return np.array(
        [
            [1 - 2 * (y * y + z * z), 2 * (x * y - w * z), 2 * (x * z + w * y)],
            [2 * (x * y + w * z), 1 - 2 * (x * x + z * z), 2 * (y * z - w * x)],
            [2 * (x * z - w * y), 2 * (y * z + w * x), 1 - 2 * (x * x + y * y)],
        ]
    )


def quaternion_from_matrix(rotation) -> np.ndarray:
    """Unit quaternion (w, x, y, z) of a rotation matrix."""
    m = np.asarray(rotation, dtype=float).reshape(3, 3)
    trace = m[0, 0] + m[1, 1] + m[2, 2]
    q = np.zeros(4)
    if trace > 0.0:
        s = math.sqrt(trace + 1.0)
        q[0] = 0.5 * s
        s = 0.5 / s
        q[1] = (m[2, 1] - m[1, 2]) * s
        q[2] = (m[0, 2] - m[2, 0]) * s
        q[3] = (m[1, 0] - m[0, 1]) * s
    else:
        i = 0
        if m[1, 1] > m[0, 0]:
            i = 1
        if m[2, 2] > m[i, i]:
            i = 2
        j = (i + 1) % 3
        k = (j + 1) % 3
        s = math.sqrt(m[i, i] - m[j, j] - m[k, k] + 1.0)
        q[i + 1] = 0.5 * s
        s = 0.5 / s
        q[0] = (m[k, j] - m[j, k]) * s
        q[j + 1] = (m[j, i] + m[i, j]) * s
        q[k + 1] = (m[k, i] + m[i, k]) * s
    return q / np.linalg.norm(q)


def so3_exp(omega) -> np.ndarray:
    """Rotation matrix of a rotation vector."""
    omega = _vec3(omega)
    theta = float(np.linalg.norm(omega))
    if theta < _EPS:
        theta_sq = theta * theta
        real = 1.0 - theta_sq / 8.0
        imag = 0.5 - theta_sq / 48.0
    else:
        real = math.cos(0.5 * theta)
        imag = math.sin(0.5 * theta) / theta
    return matrix_from_quaternion(np.concatenate(([real], imag * omega)))


def so3_log(rotation) -> np.ndarray:
    """Rotation vector of a rotation matrix."""
    q = quaternion_from_matrix(rotation)
    w = q[0]
    vec = q[1:]
    squared_n = float(vec @ vec)
    if squared_n < _EPS * _EPS:
        factor = 2.0 / w - 2.0 / 3.0 * squared_n / (w * w * w)
    else:
        n = math.sqrt(squared_n)
        if abs(w) < _EPS:
            factor = (math.pi if w > 0 else -math.pi) / n
        else:
            factor = 2.0 * math.atan(n / w) / n
    return factor * vec


def right_jacobian(omega) -> np.ndarray:
    """Right Jacobian of SO(3) at a rotation vector."""
    omega = _vec3(omega)
    theta = float(np.linalg.norm(omega))
    k = hat(omega)
    if theta < _EPS:
        return np.eye(3) - 0.5 * k
    return (
        np.eye(3)
        - (1.0 - math.cos(theta)) / theta**2 * k
        + (theta - math.sin(theta)) / theta**3 * (k @ k)
    )


def right_jacobian_inv(omega) -> np.ndarray:
    """Inverse of the right Jacobian of SO(3) at a rotation vector."""
    omega = _vec3(omega)
    theta = float(np.linalg.norm(omega))
    k = hat(omega)
    if theta < _EPS:
        return np.eye(3) + 0.5 * k
    coeff = 1.0 / theta**2 - (1.0 + math.cos(theta)) / (2.0 * theta * math.sin(theta))
    return np.eye(3) + 0.5 * k + coeff * (k @ k)


def rot_z(angle: float) -> np.ndarray:
    """Rotation matrix about the z axis by ``angle`` radians."""
    c, s = math.cos(angle), math.sin(angle)
    return np.array([[c, -s, 0.0], [s, c, 0.0], [0.0, 0.0, 1.0]])


@dataclass(eq=False)
class SE3:
    """Rigid transform made of a rotation matrix and a translation."""

    rotation: np.ndarray = field(default_factory=lambda: np.eye(3))
    translation: np.ndarray = field(default_factory=lambda: np.zeros(3))

    def __post_init__(self) -> None:
        self.rotation = np.array(self.rotation, dtype=float).reshape(3, 3)
        self.translation = np.array(self.translation, dtype=float).reshape(3)

    def inverse(self) -> "SE3":
        rt = self.rotation.T
        return SE3(rt, -rt @ self.translation)

    def __matmul__(self, other):
        if not isinstance(other, SE3):
            return NotImplemented
        return SE3(
            self.rotation @ other.rotation,
            self.rotation @ other.translation + self.translation,
        )

    def transform(self, point) -> np.ndarray:
        """Apply the transform to one point or to an (N, 3) array of points."""
        p = np.asarray(point, dtype=float)
        if p.ndim == 1:
            return self.rotation @ p + self.translation
        return p @ self.rotation.T + self.translation

    def as_matrix(self) -> np.ndarray:
        m = np.eye(4)
        m[:3, :3] = self.rotation
        m[:3, 3] = self.translation
        return m

    def quaternion(self) -> np.ndarray:
        """Unit quaternion (w, x, y, z) of the rotation part."""
        return quaternion_from_matrix(self.rotation)

    @classmethod
    def from_matrix(cls, matrix) -> "SE3":
        m = np.asarray(matrix, dtype=float)
        rotation = matrix_from_quaternion(quaternion_from_matrix(m[:3, :3]))
        return cls(rotation, m[:3, 3])