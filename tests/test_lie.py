import math

import numpy as np
import pytest

from autoslam.lie import (
    SE3,
    hat,
    matrix_from_quaternion,
    quaternion_from_matrix,
    right_jacobian,
    right_jacobian_inv,
    rot_z,
    so3_exp,
    so3_log,
    vee,
)

VECTORS = [
    np.array([0.1, -0.2, 0.3]),
    np.array([1.0, 0.5, -0.7]),
    np.array([1e-12, 0.0, 2e-12]),
    np.array([0.0, 0.0, math.pi - 1e-6]),
    np.array([-2.0, 1.0, 0.5]),
]


def test_hat_vee_round_trip_and_cross_product():
    a = np.array([1.0, 2.0, 3.0])
    b = np.array([-0.5, 0.25, 4.0])
    assert np.allclose(vee(hat(a)), a)
    assert np.allclose(hat(a) @ b, np.cross(a, b))
    assert np.allclose(hat(a), -hat(a).T)


@pytest.mark.parametrize("omega", VECTORS)
def test_exp_gives_rotation(omega):
    r = so3_exp(omega)
    assert np.allclose(r @ r.T, np.eye(3))
    assert np.linalg.det(r) == pytest.approx(1.0)


@pytest.mark.parametrize("omega", VECTORS)
def test_log_inverts_exp(omega):
    assert np.allclose(so3_log(so3_exp(omega)), omega, atol=1e-9)


@pytest.mark.parametrize("angle", [0.0, 0.3, -1.2, 2.5])
def test_rot_z_matches_exp(angle):
    assert np.allclose(rot_z(angle), so3_exp([0.0, 0.0, angle]))


def test_rot_z_quarter_turn_maps_x_to_y():
    assert np.allclose(rot_z(math.pi / 2) @ np.array([1.0, 0.0, 0.0]), [0.0, 1.0, 0.0])


@pytest.mark.parametrize("omega", VECTORS)
def test_right_jacobian_inverse(omega):
    assert np.allclose(right_jacobian(omega) @ right_jacobian_inv(omega), np.eye(3), atol=1e-8)


def test_right_jacobian_first_order_property():
    omega = np.array([0.4, -0.3, 0.8])
    delta = np.array([1e-6, -2e-6, 1.5e-6])
    lhs = so3_exp(omega + delta)
    rhs = so3_exp(omega) @ so3_exp(right_jacobian(omega) @ delta)
    assert np.allclose(lhs, rhs, atol=1e-10)


@pytest.mark.parametrize("omega", VECTORS)
def test_quaternion_round_trip(omega):
    r = so3_exp(omega)
    q = quaternion_from_matrix(r)
    assert np.linalg.norm(q) == pytest.approx(1.0)
    assert np.allclose(matrix_from_quaternion(q), r)


def test_identity_quaternion():
    assert np.allclose(quaternion_from_matrix(np.eye(3)), [1.0, 0.0, 0.0, 0.0])


def test_zero_quaternion_rejected():
    with pytest.raises(ValueError):
        matrix_from_quaternion([0.0, 0.0, 0.0, 0.0])


def _pose():
    return SE3(so3_exp([0.2, -0.4, 1.1]), [1.0, -2.0, 3.5])


def test_se3_inverse_composes_to_identity():
    t = _pose()
    assert np.allclose((t @ t.inverse()).as_matrix(), np.eye(4))
    assert np.allclose((t.inverse() @ t).as_matrix(), np.eye(4))


def test_se3_transform_matches_matrix():
    t = _pose()
    p = np.array([0.3, 0.7, -1.0])
    homogeneous = t.as_matrix() @ np.append(p, 1.0)
    assert np.allclose(t.transform(p), homogeneous[:3])
    pts = np.array([p, -p, 2 * p])
    assert np.allclose(t.transform(pts), [t.transform(x) for x in pts])


def test_se3_composition_is_sequential_transform():
    a = _pose()
    b = SE3(rot_z(0.5), [0.1, 0.2, 0.3])
    p = np.array([1.0, 2.0, 3.0])
    assert np.allclose((a @ b).transform(p), a.transform(b.transform(p)))


def test_se3_matrix_and_quaternion_round_trip():
    t = _pose()
    back = SE3.from_matrix(t.as_matrix())
    assert np.allclose(back.as_matrix(), t.as_matrix())
    assert np.allclose(matrix_from_quaternion(t.quaternion()), t.rotation)


def test_se3_matmul_rejects_other_types():
    with pytest.raises(TypeError):
        _pose() @ 3