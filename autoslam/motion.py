"""A vehicle driving on a circle at constant speed and yaw rate."""

from __future__ import annotations

import argparse
import math
import time
from itertools import islice
from typing import Iterator

import numpy as np

from autoslam.lie import matrix_from_quaternion, quaternion_from_matrix, so3_exp
from autoslam.measurements import NavState

_DT = 0.05


def _quat_mul(a, b) -> np.ndarray:
    w1, x1, y1, z1 = a
    w2, x2, y2, z2 = b
    return np.array(
        [
            w1 * w2 - x1 * x2 - y1 * y2 - z1 * z2,
            w1 * x2 + x1 * w2 + y1 * z2 - z1 * y2,
            w1 * y2 - x1 * z2 + y1 * w2 + z1 * x2,
            w1 * z2 + x1 * y2 - y1 * x2 + z1 * w2,
        ]
    )


def circular_motion(
    angular_velocity_deg: float = 10.0,
    linear_velocity: float = 5.0,
    dt: float = _DT,
    use_quaternion: bool = False,
) -> Iterator[NavState]:
    """Yield the vehicle state after each update, endlessly.

    The body moves forward along its x axis and turns about z; the rotation is
    updated either by the exponential map or by a first-order quaternion step.
    """
    omega = np.array([0.0, 0.0, math.radians(angular_velocity_deg)])
    v_body = np.array([linear_velocity, 0.0, 0.0])
    rotation = np.eye(3)
    position = np.zeros(3)
    elapsed = 0.0
    while True:
        v_world = rotation @ v_body
        position = position + v_world * dt
        if use_quaternion:
            step = np.concatenate(([1.0], 0.5 * omega * dt))
            rotation = matrix_from_quaternion(_quat_mul(quaternion_from_matrix(rotation), step))
        else:
            rotation = rotation @ so3_exp(omega * dt)
        elapsed += dt
        yield NavState(elapsed, rotation, position, v_world)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Simulate a vehicle on a circular path.")
    parser.add_argument("--angular_velocity", type=float, default=10.0, help="degrees per second")
    parser.add_argument("--linear_velocity", type=float, default=5.0, help="forward speed, m/s")
    parser.add_argument("--use_quaternion", action="store_true", help="update rotation by quaternion")
    parser.add_argument("--steps", type=int, default=None, help="stop after this many updates")
    parser.add_argument("--no_wait", action="store_true", help="do not pace updates in real time")
    args = parser.parse_args(argv)

    states = circular_motion(
        args.angular_velocity, args.linear_velocity, _DT, args.use_quaternion
    )
    if args.steps is not None:
        states = islice(states, args.steps)
    try:
        for state in states:
            x, y, z = state.position
            print(f"pose: {x:g} {y:g} {z:g}", flush=True)
            if not args.no_wait:
                time.sleep(_DT)
    except KeyboardInterrupt:
        pass
    return 0