from itertools import islice

import numpy as np
import pytest

from autoslam.motion import circular_motion, main


def test_steps_have_constant_length_and_stay_flat():
    states = list(islice(circular_motion(10.0, 5.0, 0.05, False), 50))
    positions = np.array([s.position for s in states])
    steps = np.linalg.norm(np.diff(positions, axis=0), axis=1)
    assert np.allclose(steps, 5.0 * 0.05)
    assert np.allclose(positions[:, 2], 0.0)


def test_velocity_has_linear_speed():
    for state in islice(circular_motion(20.0, 3.0, 0.05, False), 30):
        assert np.linalg.norm(state.velocity) == pytest.approx(3.0)


def test_full_turn_closes_the_circle():
    # 10 deg/s with 0.05 s steps turns a full circle in 720 updates
    states = list(islice(circular_motion(10.0, 5.0, 0.05, False), 720))
    last = states[-1]
    assert np.allclose(last.position, 0.0, atol=1e-9)
    assert np.allclose(last.rotation, np.eye(3), atol=1e-9)


def test_quaternion_update_tracks_exponential():
    exp_states = list(islice(circular_motion(10.0, 5.0, 0.05, False), 20))
    quat_states = list(islice(circular_motion(10.0, 5.0, 0.05, True), 20))
    for a, b in zip(exp_states, quat_states):
        assert np.allclose(a.position, b.position, atol=1e-4)
        assert np.allclose(a.rotation, b.rotation, atol=1e-4)


def test_main_prints_one_line_per_step(capsys):
    assert main(["--steps", "4", "--no_wait"]) == 0
    lines = capsys.readouterr().out.strip().splitlines()
    assert len(lines) == 4
    assert all(line.startswith("pose: ") for line in lines)