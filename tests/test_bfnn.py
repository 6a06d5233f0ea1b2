import numpy as np
import pytest

from autoslam.bfnn import bfnn_cloud, bfnn_cloud_mt, bfnn_cloud_mt_k, bfnn_point, bfnn_point_k


def _square():
    return np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 1.0, 0.0], [1.0, 1.0, 0.0]])


def _clouds(seed=0):
    rng = np.random.default_rng(seed)
    first = rng.uniform(-5, 5, size=(300, 3))
    second = first[rng.choice(300, 120)] + rng.normal(0, 0.05, size=(120, 3))
    return first, second


def _evaluate(truth, esti):
    truth_set = set(truth)
    esti_set = set(esti)
    fp = sum(1 for d in esti if d not in truth_set)
    fn = sum(1 for d in truth if d not in esti_set)
    precision = 1.0 - fp / len(esti)
    recall = 1.0 - fn / len(truth)
    return precision, recall


def test_bfnn_point_on_square():
    assert bfnn_point(_square(), [0.9, 0.1, 0.0]) == 1
    assert bfnn_point(_square(), [0.1, 0.8, 0.0]) == 2


def test_bfnn_point_returns_first_of_ties():
    assert bfnn_point(_square(), [0.5, 0.5, 0.0]) == 0


def test_bfnn_point_empty_cloud_raises():
    with pytest.raises(ValueError):
        bfnn_point(np.zeros((0, 3)), [0.0, 0.0, 0.0])


def test_bfnn_point_k_sorted_by_distance():
    first, _ = _clouds()
    query = np.array([0.3, -0.2, 1.0])
    result = bfnn_point_k(first, query, 7)
    assert len(result) == 7
    dists = [np.sum((first[i] - query) ** 2) for i in result]
    assert dists == sorted(dists)
    assert result[0] == bfnn_point(first, query)
    others = np.setdiff1d(np.arange(len(first)), result)
    assert np.min(np.sum((first[others] - query) ** 2, axis=1)) >= dists[-1]


def test_bfnn_point_k_on_square():
    assert bfnn_point_k(_square(), [0.9, 0.1, 0.0], 2)[0] == 1
    assert len(bfnn_point_k(_square(), [0.0, 0.0, 0.0], 10)) == 4


def test_bfnn_single_and_multi_thread_agree():
    first, second = _clouds()
    single = bfnn_cloud(first, second)
    multi = bfnn_cloud_mt(first, second)
    assert single == multi
    assert [m[1] for m in single] == list(range(len(second)))
    assert _evaluate(single, multi) == (1.0, 1.0)


def test_bfnn_cloud_finds_true_nearest():
    first, second = _clouds(3)
    for found, idx in bfnn_cloud(first, second):
        d = np.sum((first - second[idx]) ** 2, axis=1)
        assert d[found] == d.min()


def test_bfnn_cloud_mt_k_matches_per_point_search():
    first, second = _clouds(1)
    matches = bfnn_cloud_mt_k(first, second, 5)
    assert len(matches) == 5 * len(second)
    for idx, q in enumerate(second):
        group = matches[idx * 5 : idx * 5 + 5]
        assert [m[1] for m in group] == [idx] * 5
        assert [m[0] for m in group] == bfnn_point_k(first, q, 5)


def test_bfnn_k1_agrees_with_nearest():
    first, second = _clouds(2)
    assert bfnn_cloud_mt_k(first, second, 1) == bfnn_cloud(first, second)


def test_bfnn_rejects_flat_array():
    with pytest.raises(ValueError):
        bfnn_cloud(np.zeros(3), np.zeros((2, 3)))