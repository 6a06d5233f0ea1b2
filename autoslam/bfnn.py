"""Brute-force nearest neighbour search in point clouds."""

from __future__ import annotations

import os
from concurrent.futures import ThreadPoolExecutor

import numpy as np

_CHUNK_ELEMENTS = 1 << 20


def _xyz(cloud) -> np.ndarray:
    arr = np.asarray(cloud, dtype=float)
    if arr.ndim != 2 or arr.shape[1] < 3:
        raise ValueError("a cloud must be an (N, 3) or wider array")
    return arr[:, :3]


def _sq_dist(ref: np.ndarray, queries: np.ndarray) -> np.ndarray:
    diff = queries[:, None, :] - ref[None, :, :]
    return (diff * diff).sum(axis=-1)


def _chunks(count: int, ref_size: int):
    step = max(1, _CHUNK_ELEMENTS // max(ref_size, 1))
    for start in range(0, count, step):
        yield start, min(count, start + step)


def _require_points(ref: np.ndarray) -> None:
    if len(ref) == 0:
        raise ValueError("cannot search an empty cloud")


def bfnn_point(cloud, point) -> int:
    """Index of the point in ``cloud`` closest to ``point``."""
    ref = _xyz(cloud)
    _require_points(ref)
    query = np.asarray(point, dtype=float).reshape(1, 3)
    return int(np.argmin(_sq_dist(ref, query)[0]))


def bfnn_point_k(cloud, point, k: int = 5) -> list[int]:
    """Indices of the ``k`` closest points, nearest first (fewer if the cloud is smaller)."""
    ref = _xyz(cloud)
    query = np.asarray(point, dtype=float).reshape(1, 3)
    order = np.argsort(_sq_dist(ref, query)[0], kind="stable")
    return [int(i) for i in order[:k]]


def bfnn_cloud(cloud1, cloud2) -> list[tuple[int, int]]:
    """Match every point of ``cloud2`` with its nearest point in ``cloud1``.

    Returns (index in cloud1, index in cloud2) pairs in the order of cloud2.
    """
    ref = _xyz(cloud1)
    queries = _xyz(cloud2)
    return [(bfnn_point(ref, q), idx) for idx, q in enumerate(queries)]


def _nearest_block(ref: np.ndarray, queries: np.ndarray, start: int, end: int, k: int) -> np.ndarray:
    dist = _sq_dist(ref, queries[start:end])
    if k == 1:
        return np.argmin(dist, axis=1)[:, None]
    return np.argsort(dist, axis=1, kind="stable")[:, :k]


def _parallel_nearest(ref: np.ndarray, queries: np.ndarray, k: int) -> list[np.ndarray]:
    bounds = list(_chunks(len(queries), len(ref)))
    if not bounds:
        return []
    workers = min(len(bounds), os.cpu_count() or 1)
    with ThreadPoolExecutor(max_workers=workers) as pool:
        return list(pool.map(lambda b: _nearest_block(ref, queries, b[0], b[1], k), bounds))


def bfnn_cloud_mt(cloud1, cloud2) -> list[tuple[int, int]]:
    """Multi-threaded :func:`bfnn_cloud`; gives the same matches."""
    ref = _xyz(cloud1)
    queries = _xyz(cloud2)
    if len(queries):
        _require_points(ref)
    nearest = np.concatenate(_parallel_nearest(ref, queries, 1)) if len(queries) else np.empty((0, 1))
    return [(int(row[0]), idx) for idx, row in enumerate(nearest)]


def bfnn_cloud_mt_k(cloud1, cloud2, k: int = 5) -> list[tuple[int, int]]:
    """For every point of ``cloud2``, its ``k`` nearest points in ``cloud1``.

    The pairs are grouped by query point, nearest first within a group.
    """
    ref = _xyz(cloud1)
    queries = _xyz(cloud2)
    matches: list[tuple[int, int]] = []
    if len(queries) == 0 or k <= 0:
        return matches
    idx = 0
    for block in _parallel_nearest(ref, queries, k):
        for row in block:
            matches.extend((int(found), idx) for found in row)
            idx += 1
    return matches