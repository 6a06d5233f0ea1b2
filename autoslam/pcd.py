"""Reading and writing point clouds in the PCD file format."""

from __future__ import annotations

import os

import numpy as np

_TYPES = {
    ("F", 4): "<f4",
    ("F", 8): "<f8",
    ("I", 1): "i1",
    ("I", 2): "<i2",
    ("I", 4): "<i4",
    ("I", 8): "<i8",
    ("U", 1): "u1",
    ("U", 2): "<u2",
    ("U", 4): "<u4",
    ("U", 8): "<u8",
}


def _read_header(raw: bytes) -> tuple[dict[str, list[str]], int]:
    entries: dict[str, list[str]] = {}
    pos = 0
    while True:
        end = raw.find(b"\n", pos)
        if end < 0:
            raise ValueError("PCD header has no DATA line")
        line = raw[pos:end].decode("ascii", errors="replace").strip()
        pos = end + 1
        if not line or line.startswith("#"):
            continue
        key, *values = line.split()
        key = key.upper()
        entries[key] = values
        if key == "DATA":
            if not values:
                raise ValueError("PCD DATA line names no encoding")
            return entries, pos


def load_pcd(path) -> np.ndarray:
    """Load a PCD file as a float32 array of (x, y, z, intensity) rows.

    Intensity is zero when the file has no such field. ASCII and binary data
    are supported.
    """
    with open(path, "rb") as fh:
        raw = fh.read()
    entries, offset = _read_header(raw)

    try:
        fields = entries["FIELDS"]
        sizes = [int(s) for s in entries["SIZE"]]
        types = [t.upper() for t in entries["TYPE"]]
        counts = [int(c) for c in entries.get("COUNT", ["1"] * len(fields))]
        if "POINTS" in entries:
            points = int(entries["POINTS"][0])
        else:
            points = int(entries["WIDTH"][0]) * int(entries.get("HEIGHT", ["1"])[0])
    except (KeyError, IndexError) as exc:
        raise ValueError(f"incomplete PCD header: {exc}") from None
    if not len(fields) == len(sizes) == len(types) == len(counts):
        raise ValueError("PCD header field descriptions differ in length")
    for needed in ("x", "y", "z"):
        if needed not in fields:
            raise ValueError(f"PCD file has no '{needed}' field")

    encoding = entries["DATA"][0].lower()
    columns: dict[str, np.ndarray] = {}
    if encoding == "ascii":
        total = sum(counts)
        tokens = raw[offset:].decode("ascii", errors="replace").split()
        if len(tokens) < points * total:
            raise ValueError("PCD file holds fewer values than its header declares")
        values = np.array(tokens[: points * total], dtype=float).reshape(points, total)
        start = 0
        for name, count in zip(fields, counts):
            columns.setdefault(name, values[:, start])
            start += count
    elif encoding == "binary":
        try:
            parts = [
                (f"f{i}", _TYPES[(t, s)], (c,)) if c > 1 else (f"f{i}", _TYPES[(t, s)])
                for i, (t, s, c) in enumerate(zip(types, sizes, counts))
            ]
        except KeyError as exc:
            raise ValueError(f"unsupported PCD field type {exc}") from None
        dtype = np.dtype(parts)
        if len(raw) - offset < dtype.itemsize * points:
            raise ValueError("PCD file is shorter than its header declares")
        data = np.frombuffer(raw, dtype=dtype, count=points, offset=offset)
        for i, (name, count) in enumerate(zip(fields, counts)):
            column = data[f"f{i}"]
            columns.setdefault(name, column[:, 0] if count > 1 else column)
    else:
        raise ValueError(f"unsupported PCD data encoding '{encoding}'")

    cloud = np.zeros((points, 4), dtype=np.float32)
    for i, name in enumerate(("x", "y", "z", "intensity")):
        if name in columns:
            cloud[:, i] = columns[name]
    return cloud


def save_pcd(path, points) -> None:
    """Write an (N, 3) or (N, 4) array as a binary PCD file with x, y, z, intensity."""
    arr = np.asarray(points, dtype=np.float32)
    if arr.ndim != 2 or arr.shape[1] not in (3, 4):
        raise ValueError("points must be an (N, 3) or (N, 4) array")
    if arr.shape[1] == 3:
        arr = np.hstack((arr, np.zeros((len(arr), 1), dtype=np.float32)))
    n = len(arr)
    header = (
        "# .PCD v0.7 - Point Cloud Data file format\n"
        "VERSION 0.7\n"
        "FIELDS x y z intensity\n"
        "SIZE 4 4 4 4\n"
        "TYPE F F F F\n"
        "COUNT 1 1 1 1\n"
        f"WIDTH {n}\n"
        "HEIGHT 1\n"
        "VIEWPOINT 0 0 0 1 0 0 0\n"
        f"POINTS {n}\n"
        "DATA binary\n"
    )
    with open(os.fspath(path), "wb") as fh:
        fh.write(header.encode("ascii"))
        fh.write(arr.astype("<f4").tobytes())