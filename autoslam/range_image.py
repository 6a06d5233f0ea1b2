"""Range images of single lidar scans."""

from __future__ import annotations

import argparse
import logging

import numpy as np
from PIL import Image

from autoslam.pcd import load_pcd

logger = logging.getLogger(__name__)


def _hsv_to_rgb(hsv: np.ndarray) -> np.ndarray:
    """8-bit HSV (hue in [0, 180)) to 8-bit RGB."""
    h = np.mod(hsv[..., 0].astype(float) / 30.0, 6.0)
    s = hsv[..., 1] / 255.0
    v = hsv[..., 2] / 255.0
    base = np.floor(h)
    sector = base.astype(np.int64) % 6
    f = h - base
    p = v * (1.0 - s)
    q = v * (1.0 - s * f)
    t = v * (1.0 - s * (1.0 - f))
    r = np.choose(sector, [v, q, p, p, t, v])
    g = np.choose(sector, [t, v, v, q, p, p])
    b = np.choose(sector, [p, p, t, v, v, q])
    rgb = np.stack((r, g, b), axis=-1) * 255.0
    return np.clip(np.rint(rgb), 0, 255).astype(np.uint8)


def generate_range_image(
    cloud,
    azimuth_resolution_deg: float = 0.3,
    elevation_rows: int = 16,
    elevation_range: float = 15.0,
    lidar_height: float = 1.128,
) -> np.ndarray:
    """Project a scan onto an azimuth/elevation grid and colour cells by range.

    Columns cover 360 degrees of azimuth; rows cover +/- ``elevation_range``
    degrees, with higher elevations at the top. Hue encodes the horizontal
    range; empty cells are black. Returns an RGB image.
    """
    pts = np.asarray(cloud, dtype=float)
    if pts.ndim != 2 or pts.shape[1] < 3:
        raise ValueError("cloud must be an (N, 3) or wider array")
    cols = int(360 / azimuth_resolution_deg)
    rows = int(elevation_rows)
    logger.info("range image: %dx%d", rows, cols)

    hsv = np.zeros((rows, cols, 3), dtype=np.uint8)
    ele_resolution = elevation_range * 2 / elevation_rows

    x, y, z = pts[:, 0], pts[:, 1], pts[:, 2]
    with np.errstate(divide="ignore", invalid="ignore"):
        azimuth = np.degrees(np.arctan2(y, x))
        rng = np.sqrt(x * x + y * y)
        elevation = np.degrees(np.arcsin((z - lidar_height) / rng))
    azimuth = np.where(azimuth < 0, azimuth + 360, azimuth)

    valid = np.isfinite(azimuth) & np.isfinite(elevation)
    col = np.zeros(len(pts), dtype=np.int64)
    row = np.zeros(len(pts), dtype=np.int64)
    col[valid] = np.trunc(azimuth[valid] / azimuth_resolution_deg)
    row[valid] = np.trunc((elevation[valid] + elevation_range) / ele_resolution + 0.5)
    keep = valid & (col >= 0) & (col < cols) & (row >= 0) & (row < rows)

    hue = np.mod(np.trunc(rng[keep] / 100 * 255.0).astype(np.int64), 256).astype(np.uint8)
    hsv[row[keep], col[keep], 0] = hue
    hsv[row[keep], col[keep], 1] = 255
    hsv[row[keep], col[keep], 2] = 127

    return _hsv_to_rgb(hsv[::-1])


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Render a lidar scan as a range image.")
    parser.add_argument("--pcd_path", default="./data/ch5/scan_example.pcd", help="scan file")
    parser.add_argument("--azimuth_resolution_deg", type=float, default=0.3, help="degrees per column")
    parser.add_argument("--elevation_rows", type=int, default=16, help="number of rows")
    parser.add_argument("--elevation_range", type=float, default=15.0, help="elevation half range, degrees")
    parser.add_argument("--lidar_height", type=float, default=1.128, help="lidar mounting height")
    parser.add_argument("--output", default="./range_image.png", help="image file to write")
    args = parser.parse_args(argv)

    if not args.pcd_path:
        logger.error("pcd path is empty")
        return 1
    try:
        cloud = load_pcd(args.pcd_path)
    except (OSError, ValueError) as exc:
        logger.error("cannot load cloud file: %s", exc)
        return 1
    if len(cloud) == 0:
        logger.error("cannot load cloud file")
        return 1

    logger.info("cloud points: %d", len(cloud))
    image = generate_range_image(
        cloud,
        args.azimuth_resolution_deg,
        args.elevation_rows,
        args.elevation_range,
        args.lidar_height,
    )
    Image.fromarray(image).save(args.output)
    return 0