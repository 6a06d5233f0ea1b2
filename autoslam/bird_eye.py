"""Top-down (bird's-eye view) images of point clouds."""

from __future__ import annotations

import argparse
import logging

import numpy as np
from PIL import Image

from autoslam.pcd import load_pcd

logger = logging.getLogger(__name__)

POINT_COLOR = (79, 143, 227)


def generate_bev_image(
    cloud, resolution: float = 0.1, min_z: float = 0.2, max_z: float = 2.5
) -> np.ndarray:
    """Render points with ``min_z <= z <= max_z`` into an RGB image, one pixel per cell.

    The image covers the cloud's x/y extent at ``resolution`` metres per pixel;
    rows follow y and columns follow x. The background is white.
    """
    pts = np.asarray(cloud, dtype=float)
    if pts.ndim != 2 or pts.shape[1] < 3:
        raise ValueError("cloud must be an (N, 3) or wider array")
    if len(pts) == 0:
        raise ValueError("cannot render an empty cloud")
    x, y, z = pts[:, 0], pts[:, 1], pts[:, 2]

    min_x, max_x = float(x.min()), float(x.max())
    min_y, max_y = float(y.min()), float(y.max())
    inv_r = 1.0 / resolution
    rows = int((max_y - min_y) * inv_r)
    cols = int((max_x - min_x) * inv_r)

    x_center = float(np.float32(0.5 * (max_x + min_x)))
    y_center = float(np.float32(0.5 * (max_y + min_y)))
    x_center_image = cols // 2
    y_center_image = rows // 2

    image = np.full((rows, cols, 3), 255, dtype=np.uint8)
    px = np.trunc((x - x_center) * inv_r + x_center_image).astype(np.int64)
    py = np.trunc((y - y_center) * inv_r + y_center_image).astype(np.int64)
    keep = (px >= 0) & (px < cols) & (py >= 0) & (py < rows) & (z >= min_z) & (z <= max_z)
    image[py[keep], px[keep]] = POINT_COLOR
    return image


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Render a point cloud as a top-down image.")
    parser.add_argument("--pcd_path", default="./data/ch5/map_example.pcd", help="point cloud file")
    parser.add_argument("--image_resolution", type=float, default=0.1, help="metres per pixel")
    parser.add_argument("--min_z", type=float, default=0.2, help="lowest height drawn")
    parser.add_argument("--max_z", type=float, default=2.5, help="highest height drawn")
    parser.add_argument("--output", default="./bev.png", help="image file to write")
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
    image = generate_bev_image(cloud, args.image_resolution, args.min_z, args.max_z)
    if image.size == 0:
        logger.error("cloud extent is smaller than one pixel")
        return 1
    Image.fromarray(image).save(args.output)
    return 0