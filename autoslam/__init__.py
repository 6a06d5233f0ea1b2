"""Localization building blocks: inertial navigation, filtering, GNSS conversion and point-cloud tools."""

__version__ = "0.1.0"

__all__ = [
    "bfnn",
    "bird_eye",
    "eskf",
    "imu_integration",
    "imu_preintegration",
    "inertial_edge",
    "lie",
    "measurements",
    "motion",
    "pcd",
    "range_image",
    "static_imu_init",
    "utm_convert",
]