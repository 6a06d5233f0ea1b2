"""Sensor readings and navigation state records."""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

from autoslam.lie import SE3


def _vector(values, size: int) -> np.ndarray:
    return np.array(values, dtype=float).reshape(size)


@dataclass(eq=False)
class IMU:
    """One IMU reading: angular rate (rad/s) and specific force (m/s^2)."""

    timestamp: float = 0.0
    gyro: np.ndarray = field(default_factory=lambda: np.zeros(3))
    acce: np.ndarray = field(default_factory=lambda: np.zeros(3))

    def __post_init__(self) -> None:
        self.gyro = _vector(self.gyro, 3)
        self.acce = _vector(self.acce, 3)


@dataclass
class Odom:
    """Wheel encoder pulses counted over one measurement span."""

    timestamp: float = 0.0
    left_pulse: float = 0.0
    right_pulse: float = 0.0


@dataclass(eq=False)
class UTMCoordinate:
    """A UTM position: zone, easting/northing, height and hemisphere."""

    zone: int = 0
    xy: np.ndarray = field(default_factory=lambda: np.zeros(2))
    z: float = 0.0
    north: bool = True

    def __post_init__(self) -> None:
        self.xy = _vector(self.xy, 2)


@dataclass(eq=False)
class GNSS:
    """A GNSS fix in latitude/longitude/altitude with optional heading in degrees."""

    unix_time: float = 0.0
    lat_lon_alt: np.ndarray = field(default_factory=lambda: np.zeros(3))
    heading: float = 0.0
    heading_valid: bool = False
    utm_valid: bool = False
    utm: UTMCoordinate = field(default_factory=UTMCoordinate)
    utm_pose: SE3 = field(default_factory=SE3)

    def __post_init__(self) -> None:
        self.lat_lon_alt = _vector(self.lat_lon_alt, 3)


@dataclass(eq=False)
class NavState:
    """Navigation state: rotation, position, velocity and IMU biases."""

    timestamp: float = 0.0
    rotation: np.ndarray = field(default_factory=lambda: np.eye(3))
    position: np.ndarray = field(default_factory=lambda: np.zeros(3))
    velocity: np.ndarray = field(default_factory=lambda: np.zeros(3))
    bg: np.ndarray = field(default_factory=lambda: np.zeros(3))
    ba: np.ndarray = field(default_factory=lambda: np.zeros(3))

    def __post_init__(self) -> None:
        self.rotation = np.array(self.rotation, dtype=float).reshape(3, 3)
        self.position = _vector(self.position, 3)
        self.velocity = _vector(self.velocity, 3)
        self.bg = _vector(self.bg, 3)
        self.ba = _vector(self.ba, 3)

    def se3(self) -> SE3:
        return SE3(self.rotation, self.position)