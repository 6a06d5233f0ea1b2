"""Conversions between latitude/longitude, UTM and vehicle poses."""

from __future__ import annotations

import dataclasses
import math

import numpy as np

from autoslam.lie import SE3, rot_z
from autoslam.measurements import GNSS, UTMCoordinate

# WGS84 ellipsoid and UTM projection constants
_A = 6378137.0
_F = 1.0 / 298.257223563
_K0 = 0.9996
_FALSE_EASTING = 500000.0
_FALSE_NORTHING_SOUTH = 10000000.0
_MIN_LAT = -80.5
_MAX_LAT = 84.5

_N = _F / (2.0 - _F)
_E = 2.0 * math.sqrt(_N) / (1.0 + _N)
_RECT = _A / (1.0 + _N) * (1.0 + _N**2 / 4.0 + _N**4 / 64.0)
_ALPHA = (
    _N / 2 - 2 * _N**2 / 3 + 5 * _N**3 / 16,
    13 * _N**2 / 48 - 3 * _N**3 / 5,
    61 * _N**3 / 240,
)
_BETA = (
    _N / 2 - 2 * _N**2 / 3 + 37 * _N**3 / 96,
    _N**2 / 48 + _N**3 / 15,
    17 * _N**3 / 480,
)
_DELTA = (
    2 * _N - 2 * _N**2 / 3 - 2 * _N**3,
    7 * _N**2 / 3 - 8 * _N**3 / 5,
    56 * _N**3 / 15,
)


def _zone_for(lat: float, lon: float) -> int:
    zone = int(math.floor((lon + 180.0) / 6.0)) + 1
    if zone > 60:
        zone = 1
    if 56.0 <= lat < 64.0 and 3.0 <= lon < 12.0:
        zone = 32
    if 72.0 <= lat < 84.0 and lon >= 0.0:
        if lon < 9.0:
            zone = 31
        elif lon < 21.0:
            zone = 33
        elif lon < 33.0:
            zone = 35
        elif lon < 42.0:
            zone = 37
    return zone


def _central_meridian(zone: int) -> float:
    return (zone - 1) * 6.0 - 180.0 + 3.0


def latlon_to_utm(latlon) -> UTMCoordinate:
    """Project (latitude, longitude) in degrees onto UTM; raises ValueError if out of range."""
    lat, lon = (float(v) for v in np.asarray(latlon, dtype=float).reshape(2))
    if not _MIN_LAT <= lat <= _MAX_LAT:
        raise ValueError(f"latitude {lat} outside the UTM range")
    if not -180.0 <= lon <= 360.0:
        raise ValueError(f"longitude {lon} out of range")
    if lon >= 180.0:
        lon -= 360.0

    zone = _zone_for(lat, lon)
    phi = math.radians(lat)
    dlam = math.radians(lon - _central_meridian(zone))

    s = math.sin(phi)
    t = math.sinh(math.atanh(s) - _E * math.atanh(_E * s))
    xi_p = math.atan2(t, math.cos(dlam))
    eta_p = math.atanh(math.sin(dlam) / math.sqrt(1.0 + t * t))

    easting = eta_p
    northing = xi_p
    for j, a in enumerate(_ALPHA, start=1):
        easting += a * math.cos(2 * j * xi_p) * math.sinh(2 * j * eta_p)
        northing += a * math.sin(2 * j * xi_p) * math.cosh(2 * j * eta_p)
    easting = _FALSE_EASTING + _K0 * _RECT * easting
    northing = _K0 * _RECT * northing

    north = lat >= 0.0
    if not north:
        northing += _FALSE_NORTHING_SOUTH
    return UTMCoordinate(zone=zone, xy=[easting, northing], north=north)


def utm_to_latlon(utm: UTMCoordinate) -> np.ndarray:
    """Return (latitude, longitude) in degrees; raises ValueError if out of range."""
    if not 1 <= utm.zone <= 60:
        raise ValueError(f"invalid UTM zone {utm.zone}")
    easting, northing = (float(v) for v in utm.xy)
    if not 100000.0 <= easting <= 900000.0:
        raise ValueError(f"easting {easting} out of range")
    if not 0.0 <= northing <= _FALSE_NORTHING_SOUTH:
        raise ValueError(f"northing {northing} out of range")

    offset = 0.0 if utm.north else _FALSE_NORTHING_SOUTH
    eta = (easting - _FALSE_EASTING) / (_K0 * _RECT)
    xi = (northing - offset) / (_K0 * _RECT)

    xi_p = xi
    eta_p = eta
    for j, b in enumerate(_BETA, start=1):
        xi_p -= b * math.sin(2 * j * xi) * math.cosh(2 * j * eta)
        eta_p -= b * math.cos(2 * j * xi) * math.sinh(2 * j * eta)

    chi = math.asin(math.sin(xi_p) / math.cosh(eta_p))
    phi = chi + sum(d * math.sin(2 * j * chi) for j, d in enumerate(_DELTA, start=1))
    lam = math.radians(_central_meridian(utm.zone)) + math.atan2(math.sinh(eta_p), math.cos(xi_p))
    return np.array([math.degrees(phi), math.degrees(lam)])


def convert_gps_to_utm(gnss: GNSS, antenna_pos, antenna_angle: float, map_origin=None) -> GNSS:
    """Return a copy of ``gnss`` with the UTM position and vehicle pose filled in.

    ``antenna_pos`` is the antenna offset in the vehicle frame and
    ``antenna_angle`` its yaw offset in degrees. When ``map_origin`` is given it
    is subtracted from the UTM position. The heading is used only when valid.
    """
    utm_rtk = latlon_to_utm(gnss.lat_lon_alt[:2])
    utm_rtk.z = float(gnss.lat_lon_alt[2])

    heading = math.radians(90.0 - gnss.heading) if gnss.heading_valid else 0.0

    ax, ay = np.asarray(antenna_pos, dtype=float).reshape(2)
    tbg = SE3(rot_z(math.radians(antenna_angle)), [ax, ay, 0.0])
    tgb = tbg.inverse()

    origin = np.zeros(3) if map_origin is None else np.asarray(map_origin, dtype=float).reshape(3)
    twg = SE3(
        rot_z(heading),
        [utm_rtk.xy[0] - origin[0], utm_rtk.xy[1] - origin[1], utm_rtk.z - origin[2]],
    )
    twb = twg @ tgb

    utm = UTMCoordinate(gnss.utm.zone, twb.translation[:2], float(twb.translation[2]), gnss.utm.north)
    pose = twb if gnss.heading_valid else SE3(np.eye(3), twb.translation)
    return dataclasses.replace(gnss, utm_valid=True, utm=utm, utm_pose=pose)


def convert_gps_to_utm_only_trans(gnss: GNSS) -> GNSS:
    """Return a copy of ``gnss`` with only the UTM translation, without extrinsics or heading."""
    utm_rtk = latlon_to_utm(gnss.lat_lon_alt[:2])
    alt = float(gnss.lat_lon_alt[2])
    utm = UTMCoordinate(gnss.utm.zone, utm_rtk.xy, alt, gnss.utm.north)
    pose = SE3(np.eye(3), [utm.xy[0], utm.xy[1], alt])
    return dataclasses.replace(gnss, utm_valid=True, utm=utm, utm_pose=pose)