# autoslam

Building blocks for vehicle localization, written on top of NumPy:

- **Rotations and poses** (`autoslam.lie`): SO(3) exponential and logarithm
  (`so3_exp`, `so3_log`), `hat`/`vee`, right Jacobians and their inverse,
  quaternion conversion (quaternions are `(w, x, y, z)`), `rot_z`, and an
  `SE3` rigid transform that composes with `@`.
- **Sensor records** (`autoslam.measurements`): `IMU`, `Odom`, `GNSS`,
  `UTMCoordinate` and the navigation state `NavState`.
- **Inertial navigation**:
  - `IMUIntegration` (`autoslam.imu_integration`) for plain dead reckoning
    from IMU readings with known biases.
  - `StaticIMUInit` (`autoslam.static_imu_init`), which estimates gyro and
    accelerometer biases, noise and gravity while the vehicle stands still.
  - `ESKF` (`autoslam.eskf`), an 18-dimensional error-state Kalman filter. It
    predicts from IMU readings and corrects from wheel odometry
    (`observe_wheel_speed`), GNSS (`observe_gps`) or any SE(3) pose
    (`observe_se3`).
- **Preintegration** (`autoslam.imu_preintegration`): `IMUPreintegration`
  accumulates IMU readings between two states, applies first-order bias
  correction and keeps the bias Jacobians. `EdgeInertial`
  (`autoslam.inertial_edge`) turns those into a 9-dimensional residual, its
  Jacobians and a 24x24 Hessian for a graph optimizer.
- **GNSS** (`autoslam.utm_convert`): `latlon_to_utm` and `utm_to_latlon` on
  the WGS84 ellipsoid, and `convert_gps_to_utm`, which turns a GNSS reading
  into a vehicle pose taking the antenna offset and mounting angle into
  account. Coordinates outside the UTM range raise `ValueError`.
- **Point clouds**:
  - `load_pcd` and `save_pcd` (`autoslam.pcd`) read ASCII or binary PCD files
    as `(x, y, z, intensity)` float32 rows, and write binary ones.
  - Brute-force nearest-neighbour search (`autoslam.bfnn`): `bfnn_point`,
    `bfnn_point_k`, `bfnn_cloud`, and the multi-threaded `bfnn_cloud_mt` and
    `bfnn_cloud_mt_k`.
  - Bird's-eye-view images (`autoslam.bird_eye.generate_bev_image`) and range
    images (`autoslam.range_image.generate_range_image`), both returned as RGB
    NumPy arrays.

## Installation

```
pip install .
```

To install the test dependencies as well and run the tests:

```
pip install ".[test]"
pytest
```

## Examples

### Nearest neighbours in a point cloud

```python
import numpy as np
from autoslam.bfnn import bfnn_point, bfnn_point_k, bfnn_cloud

cloud = np.array([[0, 0, 0], [1, 0, 0], [0, 1, 0], [1, 1, 0]], dtype=float)

nearest = bfnn_point(cloud, [0.9, 0.1, 0.0])        # 1
two_nearest = bfnn_point_k(cloud, [0.9, 0.1, 0.0], 2)  # [1, 0]

# (index in the first cloud, index in the second cloud) pairs
matches = bfnn_cloud(cloud, np.array([[0.1, 0.9, 0.0]]))  # [(2, 0)]
```

### Rotations and poses

```python
import numpy as np
from autoslam.lie import SE3, rot_z, so3_exp, so3_log

R = so3_exp([0.0, 0.0, np.pi / 2])
assert np.allclose(R, rot_z(np.pi / 2))
assert np.allclose(so3_log(R), [0.0, 0.0, np.pi / 2])

pose = SE3(R, [1.0, 2.0, 0.0])
identity = pose @ pose.inverse()
assert np.allclose(identity.as_matrix(), np.eye(4))
```

### Filtering IMU readings

```python
import numpy as np
from autoslam.eskf import ESKF, ESKFOptions
from autoslam.measurements import IMU

eskf = ESKF()
eskf.set_initial_conditions(ESKFOptions(), np.zeros(3), np.zeros(3))
eskf.predict(IMU(0.01, gyro=[0.0, 0.0, 0.1], acce=[0.0, 0.0, 9.8]))
state = eskf.nominal_state()
```

## Commands

Each command below is installed along with the package:

- `autoslam-motion` simulates a vehicle driving in a circle at a set angular
  (`--angular_velocity`, degrees per second) and linear velocity
  (`--linear_velocity`), and prints its position at each 0.05 s step. It runs
  until interrupted unless `--steps` is given; `--no_wait` skips real-time
  pacing and `--use_quaternion` updates the rotation by a quaternion step.
- `autoslam-bev` renders a PCD file (`--pcd_path`) as a top-down PNG image
  (`--output`, default `./bev.png`). It keeps only the points between
  `--min_z` and `--max_z`, at `--image_resolution` metres per pixel.
- `autoslam-range-image` projects a single lidar scan into a range image
  (`--output`, default `./range_image.png`): azimuth along the columns,
  elevation along the rows, hue by range.

Run any of them with `--help` to see the options it takes:

```
autoslam-motion --help
autoslam-bev --help
autoslam-range-image --help
```

## What it does not do

- Nearest-neighbour search is brute force only; the package has no spatial
  index structure to speed up queries on large clouds.
- There is no viewer: poses are printed and images are written to files.
- There is no graph optimizer. `EdgeInertial` supplies residuals, Jacobians
  and Hessians, but solving for the states is left to the caller.