[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "autoslam"
version = "0.1.0"
description = "Localization building blocks for autonomous driving: IMU integration, ESKF, preintegration, UTM conversion and point-cloud tools"
requires-python = ">=3.10"
keywords = [
    "slam",
    "localization",
    "imu",
    "eskf",
    "preintegration",
    "gnss",
    "utm",
    "point-cloud",
    "pcd",
    "lidar",
    "nearest-neighbour",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Education",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering",
    "Topic :: Scientific/Engineering :: Mathematics",
]
dependencies = [
    "numpy",
    "pillow",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
autoslam-motion = "autoslam.motion:main"
autoslam-bev = "autoslam.bird_eye:main"
autoslam-range-image = "autoslam.range_image:main"

[tool.hatch.build.targets.wheel]
packages = ["autoslam"]

[tool.hatch.build.targets.sdist]
include = ["autoslam", "tests", "README.md", "pyproject.toml"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
ignore_missing_imports = true
