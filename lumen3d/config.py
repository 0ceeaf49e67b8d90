"""Engine constants and environment-driven settings."""

import os

# Logging
LOG_LEVEL = os.getenv("LUMEN3D_LOG_LEVEL", "INFO")
LOG_FORMAT = os.getenv("LUMEN3D_LOG_FORMAT", "%(asctime)s - %(name)s - %(levelname)s - %(message)s")

# Worker threads for the pixel kernel, 0 keeps numba's default
THREADS = int(os.getenv("LUMEN3D_THREADS", "0"))

# Image / camera defaults
DEFAULT_WIDTH = 800
DEFAULT_HEIGHT = 600
DEFAULT_FOV = 90.0
DEFAULT_MAX_DEPTH = 5

# Numerics
EPSILON = 1e-6       # minimum accepted hit distance
SHADOW_BIAS = 1e-5   # offset of secondary ray origins along the normal
PARALLEL_EPSILON = 1e-9

# Tolerance when checking that scene normals/directions are unit length
UNIT_TOLERANCE = 1e-6

__all__ = [
    "LOG_LEVEL",
    "LOG_FORMAT",
    "THREADS",
    "DEFAULT_WIDTH",
    "DEFAULT_HEIGHT",
    "DEFAULT_FOV",
    "DEFAULT_MAX_DEPTH",
    "EPSILON",
    "SHADOW_BIAS",
    "PARALLEL_EPSILON",
    "UNIT_TOLERANCE",
]
