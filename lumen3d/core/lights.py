import numpy as np
from numba import njit

from .math import vec3, dot

# LIGHT TYPES
LIGHT_DIRECTIONAL = 0
LIGHT_SPHERICAL = 1

# Light row layout: x, y, z (direction or position), r, g, b, intensity
LIGHT_PARAMS = 7


@njit
def illuminate(typ, params, p):
    """Returns (direction_to_light, color, intensity_at_point, distance)."""
    color = params[3:6].copy()

    if typ == LIGHT_DIRECTIONAL:
        return -params[0:3], color, params[6], np.inf

    to_light = params[0:3] - p
    dist2 = dot(to_light, to_light)
    if dist2 == 0.0:
        return vec3(0.0, 0.0, 0.0), color, 0.0, 0.0
    dist = np.sqrt(dist2)
    # Inverse square falloff over the sphere surface
    return to_light / dist, color, params[6] / (4.0 * np.pi * dist2), dist
