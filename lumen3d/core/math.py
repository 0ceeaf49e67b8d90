import numpy as np
from numba import njit


@njit
def vec3(x, y, z):
    return np.array([x, y, z], dtype=np.float64)


@njit
def dot(a, b):
    return a[0] * b[0] + a[1] * b[1] + a[2] * b[2]


@njit
def cross(a, b):
    return vec3(
        a[1] * b[2] - a[2] * b[1],
        a[2] * b[0] - a[0] * b[2],
        a[0] * b[1] - a[1] * b[0],
    )


@njit
def length(v):
    return np.sqrt(dot(v, v))


@njit
def normalize(v):
    # Zero vectors stay zero, callers treat them as degenerate
    l = length(v)
    if l == 0.0:
        return vec3(0.0, 0.0, 0.0)
    return v / l


@njit
def clamp(x, lo, hi):
    return min(max(x, lo), hi)


@njit
def reflect(i, n):
    return i - n * (2.0 * dot(i, n))


@njit
def refract(i, n, eta):
    """Snell refraction of unit direction i through a surface with unit normal n.

    n must face against i and eta is the ratio eta_incident / eta_transmitted.
    Returns (ok, direction); ok is False on total internal reflection.
    """
    cos_i = -dot(i, n)
    k = 1.0 - eta * eta * (1.0 - cos_i * cos_i)
    if k < 0.0:
        return False, vec3(0.0, 0.0, 0.0)
    return True, i * eta + n * (eta * cos_i - np.sqrt(k))
