import numpy as np
from numba import njit

from ..config import EPSILON, PARALLEL_EPSILON
from ..core.math import vec3, dot, cross, length, normalize, clamp

# SHAPE TYPES
SHAPE_SPHERE = 0
SHAPE_PLANE = 1
SHAPE_DISK = 2
SHAPE_AABB = 3

# Parameter row layout per shape type
#   SPHERE: cx, cy, cz, radius
#   PLANE:  ox, oy, oz, nx, ny, nz
#   DISK:   ox, oy, oz, nx, ny, nz, radius
#   AABB:   min_x, min_y, min_z, max_x, max_y, max_z
BODY_PARAMS = 7

NO_HIT = -1.0


@njit
def intersect_sphere(ro, rd, center, radius):
    oc = ro - center
    a = dot(rd, rd)
    b = dot(oc, rd)
    c = dot(oc, oc) - radius * radius
    disc = b * b - a * c
    if disc < 0.0:
        return NO_HIT

    sdisc = np.sqrt(disc)
    t0 = (-b - sdisc) / a
    if t0 > EPSILON:
        return t0
    t1 = (-b + sdisc) / a
    if t1 > EPSILON:
        return t1
    return NO_HIT


@njit
def intersect_plane(ro, rd, origin, normal):
    denom = dot(rd, normal)
    if abs(denom) < PARALLEL_EPSILON:
        return NO_HIT

    t = dot(origin - ro, normal) / denom
    if t <= EPSILON:
        return NO_HIT
    return t


@njit
def intersect_disk(ro, rd, origin, normal, radius):
    t = intersect_plane(ro, rd, origin, normal)
    if t == NO_HIT:
        return NO_HIT

    d = ro + rd * t - origin
    if dot(d, d) > radius * radius:
        return NO_HIT
    return t


@njit
def intersect_aabb(ro, rd, bmin, bmax):
    """Slab test. Returns (t, axis, side) where side is the sign of the
    outward normal of the hit face on that axis.

    A ray starting inside the box hits the exit face.
    """
    t_near = -np.inf
    t_far = np.inf
    axis = -1
    side = 0.0
    far_axis = -1
    far_side = 0.0

    for i in range(3):
        if abs(rd[i]) < PARALLEL_EPSILON:
            # Parallel to this slab: must already be inside it
            if ro[i] < bmin[i] or ro[i] > bmax[i]:
                return NO_HIT, -1, 0.0
            continue

        inv = 1.0 / rd[i]
        t0 = (bmin[i] - ro[i]) * inv
        t1 = (bmax[i] - ro[i]) * inv
        face = -1.0
        if t0 > t1:
            t0, t1 = t1, t0
            face = 1.0

        if t0 > t_near:
            t_near = t0
            axis = i
            side = face
        if t1 < t_far:
            t_far = t1
            far_axis = i
            far_side = -face

    if axis < 0 or t_near > t_far:
        return NO_HIT, -1, 0.0
    if t_near > EPSILON:
        return t_near, axis, side
    if t_far > EPSILON:
        return t_far, far_axis, far_side
    return NO_HIT, -1, 0.0


@njit
def nearest_face(p, bmin, bmax):
    """Axis and outward side of the box face closest to p."""
    axis = 0
    side = -1.0
    best = np.inf
    for i in range(3):
        d_min = abs(p[i] - bmin[i])
        d_max = abs(p[i] - bmax[i])
        if d_min < best:
            best = d_min
            axis = i
            side = -1.0
        if d_max < best:
            best = d_max
            axis = i
            side = 1.0
    return axis, side


@njit
def hit_distance(typ, params, ro, rd):
    if typ == SHAPE_SPHERE:
        return intersect_sphere(ro, rd, params[0:3], params[3])
    elif typ == SHAPE_PLANE:
        return intersect_plane(ro, rd, params[0:3], params[3:6])
    elif typ == SHAPE_DISK:
        return intersect_disk(ro, rd, params[0:3], params[3:6], params[6])
    elif typ == SHAPE_AABB:
        t, axis, side = intersect_aabb(ro, rd, params[0:3], params[3:6])
        return t
    return NO_HIT


@njit
def plane_axes(normal):
    x_axis = cross(normal, vec3(0.0, 0.0, 1.0))
    if length(x_axis) < 1e-9:
        x_axis = cross(normal, vec3(0.0, 1.0, 0.0))
    x_axis = normalize(x_axis)
    y_axis = normalize(cross(normal, x_axis))
    return x_axis, y_axis


@njit
def sphere_uv(center, radius, p):
    hv = p - center
    u = (1.0 + np.arctan2(hv[2], hv[0]) / np.pi) * 0.5
    v = np.arccos(clamp(hv[1] / radius, -1.0, 1.0)) / np.pi
    return u, v


@njit
def planar_uv(origin, normal, p):
    x_axis, y_axis = plane_axes(normal)
    hv = p - origin
    return dot(hv, x_axis), dot(hv, y_axis)


@njit
def surface_at(typ, params, ro, rd, t):
    """Hit point, outward surface normal and texture coordinates of a hit at distance t.

    Planes and disks store the normal pointing away from their visible side,
    so their outward normal is the negated parameter.
    """
    p = ro + rd * t

    if typ == SHAPE_SPHERE:
        center = params[0:3]
        n = (p - center) / params[3]
        u, v = sphere_uv(center, params[3], p)
    elif typ == SHAPE_PLANE or typ == SHAPE_DISK:
        n = -params[3:6]
        u, v = planar_uv(params[0:3], params[3:6], p)
    else:
        bmin = params[0:3]
        bmax = params[3:6]
        _, axis, side = intersect_aabb(ro, rd, bmin, bmax)
        if axis < 0:
            # Grazing hit lost to rounding
            axis, side = nearest_face(p, bmin, bmax)
        n = vec3(0.0, 0.0, 0.0)
        n[axis] = side
        u_axis = (axis + 1) % 3
        v_axis = (axis + 2) % 3
        u = p[u_axis] - bmin[u_axis]
        v = p[v_axis] - bmin[v_axis]

    return p, n, u, v
