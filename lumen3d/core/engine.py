import numpy as np
from numba import njit, prange

from ..config import SHADOW_BIAS
from ..shapes.primitives import hit_distance, surface_at
from .lights import illuminate
from .material import (
    MAT_ALBEDO, MAT_SURFACE, MAT_REFLECTIVITY, MAT_INDEX, MAT_TRANSPARENCY,
    SURFACE_DIFFUSE, SURFACE_REFLECTING,
    coloration_at, fresnel,
)
from .math import dot, normalize, reflect, refract


@njit
def nearest_hit(body_types, body_params, ro, rd):
    """Index and distance of the closest body along the ray, (-1, inf) on a miss."""
    best_t = np.inf
    best_i = -1
    for i in range(body_types.shape[0]):
        t = hit_distance(body_types[i], body_params[i], ro, rd)
        if t > 0.0 and t < best_t:
            best_t = t
            best_i = i
    return best_i, best_t


@njit
def occluded(body_types, body_params, ro, rd, max_dist):
    for i in range(body_types.shape[0]):
        t = hit_distance(body_types[i], body_params[i], ro, rd)
        if t > 0.0 and t < max_dist:
            return True
    return False


@njit
def direct_light(p, n, material, base_color, body_types, body_params, light_types, light_params):
    col = np.zeros(3)
    albedo = material[MAT_ALBEDO]
    shadow_ro = p + n * SHADOW_BIAS

    for j in range(light_types.shape[0]):
        l_dir, l_col, l_int, l_dist = illuminate(light_types[j], light_params[j], p)
        ndotl = dot(n, l_dir)
        if ndotl <= 0.0 or l_int <= 0.0:
            continue
        # Hard shadows
        if occluded(body_types, body_params, shadow_ro, l_dir, l_dist):
            continue
        col += base_color * l_col * (albedo / np.pi * l_int * ndotl)

    return col


@njit
def push_ray(stack_rays, stack_depth, stack_weight, top, ro, rd, depth, weight):
    stack_rays[top, 0:3] = ro
    stack_rays[top, 3:6] = rd
    stack_depth[top] = depth
    stack_weight[top, :] = weight
    return top + 1


@njit
def trace_ray(ro, rd, max_depth, background,
              body_types, body_params, materials,
              light_types, light_params, textures, texture_sizes):
    """Color seen along a ray, following reflections and refractions.

    Works through an explicit stack of (ray, remaining depth, weight). Every
    popped ray adds weight * local color to the result, which equals the
    recursive formulation since the color of a hit is linear in the colors of
    its secondary rays. A ray with no depth left contributes black.
    """
    col = np.zeros(3)

    # A pop pushes at most two rays one level deeper, so 2 * max_depth + 2
    # entries always suffice
    cap = 2 * max_depth + 2
    stack_rays = np.empty((cap, 6))
    stack_depth = np.empty(cap, dtype=np.int64)
    stack_weight = np.empty((cap, 3))
    top = push_ray(stack_rays, stack_depth, stack_weight, 0, ro, rd, max_depth, np.ones(3))

    while top > 0:
        top -= 1
        depth = stack_depth[top]
        if depth <= 0:
            continue

        origin = stack_rays[top, 0:3].copy()
        direction = stack_rays[top, 3:6].copy()
        weight = stack_weight[top].copy()

        idx, t = nearest_hit(body_types, body_params, origin, direction)
        if idx < 0:
            col += weight * background
            continue

        p, outward, u, v = surface_at(body_types[idx], body_params[idx], origin, direction, t)
        inside = dot(direction, outward) > 0.0
        if inside:
            n = -outward
        else:
            n = outward

        material = materials[idx]
        base_color = coloration_at(material, textures, texture_sizes, u, v)
        direct = direct_light(p, n, material, base_color,
                              body_types, body_params, light_types, light_params)

        surface = int(material[MAT_SURFACE])
        if surface == SURFACE_DIFFUSE:
            col += weight * direct

        elif surface == SURFACE_REFLECTING:
            reflectivity = material[MAT_REFLECTIVITY]
            col += weight * direct * (1.0 - reflectivity)
            if depth > 1 and reflectivity > 0.0:
                top = push_ray(stack_rays, stack_depth, stack_weight, top,
                               p + n * SHADOW_BIAS, reflect(direction, n),
                               depth - 1, weight * reflectivity)

        else:
            transparency = material[MAT_TRANSPARENCY]
            col += weight * direct * (1.0 - transparency)
            if depth > 1 and transparency > 0.0:
                index = material[MAT_INDEX]
                if inside:
                    eta_i = index
                    eta_t = 1.0
                else:
                    eta_i = 1.0
                    eta_t = index

                ok, refracted = refract(direction, n, eta_i / eta_t)
                kr = 1.0
                if ok:
                    kr = fresnel(direction, n, eta_i, eta_t)

                top = push_ray(stack_rays, stack_depth, stack_weight, top,
                               p + n * SHADOW_BIAS, reflect(direction, n),
                               depth - 1, weight * (transparency * kr))
                if ok and kr < 1.0:
                    top = push_ray(stack_rays, stack_depth, stack_weight, top,
                                   p - n * SHADOW_BIAS, normalize(refracted),
                                   depth - 1, weight * (transparency * (1.0 - kr)))

    return col


@njit
def primary_ray(x, y, width, height, tan_half_fov, cam_forward, cam_right, cam_up):
    aspect = width / height
    sensor_x = (2.0 * (x + 0.5) / width - 1.0) * aspect * tan_half_fov
    sensor_y = (1.0 - 2.0 * (y + 0.5) / height) * tan_half_fov
    return normalize(cam_right * sensor_x + cam_up * sensor_y + cam_forward)


@njit(parallel=True)
def render_pixels(width, height, fov, cam_pos, cam_forward, cam_right, cam_up,
                  max_depth, background,
                  body_types, body_params, materials,
                  light_types, light_params, textures, texture_sizes,
                  output_buffer):
    tan_half_fov = np.tan((fov * np.pi / 180.0) / 2.0)

    # Rows are split across workers, each pixel is written once
    for y in prange(height):
        for x in range(width):
            rd = primary_ray(x, y, width, height, tan_half_fov, cam_forward, cam_right, cam_up)
            col = trace_ray(cam_pos, rd, max_depth, background,
                            body_types, body_params, materials,
                            light_types, light_params, textures, texture_sizes)
            for c in range(3):
                output_buffer[y, x, c] = min(max(col[c], 0.0), 1.0)


def render_scene(width, height, fov, cam_pos, cam_forward, cam_right, cam_up,
                 max_depth, background,
                 body_types, body_params, materials,
                 light_types, light_params, textures, texture_sizes,
                 output_buffer):
    # Just call the parallel kernel
    render_pixels(width, height, fov, cam_pos, cam_forward, cam_right, cam_up,
                  max_depth, background,
                  body_types, body_params, materials,
                  light_types, light_params, textures, texture_sizes,
                  output_buffer)
