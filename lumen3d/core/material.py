import numpy as np
from numba import njit

from .math import dot

# SURFACE TYPES
SURFACE_DIFFUSE = 0
SURFACE_REFLECTING = 1
SURFACE_REFRACTIVE = 2

# Material row layout
MAT_R = 0
MAT_G = 1
MAT_B = 2
MAT_ALBEDO = 3
MAT_SURFACE = 4
MAT_REFLECTIVITY = 5
MAT_INDEX = 6
MAT_TRANSPARENCY = 7
MAT_TEXTURE = 8      # texture id, -1 for a plain color
MAT_X_OFFSET = 9
MAT_Y_OFFSET = 10
MATERIAL_PARAMS = 11


@njit
def wrap(coord, size):
    i = int(np.floor(coord)) % size
    if i < 0:
        i += size
    return i


@njit
def sample_texture(textures, texture_sizes, tex_id, u, v, x_offset, y_offset):
    width = texture_sizes[tex_id, 0]
    height = texture_sizes[tex_id, 1]
    x = wrap(u * width + x_offset, width)
    y = wrap(v * height + y_offset, height)
    return textures[tex_id, y, x].copy()


@njit
def coloration_at(material, textures, texture_sizes, u, v):
    tex_id = int(material[MAT_TEXTURE])
    if tex_id < 0:
        return material[MAT_R:MAT_B + 1].copy()
    return sample_texture(textures, texture_sizes, tex_id, u, v,
                          material[MAT_X_OFFSET], material[MAT_Y_OFFSET])


@njit
def fresnel(i, n, eta_i, eta_t):
    """Schlick reflectance for unit direction i hitting a boundary with normal n
    (facing against i). Returns 1.0 on total internal reflection."""
    cos_i = -dot(i, n)
    eta = eta_i / eta_t
    sin2_t = eta * eta * (1.0 - cos_i * cos_i)
    if sin2_t > 1.0:
        return 1.0

    r0 = (eta_i - eta_t) / (eta_i + eta_t)
    r0 = r0 * r0
    # Leaving the denser medium the transmitted angle drives the falloff
    if eta_i > eta_t:
        c = np.sqrt(1.0 - sin2_t)
    else:
        c = cos_i
    return r0 + (1.0 - r0) * (1.0 - c) ** 5
