import logging
from dataclasses import dataclass, field
from typing import NamedTuple, Optional, Tuple

import numpy as np

from ..config import DEFAULT_MAX_DEPTH
from ..errors import ConfigurationError
from ..shapes.primitives import BODY_PARAMS
from . import engine
from .lights import LIGHT_PARAMS
from .material import (
    MATERIAL_PARAMS, MAT_ALBEDO, MAT_B, MAT_G, MAT_INDEX, MAT_R, MAT_REFLECTIVITY,
    MAT_SURFACE, MAT_TEXTURE, MAT_TRANSPARENCY, MAT_X_OFFSET, MAT_Y_OFFSET,
    SURFACE_DIFFUSE, SURFACE_REFLECTING, SURFACE_REFRACTIVE,
)
from .types import (
    Body, Camera, Color, Intersection, Light, Material, Ray, Reflecting, Refractive, Texture,
    make_intersection,
)

logger = logging.getLogger(__name__)


class PackedScene(NamedTuple):
    """Flat arrays handed to the numba kernels."""

    body_types: np.ndarray      # (n,) int64 shape codes
    body_params: np.ndarray     # (n, BODY_PARAMS)
    materials: np.ndarray       # (n, MATERIAL_PARAMS)
    light_types: np.ndarray     # (m,) int64 light codes
    light_params: np.ndarray    # (m, LIGHT_PARAMS)
    textures: np.ndarray        # (k, max_h, max_w, 3)
    texture_sizes: np.ndarray   # (k, 2) width, height
    background: np.ndarray      # (3,)


@dataclass(frozen=True)
class Scene:
    """Everything one render needs. Immutable once built."""

    camera: Camera = field(default_factory=Camera)
    default_color: Color = Color(0.0, 0.0, 0.0)
    max_depth: int = DEFAULT_MAX_DEPTH
    bodies: Tuple[Body, ...] = ()
    lights: Tuple[Light, ...] = ()

    def __post_init__(self):
        # Accept any sequence, store tuples
        object.__setattr__(self, "bodies", tuple(self.bodies))
        object.__setattr__(self, "lights", tuple(self.lights))

        if not isinstance(self.camera, Camera):
            raise ConfigurationError(f"Invalid camera {self.camera!r}")
        if isinstance(self.max_depth, bool) or not isinstance(self.max_depth, int) or self.max_depth < 0:
            raise ConfigurationError(
                f"max recursion depth must be a non-negative integer, got {self.max_depth!r}"
            )
        for channel in self.default_color:
            if not 0.0 <= channel <= 1.0:
                raise ConfigurationError(f"default color channels must be within [0, 1], got {channel}")
        for i, body in enumerate(self.bodies):
            if not isinstance(body, Body):
                raise ConfigurationError(f"body #{i} is not a body: {body!r}")
        for i, light in enumerate(self.lights):
            if not isinstance(light, Light):
                raise ConfigurationError(f"light #{i} is not a light: {light!r}")

    def pack(self) -> PackedScene:
        n = len(self.bodies)
        body_types = np.zeros(n, dtype=np.int64)
        body_params = np.zeros((n, BODY_PARAMS), dtype=np.float64)
        materials = np.zeros((n, MATERIAL_PARAMS), dtype=np.float64)

        texture_list = []
        texture_ids = {}

        for i, body in enumerate(self.bodies):
            body_types[i] = body.shape_type
            body_params[i] = body.params()
            materials[i] = _pack_material(body.material, texture_list, texture_ids)

        m = len(self.lights)
        light_types = np.zeros(m, dtype=np.int64)
        light_params = np.zeros((m, LIGHT_PARAMS), dtype=np.float64)
        for j, light in enumerate(self.lights):
            light_types[j] = light.light_type
            light_params[j] = light.params()

        textures, texture_sizes = _pack_textures(texture_list)
        logger.debug("Packed %d bodies, %d lights, %d textures", n, m, len(texture_list))

        return PackedScene(
            body_types=body_types,
            body_params=body_params,
            materials=materials,
            light_types=light_types,
            light_params=light_params,
            textures=textures,
            texture_sizes=texture_sizes,
            background=self.default_color.as_array(),
        )

    def intersect(self, ray: Ray, packed: Optional[PackedScene] = None) -> Optional[Intersection]:
        """Nearest intersection along the ray, or None."""
        if packed is None:
            packed = self.pack()
        ro = ray.origin.as_array()
        rd = ray.direction.as_array()
        idx, t = engine.nearest_hit(packed.body_types, packed.body_params, ro, rd)
        if idx < 0:
            return None
        body = self.bodies[idx]
        return make_intersection(body.shape_type, packed.body_params[idx], ro, rd, t,
                                 body.material, body_index=int(idx))


def _pack_material(material: Material, texture_list, texture_ids) -> np.ndarray:
    row = np.zeros(MATERIAL_PARAMS, dtype=np.float64)
    row[MAT_ALBEDO] = material.albedo
    row[MAT_TEXTURE] = -1.0

    coloration = material.coloration
    if isinstance(coloration, Texture):
        key = id(coloration)
        if key not in texture_ids:
            texture_ids[key] = len(texture_list)
            texture_list.append(coloration)
        row[MAT_TEXTURE] = texture_ids[key]
        row[MAT_X_OFFSET] = coloration.x_offset
        row[MAT_Y_OFFSET] = coloration.y_offset
    else:
        row[MAT_R], row[MAT_G], row[MAT_B] = coloration

    surface = material.surface
    if isinstance(surface, Reflecting):
        row[MAT_SURFACE] = SURFACE_REFLECTING
        row[MAT_REFLECTIVITY] = surface.reflectivity
    elif isinstance(surface, Refractive):
        row[MAT_SURFACE] = SURFACE_REFRACTIVE
        row[MAT_INDEX] = surface.index
        row[MAT_TRANSPARENCY] = surface.transparency
    else:
        row[MAT_SURFACE] = SURFACE_DIFFUSE

    return row


def _pack_textures(texture_list):
    if not texture_list:
        # Dummy 1x1 atlas keeps the kernel signature stable
        return np.zeros((1, 1, 1, 3), dtype=np.float64), np.ones((1, 2), dtype=np.int64)

    max_h = max(t.height for t in texture_list)
    max_w = max(t.width for t in texture_list)
    atlas = np.zeros((len(texture_list), max_h, max_w, 3), dtype=np.float64)
    sizes = np.zeros((len(texture_list), 2), dtype=np.int64)
    for k, texture in enumerate(texture_list):
        atlas[k, :texture.height, :texture.width] = texture.pixels
        sizes[k] = (texture.width, texture.height)
    return atlas, sizes
