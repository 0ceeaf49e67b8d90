import logging
import time
from typing import Optional

import numba
import numpy as np

from ..config import THREADS
from ..errors import ConfigurationError
from . import engine
from .scene import PackedScene, Scene
from .types import Color, Ray

logger = logging.getLogger(__name__)


class Framebuffer:
    """height x width grid of RGB values in [0, 1]."""

    def __init__(self, width: int, height: int):
        self.pixels = np.zeros((height, width, 3), dtype=np.float64)

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

    def get_pixel(self, x: int, y: int) -> Color:
        return Color.from_array(self.pixels[y, x])

    def to_uint8(self) -> np.ndarray:
        return (np.clip(self.pixels, 0.0, 1.0) * 255.0).astype(np.uint8)


class Renderer:
    """Turns a Scene into a Framebuffer.

    width, height and max_depth override the scene's own settings when given.
    threads caps the numba worker pool (0 or None keeps numba's default).
    """

    def __init__(self, width: Optional[int] = None, height: Optional[int] = None,
                 max_depth: Optional[int] = None, threads: Optional[int] = None):
        if max_depth is not None and max_depth < 0:
            raise ConfigurationError(f"max depth must be non-negative, got {max_depth}")
        self.width = width
        self.height = height
        self.max_depth = max_depth
        self.threads = THREADS if threads is None else threads

    def _depth(self, scene: Scene) -> int:
        return scene.max_depth if self.max_depth is None else self.max_depth

    def _apply_threads(self):
        """Cap numba's worker pool, returning the previous size to restore."""
        previous = numba.get_num_threads()
        if self.threads and self.threads > 0:
            numba.set_num_threads(min(self.threads, numba.config.NUMBA_NUM_THREADS))
        return previous

    def render(self, scene: Scene, packed: Optional[PackedScene] = None) -> Framebuffer:
        camera = scene.camera.with_size(self.width, self.height)
        if packed is None:
            packed = scene.pack()
        forward, right, up = camera.basis()
        framebuffer = Framebuffer(camera.width, camera.height)

        logger.info("Rendering %dx%d image, %d bodies, %d lights, max depth %d",
                    camera.width, camera.height, len(scene.bodies), len(scene.lights),
                    self._depth(scene))
        start_time = time.perf_counter()

        previous_threads = self._apply_threads()
        try:
            engine.render_scene(
                camera.width, camera.height, float(camera.fov),
                camera.position.as_array(), forward, right, up,
                self._depth(scene), packed.background,
                packed.body_types, packed.body_params, packed.materials,
                packed.light_types, packed.light_params,
                packed.textures, packed.texture_sizes,
                framebuffer.pixels,
            )
        finally:
            numba.set_num_threads(previous_threads)

        logger.info("Rendered in %.2fs", time.perf_counter() - start_time)
        return framebuffer

    def trace(self, scene: Scene, ray: Ray, packed: Optional[PackedScene] = None) -> Color:
        """Unclamped color seen along a single ray."""
        if packed is None:
            packed = scene.pack()
        col = engine.trace_ray(
            ray.origin.as_array(), ray.direction.as_array(),
            self._depth(scene), packed.background,
            packed.body_types, packed.body_params, packed.materials,
            packed.light_types, packed.light_params,
            packed.textures, packed.texture_sizes,
        )
        return Color.from_array(col)
