"""lumen3d - a recursive ray tracer for YAML scene descriptions."""

__version__ = "0.1.0"

from .core.renderer import Framebuffer, Renderer
from .core.scene import Scene
from .core.types import (
    AABB, Camera, Color, DirectionalLight, Diffuse, Disk, Material, Plane, Ray, Reflecting,
    Refractive, Sphere, SphericalLight, Texture, Vector3,
)
from .errors import ConfigurationError, DegenerateGeometryError, Lumen3DError, MissingResourceError
from .utils.image_io import save_framebuffer
from .utils.parser import parse_scene


def render_yaml(yaml_path, output_path, width=None, height=None, max_depth=None, threads=None):
    """Load a scene file, render it and write the image. Returns the framebuffer."""
    scene = parse_scene(yaml_path)
    framebuffer = Renderer(width=width, height=height, max_depth=max_depth, threads=threads).render(scene)
    save_framebuffer(framebuffer, output_path)
    return framebuffer


__all__ = [
    "AABB",
    "Camera",
    "Color",
    "ConfigurationError",
    "DegenerateGeometryError",
    "DirectionalLight",
    "Diffuse",
    "Disk",
    "Framebuffer",
    "Lumen3DError",
    "Material",
    "MissingResourceError",
    "Plane",
    "Ray",
    "Reflecting",
    "Refractive",
    "Renderer",
    "Scene",
    "Sphere",
    "SphericalLight",
    "Texture",
    "Vector3",
    "parse_scene",
    "render_yaml",
    "save_framebuffer",
]
