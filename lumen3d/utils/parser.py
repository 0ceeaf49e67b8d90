"""YAML scene loader.

A scene file looks like::

    fov: 90
    defaultColor: "#555555"
    maxRecursionDepth: 5
    lights:
      - Directional:
          direction: {x: 0.4, y: -1.0, z: -0.9}
          color: "#ffffee"
          intensity: 7.0
    bodies:
      - Sphere:
          center: [0.0, 0.0, -5.0]
          radius: 1.0
          material:
            coloration:
              Color: "#ffffff"
            albedo: 0.18
            surface:
              Reflecting:
                reflectivity: 0.7

Bodies are Sphere, Plane, Disk and AABB (``bounds: [min, max]``). Lights are
Directional and Spherical. Colorations are ``Color: "#rrggbb"`` or
``Texture: {image, x_offset, y_offset}``. Surfaces are ``Diffuse``,
``Reflecting: {reflectivity}`` and ``Refractive: {index, transparency}``.
Normals and light directions are normalized here.
"""
import logging
import os

import yaml

from ..config import DEFAULT_FOV, DEFAULT_HEIGHT, DEFAULT_MAX_DEPTH, DEFAULT_WIDTH
from ..core.scene import Scene
from ..core.types import (
    AABB, Camera, Color, DirectionalLight, Diffuse, Disk, Material, Plane, Reflecting,
    Refractive, Sphere, SphericalLight, Vector3,
)
from ..errors import ConfigurationError, DegenerateGeometryError
from .image_io import load_texture

logger = logging.getLogger(__name__)

SCENE_KEYS = {'fov', 'width', 'height', 'defaultColor', 'maxRecursionDepth', 'camera', 'lights', 'bodies'}


def _fields(mapping, what, required=(), optional=()):
    if mapping is None:
        mapping = {}
    if not isinstance(mapping, dict):
        raise ConfigurationError(f"{what} must be a mapping, got {mapping!r}")
    unknown = set(mapping) - set(required) - set(optional)
    if unknown:
        raise ConfigurationError(f"{what}: unknown field(s) {', '.join(sorted(map(str, unknown)))}")
    missing = [k for k in required if k not in mapping]
    if missing:
        raise ConfigurationError(f"{what}: missing field(s) {', '.join(missing)}")
    return mapping


def _variant(entry, what):
    """Split a single-key mapping (or a bare name) into (name, fields)."""
    if isinstance(entry, str):
        return entry, {}
    if isinstance(entry, dict) and len(entry) == 1:
        name, body = next(iter(entry.items()))
        return name, {} if body is None else body
    raise ConfigurationError(f"{what} must name exactly one variant, got {entry!r}")


def _number(value, what):
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigurationError(f"{what} must be a number, got {value!r}")
    return float(value)


def _integer(value, what):
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(f"{what} must be an integer, got {value!r}")
    return value


def _vector(value, what):
    if isinstance(value, dict):
        _fields(value, what, required=('x', 'y', 'z'))
        value = [value['x'], value['y'], value['z']]
    if not isinstance(value, (list, tuple)) or len(value) != 3:
        raise ConfigurationError(f"{what} must be [x, y, z] or {{x, y, z}}, got {value!r}")
    return Vector3(*(_number(c, what) for c in value))


def _unit(value, what):
    try:
        return _vector(value, what).normalize()
    except DegenerateGeometryError:
        raise ConfigurationError(f"{what} must not be a zero-length vector") from None


def _color(value, what):
    if isinstance(value, (list, tuple)) and len(value) == 3:
        return Color(*(_number(c, what) for c in value))
    try:
        return Color.from_hex(value)
    except ConfigurationError as e:
        raise ConfigurationError(f"{what}: {e}") from None


def parse_material(data, what, base_dir=None):
    data = _fields(data, what, required=('coloration', 'albedo'), optional=('surface',))

    kind, fields = _variant(data['coloration'], f"{what} coloration")
    if kind == 'Color':
        coloration = _color(fields, f"{what} color")
    elif kind == 'Texture':
        fields = _fields(fields, f"{what} texture", required=('image',), optional=('x_offset', 'y_offset'))
        coloration = load_texture(
            str(fields['image']),
            base_dir=base_dir,
            x_offset=_number(fields.get('x_offset', 0.0), f"{what} texture x_offset"),
            y_offset=_number(fields.get('y_offset', 0.0), f"{what} texture y_offset"),
            reference=what,
        )
    else:
        raise ConfigurationError(f"{what}: unknown coloration {kind!r}")

    kind, fields = _variant(data.get('surface', 'Diffuse'), f"{what} surface")
    if kind == 'Diffuse':
        _fields(fields, f"{what} Diffuse surface")
        surface = Diffuse()
    elif kind == 'Reflecting':
        fields = _fields(fields, f"{what} Reflecting surface", required=('reflectivity',))
        surface = Reflecting(_number(fields['reflectivity'], f"{what} reflectivity"))
    elif kind == 'Refractive':
        fields = _fields(fields, f"{what} Refractive surface", required=('index', 'transparency'))
        surface = Refractive(_number(fields['index'], f"{what} index"),
                             _number(fields['transparency'], f"{what} transparency"))
    else:
        raise ConfigurationError(f"{what}: unknown surface {kind!r}")

    return Material(coloration=coloration, albedo=_number(data['albedo'], f"{what} albedo"),
                    surface=surface)


def parse_body(entry, index, base_dir=None):
    kind, fields = _variant(entry, f"body #{index}")
    what = f"body #{index} ({kind})"

    if kind == 'Sphere':
        fields = _fields(fields, what, required=('center', 'radius', 'material'))
        material = parse_material(fields['material'], what, base_dir)
        return Sphere(center=_vector(fields['center'], f"{what} center"),
                      radius=_number(fields['radius'], f"{what} radius"),
                      material=material)
    elif kind == 'Plane':
        fields = _fields(fields, what, required=('origin', 'normal', 'material'))
        material = parse_material(fields['material'], what, base_dir)
        return Plane(origin=_vector(fields['origin'], f"{what} origin"),
                     normal=_unit(fields['normal'], f"{what} normal"),
                     material=material)
    elif kind == 'Disk':
        fields = _fields(fields, what, required=('origin', 'normal', 'radius', 'material'))
        material = parse_material(fields['material'], what, base_dir)
        return Disk(origin=_vector(fields['origin'], f"{what} origin"),
                    normal=_unit(fields['normal'], f"{what} normal"),
                    radius=_number(fields['radius'], f"{what} radius"),
                    material=material)
    elif kind == 'AABB':
        fields = _fields(fields, what, required=('bounds', 'material'))
        bounds = fields['bounds']
        if not isinstance(bounds, (list, tuple)) or len(bounds) != 2:
            raise ConfigurationError(f"{what} bounds must be a [min, max] pair")
        material = parse_material(fields['material'], what, base_dir)
        return AABB(min_bound=_vector(bounds[0], f"{what} min bound"),
                    max_bound=_vector(bounds[1], f"{what} max bound"),
                    material=material)

    raise ConfigurationError(f"body #{index}: unknown body type {kind!r}")


def parse_light(entry, index):
    kind, fields = _variant(entry, f"light #{index}")
    what = f"light #{index} ({kind})"

    if kind == 'Directional':
        fields = _fields(fields, what, required=('direction', 'color', 'intensity'))
        return DirectionalLight(direction=_unit(fields['direction'], f"{what} direction"),
                                color=_color(fields['color'], f"{what} color"),
                                intensity=_number(fields['intensity'], f"{what} intensity"))
    elif kind == 'Spherical':
        fields = _fields(fields, what, required=('position', 'color', 'intensity'))
        return SphericalLight(position=_vector(fields['position'], f"{what} position"),
                              color=_color(fields['color'], f"{what} color"),
                              intensity=_number(fields['intensity'], f"{what} intensity"))

    raise ConfigurationError(f"light #{index}: unknown light type {kind!r}")


def _with_context(what, build, *args):
    try:
        return build(*args)
    except ConfigurationError as e:
        if str(e).startswith(what):
            raise
        raise ConfigurationError(f"{what}: {e}") from e


def build_scene(data, base_dir=None):
    """Scene from an already decoded document (a dict)."""
    data = _fields(data, "scene", optional=SCENE_KEYS)

    camera_data = _fields(data.get('camera'), "camera", optional=('position', 'direction'))
    camera = Camera(
        fov=_number(data.get('fov', DEFAULT_FOV), "fov"),
        width=_integer(data.get('width', DEFAULT_WIDTH), "width"),
        height=_integer(data.get('height', DEFAULT_HEIGHT), "height"),
        position=_vector(camera_data.get('position', [0.0, 0.0, 0.0]), "camera position"),
        direction=_unit(camera_data.get('direction', [0.0, 0.0, -1.0]), "camera direction"),
    )

    bodies_data = data.get('bodies') or []
    lights_data = data.get('lights') or []
    if not isinstance(bodies_data, list):
        raise ConfigurationError("bodies must be a list")
    if not isinstance(lights_data, list):
        raise ConfigurationError("lights must be a list")

    bodies = []
    for i, entry in enumerate(bodies_data):
        body = _with_context(f"body #{i}", parse_body, entry, i, base_dir)
        logger.debug("Body #%d: %s", i, type(body).__name__)
        bodies.append(body)

    lights = []
    for i, entry in enumerate(lights_data):
        light = _with_context(f"light #{i}", parse_light, entry, i)
        logger.debug("Light #%d: %s", i, type(light).__name__)
        lights.append(light)

    return Scene(
        camera=camera,
        default_color=_color(data.get('defaultColor', '#000000'), "defaultColor"),
        max_depth=_integer(data.get('maxRecursionDepth', DEFAULT_MAX_DEPTH), "maxRecursionDepth"),
        bodies=bodies,
        lights=lights,
    )


def parse_scene(yaml_path):
    with open(yaml_path, 'r', encoding='utf-8') as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"{yaml_path}: invalid YAML: {e}") from e
        except UnicodeDecodeError as e:
            raise ConfigurationError(f"{yaml_path}: not valid UTF-8 text: {e}") from e

    if data is None:
        data = {}
    scene = build_scene(data, base_dir=os.path.dirname(os.path.abspath(yaml_path)))
    logger.info("Loaded %s: %d bodies, %d lights", yaml_path, len(scene.bodies), len(scene.lights))
    return scene
