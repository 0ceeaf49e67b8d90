"""Scene value types.

Bodies, materials and lights form closed sets of variants. They are plain
dataclasses validated on construction; the renderer packs them into the flat
arrays the numba kernels work on (see :mod:`lumen3d.core.scene`).
"""
import math
from dataclasses import dataclass, field
from typing import NamedTuple, Optional, Tuple, Union

import numpy as np

from ..config import DEFAULT_FOV, DEFAULT_HEIGHT, DEFAULT_WIDTH, UNIT_TOLERANCE
from ..errors import ConfigurationError, DegenerateGeometryError
from ..shapes import primitives
from ..shapes.primitives import SHAPE_AABB, SHAPE_DISK, SHAPE_PLANE, SHAPE_SPHERE, BODY_PARAMS
from . import lights as light_kernels
from . import math as kmath
from .lights import LIGHT_DIRECTIONAL, LIGHT_SPHERICAL


class Vector3(NamedTuple):
    """Immutable 3D vector."""

    x: float
    y: float
    z: float

    def __add__(self, other):
        return Vector3(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other):
        return Vector3(self.x - other.x, self.y - other.y, self.z - other.z)

    def __mul__(self, s):
        return Vector3(self.x * s, self.y * s, self.z * s)

    __rmul__ = __mul__

    def __truediv__(self, s):
        return Vector3(self.x / s, self.y / s, self.z / s)

    def __neg__(self):
        return Vector3(-self.x, -self.y, -self.z)

    def dot(self, other) -> float:
        return self.x * other.x + self.y * other.y + self.z * other.z

    def cross(self, other) -> "Vector3":
        return Vector3(
            self.y * other.z - self.z * other.y,
            self.z * other.x - self.x * other.z,
            self.x * other.y - self.y * other.x,
        )

    def length(self) -> float:
        return math.sqrt(self.dot(self))

    def normalize(self) -> "Vector3":
        l = self.length()
        if l == 0.0:
            raise DegenerateGeometryError("cannot normalize a zero-length vector")
        return self / l

    def reflect(self, normal: "Vector3") -> "Vector3":
        return self - normal * (2.0 * self.dot(normal))

    def refract(self, normal: "Vector3", eta: float) -> Optional["Vector3"]:
        """Snell refraction; None on total internal reflection."""
        cos_i = -self.dot(normal)
        k = 1.0 - eta * eta * (1.0 - cos_i * cos_i)
        if k < 0.0:
            return None
        return self * eta + normal * (eta * cos_i - math.sqrt(k))

    def is_unit(self, tolerance: float = UNIT_TOLERANCE) -> bool:
        return abs(self.length() - 1.0) <= tolerance

    def as_array(self) -> np.ndarray:
        return np.array([self.x, self.y, self.z], dtype=np.float64)

    @classmethod
    def from_array(cls, a) -> "Vector3":
        return cls(float(a[0]), float(a[1]), float(a[2]))


class Ray(NamedTuple):
    origin: Vector3
    direction: Vector3


class Color(NamedTuple):
    red: float
    green: float
    blue: float

    @classmethod
    def black(cls) -> "Color":
        return cls(0.0, 0.0, 0.0)

    @classmethod
    def from_hex(cls, value: str) -> "Color":
        if not isinstance(value, str):
            raise ConfigurationError(f"Invalid color {value!r}, expected #rrggbb")
        text = value.strip()
        if text.startswith("#"):
            text = text[1:]
        if len(text) != 6:
            raise ConfigurationError(f"Invalid color {value!r}, expected #rrggbb")
        try:
            channels = [int(text[i:i + 2], 16) for i in (0, 2, 4)]
        except ValueError:
            raise ConfigurationError(f"Invalid color {value!r}, expected #rrggbb") from None
        return cls(*(c / 255.0 for c in channels))

    def to_hex(self) -> str:
        # Tolerate the round-off of a /255 decode
        r, g, b = (int(math.floor(c * 255.0 + 1e-9)) for c in self.clamp())
        return f"#{r:02x}{g:02x}{b:02x}"

    def clamp(self) -> "Color":
        return Color(*(min(max(c, 0.0), 1.0) for c in self))

    def as_array(self) -> np.ndarray:
        return np.array([self.red, self.green, self.blue], dtype=np.float64)

    @classmethod
    def from_array(cls, a) -> "Color":
        return cls(float(a[0]), float(a[1]), float(a[2]))


def _check_fraction(value, what):
    if not 0.0 <= value <= 1.0:
        raise ConfigurationError(f"{what} must be within [0, 1], got {value}")


def _check_positive(value, what):
    if not value > 0.0:
        raise ConfigurationError(f"{what} must be greater than 0, got {value}")


def _check_unit(vector, what):
    if not vector.is_unit():
        raise ConfigurationError(f"{what} must be a unit vector, got {tuple(vector)}")


def _check_color(color, what):
    for channel in color:
        _check_fraction(channel, what)


# COLORATIONS

@dataclass(frozen=True, eq=False)
class Texture:
    """Pre-loaded RGB image sampled through surface texture coordinates."""

    pixels: np.ndarray = field(repr=False)
    x_offset: float = 0.0
    y_offset: float = 0.0
    source: Optional[str] = None

    def __post_init__(self):
        if self.pixels.ndim != 3 or self.pixels.shape[2] != 3 or self.pixels.size == 0:
            raise ConfigurationError(
                f"Texture {self.source or ''} must be a non-empty height x width x 3 grid"
            )

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

    def at(self, u: float, v: float) -> Color:
        x = int(math.floor(u * self.width + self.x_offset)) % self.width
        y = int(math.floor(v * self.height + self.y_offset)) % self.height
        return Color.from_array(self.pixels[y, x])


Coloration = Union[Color, Texture]


def coloration_at(coloration: Coloration, u: float = 0.0, v: float = 0.0) -> Color:
    if isinstance(coloration, Texture):
        return coloration.at(u, v)
    return coloration


# SURFACES

@dataclass(frozen=True)
class Diffuse:
    pass


@dataclass(frozen=True)
class Reflecting:
    reflectivity: float

    def __post_init__(self):
        _check_fraction(self.reflectivity, "reflectivity")


@dataclass(frozen=True)
class Refractive:
    index: float
    transparency: float

    def __post_init__(self):
        _check_positive(self.index, "refraction index")
        _check_fraction(self.transparency, "transparency")


Surface = Union[Diffuse, Reflecting, Refractive]


@dataclass(frozen=True)
class Material:
    coloration: Coloration = Color(1.0, 1.0, 1.0)
    albedo: float = 0.18
    surface: Surface = field(default_factory=Diffuse)

    def __post_init__(self):
        _check_fraction(self.albedo, "albedo")
        if isinstance(self.coloration, Color):
            _check_color(self.coloration, "color channel")
        elif not isinstance(self.coloration, Texture):
            raise ConfigurationError(f"Unknown coloration {self.coloration!r}")
        if not isinstance(self.surface, (Diffuse, Reflecting, Refractive)):
            raise ConfigurationError(f"Unknown surface {self.surface!r}")


class Intersection(NamedTuple):
    distance: float
    point: Vector3
    normal: Vector3          # oriented against the incoming ray
    inside: bool             # the ray arrived from behind the outward normal
    uv: Tuple[float, float]
    material: Material
    body_index: int = -1


# BODIES

class Body:
    """Common behaviour of the closed set of renderable bodies."""

    shape_type = -1

    def params(self) -> np.ndarray:
        raise NotImplementedError

    def intersect(self, ray: Ray) -> Optional[Intersection]:
        ro = ray.origin.as_array()
        rd = ray.direction.as_array()
        params = self.params()
        t = primitives.hit_distance(self.shape_type, params, ro, rd)
        if t <= 0.0:
            return None
        return make_intersection(self.shape_type, params, ro, rd, t, self.material)


def make_intersection(shape_type, params, ro, rd, t, material, body_index=-1) -> Intersection:
    p, outward, u, v = primitives.surface_at(shape_type, params, ro, rd, t)
    inside = kmath.dot(rd, outward) > 0.0
    normal = -outward if inside else outward
    return Intersection(
        distance=float(t),
        point=Vector3.from_array(p),
        normal=Vector3.from_array(normal),
        inside=bool(inside),
        uv=(float(u), float(v)),
        material=material,
        body_index=body_index,
    )


def _row(*values) -> np.ndarray:
    row = np.zeros(BODY_PARAMS, dtype=np.float64)
    row[:len(values)] = values
    return row


@dataclass(frozen=True)
class Sphere(Body):
    center: Vector3
    radius: float
    material: Material = field(default_factory=Material)

    shape_type = SHAPE_SPHERE

    def __post_init__(self):
        _check_positive(self.radius, "sphere radius")

    def params(self):
        return _row(*self.center, self.radius)


@dataclass(frozen=True)
class Plane(Body):
    origin: Vector3
    normal: Vector3
    material: Material = field(default_factory=Material)

    shape_type = SHAPE_PLANE

    def __post_init__(self):
        _check_unit(self.normal, "plane normal")

    def params(self):
        return _row(*self.origin, *self.normal)


@dataclass(frozen=True)
class Disk(Body):
    origin: Vector3
    normal: Vector3
    radius: float
    material: Material = field(default_factory=Material)

    shape_type = SHAPE_DISK

    def __post_init__(self):
        _check_unit(self.normal, "disk normal")
        _check_positive(self.radius, "disk radius")

    def params(self):
        return _row(*self.origin, *self.normal, self.radius)


@dataclass(frozen=True)
class AABB(Body):
    min_bound: Vector3
    max_bound: Vector3
    material: Material = field(default_factory=Material)

    shape_type = SHAPE_AABB

    def __post_init__(self):
        for axis, lo, hi in zip("xyz", self.min_bound, self.max_bound):
            if lo > hi:
                raise ConfigurationError(
                    f"AABB min bound must not exceed max bound on {axis} ({lo} > {hi})"
                )

    def params(self):
        return _row(*self.min_bound, *self.max_bound)


# LIGHTS

class Light:
    light_type = -1

    def params(self) -> np.ndarray:
        raise NotImplementedError

    def illuminate(self, point: Vector3):
        """(direction to light, color, intensity at point, distance to light)"""
        l_dir, l_col, l_int, l_dist = light_kernels.illuminate(
            self.light_type, self.params(), point.as_array()
        )
        return Vector3.from_array(l_dir), Color.from_array(l_col), float(l_int), float(l_dist)


@dataclass(frozen=True)
class DirectionalLight(Light):
    direction: Vector3
    color: Color = Color(1.0, 1.0, 1.0)
    intensity: float = 1.0

    light_type = LIGHT_DIRECTIONAL

    def __post_init__(self):
        _check_unit(self.direction, "light direction")
        _check_color(self.color, "light color channel")
        _check_positive(self.intensity, "light intensity")

    def params(self):
        return np.array([*self.direction, *self.color, self.intensity], dtype=np.float64)


@dataclass(frozen=True)
class SphericalLight(Light):
    position: Vector3
    color: Color = Color(1.0, 1.0, 1.0)
    intensity: float = 1.0

    light_type = LIGHT_SPHERICAL

    def __post_init__(self):
        _check_color(self.color, "light color channel")
        _check_positive(self.intensity, "light intensity")

    def params(self):
        return np.array([*self.position, *self.color, self.intensity], dtype=np.float64)


# CAMERA

@dataclass(frozen=True)
class Camera:
    """Pinhole camera. Defaults to the origin looking down -z."""

    fov: float = DEFAULT_FOV
    width: int = DEFAULT_WIDTH
    height: int = DEFAULT_HEIGHT
    position: Vector3 = Vector3(0.0, 0.0, 0.0)
    direction: Vector3 = Vector3(0.0, 0.0, -1.0)

    def __post_init__(self):
        if not 0.0 < self.fov < 180.0:
            raise ConfigurationError(f"fov must be within (0, 180) degrees, got {self.fov}")
        if int(self.width) != self.width or self.width <= 0:
            raise ConfigurationError(f"image width must be a positive integer, got {self.width}")
        if int(self.height) != self.height or self.height <= 0:
            raise ConfigurationError(f"image height must be a positive integer, got {self.height}")
        _check_unit(self.direction, "camera direction")

    def basis(self):
        """(forward, right, up) unit vectors as arrays."""
        forward = self.direction
        world_up = Vector3(0.0, 1.0, 0.0)
        # Looking straight up or down: keep -z as the top of the image
        if abs(forward.dot(world_up)) > 0.999:
            world_up = Vector3(0.0, 0.0, -1.0) if forward.y < 0.0 else Vector3(0.0, 0.0, 1.0)
        right = forward.cross(world_up).normalize()
        up = right.cross(forward)
        return forward.as_array(), right.as_array(), up.as_array()

    def with_size(self, width: Optional[int] = None, height: Optional[int] = None) -> "Camera":
        return Camera(
            fov=self.fov,
            width=self.width if width is None else width,
            height=self.height if height is None else height,
            position=self.position,
            direction=self.direction,
        )
