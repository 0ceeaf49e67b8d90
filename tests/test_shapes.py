"""Ray / body intersection."""

import numpy as np
import pytest

from lumen3d.core.types import AABB, Disk, Material, Plane, Ray, Sphere, Vector3
from lumen3d.errors import ConfigurationError
from lumen3d.shapes import primitives
from lumen3d.shapes.primitives import NO_HIT

ORIGIN = Vector3(0.0, 0.0, 0.0)
FORWARD = Vector3(0.0, 0.0, -1.0)


def approx_vec(v, expected):
    assert tuple(v) == pytest.approx(expected, abs=1e-9)


class TestSphere:
    """Sphere intersection."""

    def test_hit_through_center(self):
        sphere = Sphere(center=Vector3(0.0, 0.0, -5.0), radius=1.0)
        hit = sphere.intersect(Ray(ORIGIN, FORWARD))
        assert hit is not None
        assert hit.distance == pytest.approx(4.0)
        approx_vec(hit.point, (0.0, 0.0, -4.0))
        approx_vec(hit.normal, (0.0, 0.0, 1.0))
        assert not hit.inside

    def test_miss(self):
        sphere = Sphere(center=Vector3(0.0, 3.0, -5.0), radius=1.0)
        assert sphere.intersect(Ray(ORIGIN, FORWARD)) is None

    def test_behind_origin_is_a_miss(self):
        sphere = Sphere(center=Vector3(0.0, 0.0, 5.0), radius=1.0)
        assert sphere.intersect(Ray(ORIGIN, FORWARD)) is None

    def test_from_inside(self):
        sphere = Sphere(center=Vector3(0.0, 0.0, -5.0), radius=1.0)
        hit = sphere.intersect(Ray(Vector3(0.0, 0.0, -5.0), FORWARD))
        assert hit.distance == pytest.approx(1.0)
        assert hit.inside
        # Normal faces against the ray
        approx_vec(hit.normal, (0.0, 0.0, 1.0))

    def test_texture_coordinates_in_unit_range(self):
        sphere = Sphere(center=Vector3(0.0, 0.0, -5.0), radius=1.0)
        hit = sphere.intersect(Ray(ORIGIN, Vector3(0.05, 0.1, -1.0).normalize()))
        assert hit is not None
        u, v = hit.uv
        assert 0.0 <= u <= 1.0
        assert 0.0 <= v <= 1.0

    def test_texture_coordinates_of_known_point(self):
        # Hits (0, 0.5, -5 + sqrt(0.75)): a quarter turn around y, a third of the way down
        sphere = Sphere(center=Vector3(0.0, 0.0, -5.0), radius=1.0)
        hit = sphere.intersect(Ray(Vector3(0.0, 0.5, 0.0), FORWARD))
        assert hit is not None
        assert hit.uv == pytest.approx((0.75, 1.0 / 3.0))
        u, v = primitives.sphere_uv(np.array([0.0, 0.0, -5.0]), 1.0, hit.point.as_array())
        assert (u, v) == pytest.approx(hit.uv)

    def test_non_positive_radius_rejected(self):
        with pytest.raises(ConfigurationError):
            Sphere(center=ORIGIN, radius=0.0)


class TestPlane:
    """Plane and disk intersection."""

    def test_hit(self, floor):
        hit = floor.intersect(Ray(ORIGIN, Vector3(0.0, -1.0, 0.0)))
        assert hit.distance == pytest.approx(1.0)
        approx_vec(hit.normal, (0.0, 1.0, 0.0))
        assert not hit.inside

    def test_parallel_ray_misses(self, floor):
        assert floor.intersect(Ray(ORIGIN, Vector3(1.0, 0.0, 0.0))) is None

    def test_plane_behind_ray_misses(self, floor):
        assert floor.intersect(Ray(ORIGIN, Vector3(0.0, 1.0, 0.0))) is None

    def test_hit_from_back_side(self, floor):
        hit = floor.intersect(Ray(Vector3(0.0, -2.0, 0.0), Vector3(0.0, 1.0, 0.0)))
        assert hit.distance == pytest.approx(1.0)
        assert hit.inside
        approx_vec(hit.normal, (0.0, -1.0, 0.0))

    def test_normal_must_be_unit(self):
        with pytest.raises(ConfigurationError):
            Plane(origin=ORIGIN, normal=Vector3(0.0, 2.0, 0.0))

    def test_kernel_parallel_returns_no_hit(self):
        t = primitives.intersect_plane(np.zeros(3), np.array([1.0, 0.0, 0.0]),
                                       np.array([0.0, -1.0, 0.0]), np.array([0.0, -1.0, 0.0]))
        assert t == NO_HIT

    def test_disk_inside_radius(self):
        disk = Disk(origin=Vector3(0.0, 0.0, -5.0), normal=Vector3(0.0, 0.0, -1.0), radius=1.0)
        hit = disk.intersect(Ray(Vector3(0.5, 0.0, 0.0), FORWARD))
        assert hit.distance == pytest.approx(5.0)
        approx_vec(hit.normal, (0.0, 0.0, 1.0))

    def test_disk_outside_radius(self):
        disk = Disk(origin=Vector3(0.0, 0.0, -5.0), normal=Vector3(0.0, 0.0, -1.0), radius=1.0)
        assert disk.intersect(Ray(Vector3(2.0, 0.0, 0.0), FORWARD)) is None


class TestAABB:
    """Axis aligned box intersection."""

    @pytest.fixture
    def box(self):
        return AABB(min_bound=Vector3(-1.0, -1.0, -6.0), max_bound=Vector3(1.0, 1.0, -4.0))

    def test_front_face(self, box):
        hit = box.intersect(Ray(ORIGIN, FORWARD))
        assert hit.distance == pytest.approx(4.0)
        approx_vec(hit.normal, (0.0, 0.0, 1.0))

    def test_side_face(self, box):
        hit = box.intersect(Ray(Vector3(5.0, 0.0, -5.0), Vector3(-1.0, 0.0, 0.0)))
        assert hit.distance == pytest.approx(4.0)
        approx_vec(hit.normal, (1.0, 0.0, 0.0))

    def test_top_face_from_above(self, box):
        hit = box.intersect(Ray(Vector3(0.0, 3.0, -5.0), Vector3(0.0, -1.0, 0.0)))
        assert hit.distance == pytest.approx(2.0)
        approx_vec(hit.normal, (0.0, 1.0, 0.0))

    def test_miss(self, box):
        assert box.intersect(Ray(Vector3(3.0, 0.0, 0.0), FORWARD)) is None

    def test_box_behind_ray_misses(self, box):
        assert box.intersect(Ray(ORIGIN, Vector3(0.0, 0.0, 1.0))) is None

    def test_from_inside_hits_exit_face(self, box):
        hit = box.intersect(Ray(Vector3(0.0, 0.0, -5.0), FORWARD))
        assert hit is not None
        assert hit.distance == pytest.approx(1.0)
        approx_vec(hit.point, (0.0, 0.0, -6.0))
        assert hit.inside
        # Outward normal of the back face is -z, turned against the ray
        approx_vec(hit.normal, (0.0, 0.0, 1.0))

    def test_from_inside_towards_side(self, box):
        hit = box.intersect(Ray(Vector3(0.0, 0.0, -5.0), Vector3(1.0, 0.0, 0.0)))
        assert hit.distance == pytest.approx(1.0)
        assert hit.inside
        approx_vec(hit.normal, (-1.0, 0.0, 0.0))

    def test_kernel_exit_face(self):
        t, axis, side = primitives.intersect_aabb(
            np.array([0.0, 0.0, -5.0]), np.array([0.0, 1.0, 0.0]),
            np.array([-1.0, -1.0, -6.0]), np.array([1.0, 1.0, -4.0]),
        )
        assert t == pytest.approx(1.0)
        assert axis == 1
        assert side == 1.0

    def test_nearest_face(self):
        bmin = np.array([-1.0, -1.0, -6.0])
        bmax = np.array([1.0, 1.0, -4.0])
        assert primitives.nearest_face(np.array([0.0, 0.99, -5.0]), bmin, bmax) == (1, 1.0)
        assert primitives.nearest_face(np.array([-0.999, 0.0, -5.0]), bmin, bmax) == (0, -1.0)

    def test_inverted_bounds_rejected(self):
        with pytest.raises(ConfigurationError):
            AABB(min_bound=Vector3(1.0, 0.0, 0.0), max_bound=Vector3(0.0, 1.0, 1.0),
                 material=Material())
