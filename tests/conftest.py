"""Pytest configuration and shared fixtures."""

import sys
from pathlib import Path

import numpy as np
import pytest
from PIL import Image

# Add the project root to the path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from lumen3d.core.types import (  # noqa: E402
    Camera, Color, DirectionalLight, Material, Plane, Ray, Vector3,
)
from lumen3d.core.scene import Scene  # noqa: E402


@pytest.fixture
def white_diffuse():
    """Plain white diffuse material with albedo 0.5."""
    return Material(coloration=Color(1.0, 1.0, 1.0), albedo=0.5)


@pytest.fixture
def floor(white_diffuse):
    """Floor at y = -1, visible from above."""
    return Plane(origin=Vector3(0.0, -1.0, 0.0), normal=Vector3(0.0, -1.0, 0.0),
                 material=white_diffuse)


@pytest.fixture
def sun():
    """White directional light shining straight down."""
    return DirectionalLight(direction=Vector3(0.0, -1.0, 0.0), color=Color(1.0, 1.0, 1.0),
                            intensity=1.0)


@pytest.fixture
def top_down_scene(floor, sun):
    """3x3 image of the lit floor seen from a camera looking straight down."""
    camera = Camera(fov=90.0, width=3, height=3, direction=Vector3(0.0, -1.0, 0.0))
    return Scene(camera=camera, bodies=[floor], lights=[sun])


@pytest.fixture
def down_ray():
    return Ray(Vector3(0.0, 0.0, 0.0), Vector3(0.0, -1.0, 0.0))


@pytest.fixture
def checker_png(tmp_path):
    """2x2 image: red, green on the first row, blue, white on the second."""
    pixels = np.array([
        [[255, 0, 0], [0, 255, 0]],
        [[0, 0, 255], [255, 255, 255]],
    ], dtype=np.uint8)
    path = tmp_path / "checker.png"
    Image.fromarray(pixels).save(path)
    return path


@pytest.fixture
def scene_file(tmp_path):
    """Writes a scene document to a YAML file and returns its path."""
    def write(text, name="scene.yml"):
        path = tmp_path / name
        path.write_text(text)
        return path
    return write
