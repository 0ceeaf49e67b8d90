"""Command line interface and logging setup."""

import logging
import os

import pytest
from PIL import Image

import lumen3d
from lumen3d.cli import format_duration, main, output_path_for
from lumen3d.logging_config import setup_logging

TINY_SCENE = """\
width: 4
height: 3
defaultColor: "#102030"
lights:
  - Directional:
      direction: [0.0, -1.0, -1.0]
      color: "#ffffff"
      intensity: 3.0
bodies:
  - Sphere:
      center: [0.0, 0.0, -3.0]
      radius: 1.0
      material:
        coloration:
          Color: "#ff8800"
        albedo: 0.5
"""


class TestHelpers:
    """Pure helpers of the command line."""

    @pytest.mark.parametrize("seconds, expected", [
        (0.0, "0ms"),
        (0.5, "500ms"),
        (0.9, "0.90s"),
        (12.5, "12.50s"),
        (75.5, "1m 15.50s"),
    ])
    def test_format_duration(self, seconds, expected):
        assert format_duration(seconds) == expected

    def test_output_path_next_to_input(self):
        assert output_path_for(os.path.join("scenes", "room.yml")) == os.path.join("scenes", "room.png")

    def test_output_path_in_output_dir(self):
        assert output_path_for("scenes/room.yml", output_dir="out") == os.path.join("out", "room.png")

    def test_explicit_output(self):
        assert output_path_for("scenes/room.yml", output="x.png") == "x.png"


class TestMain:
    """End to end runs of the command line."""

    def test_renders_png(self, scene_file, tmp_path):
        scene = scene_file(TINY_SCENE)
        output = tmp_path / "out" / "tiny.png"
        assert main([str(scene), "-o", str(output), "--log-level", "WARNING"]) == 0
        with Image.open(output) as img:
            assert img.size == (4, 3)
            assert img.mode == "RGB"

    def test_size_override(self, scene_file, tmp_path):
        scene = scene_file(TINY_SCENE)
        assert main([str(scene), "--output-dir", str(tmp_path / "renders"),
                     "-W", "6", "-H", "2", "--log-level", "WARNING"]) == 0
        with Image.open(tmp_path / "renders" / "scene.png") as img:
            assert img.size == (6, 2)

    def test_several_inputs(self, scene_file, tmp_path):
        first = scene_file(TINY_SCENE, "first.yml")
        second = scene_file(TINY_SCENE, "second.yml")
        assert main([str(first), str(second), "--log-level", "WARNING"]) == 0
        assert (tmp_path / "first.png").exists()
        assert (tmp_path / "second.png").exists()

    def test_output_with_several_inputs_is_usage_error(self, scene_file):
        first = scene_file(TINY_SCENE, "first.yml")
        second = scene_file(TINY_SCENE, "second.yml")
        with pytest.raises(SystemExit) as exc_info:
            main([str(first), str(second), "-o", "x.png"])
        assert exc_info.value.code == 2

    def test_bad_scene_fails(self, scene_file, caplog):
        scene = scene_file("bodies:\n  - Cone: {}\n")
        assert main([str(scene), "--log-level", "WARNING"]) == 1
        assert "Cone" in caplog.text

    def test_missing_input_fails(self, tmp_path):
        assert main([str(tmp_path / "absent.yml"), "--log-level", "WARNING"]) == 1

    def test_undecodable_scene_fails(self, tmp_path):
        scene = tmp_path / "binary.yml"
        scene.write_bytes(b"\x89PNG\r\n\x1a\n\xff\xfe")
        assert main([str(scene), "--log-level", "WARNING"]) == 1

    def test_logs_timings(self, scene_file, caplog):
        scene = scene_file(TINY_SCENE)
        with caplog.at_level(logging.INFO, logger="lumen3d"):
            assert main([str(scene), "--log-level", "INFO"]) == 0
        assert "render" in caplog.text
        assert "scene.png" in caplog.text


class TestPackageApi:
    """Top level helpers."""

    def test_render_yaml(self, scene_file, tmp_path):
        output = tmp_path / "api.png"
        framebuffer = lumen3d.render_yaml(str(scene_file(TINY_SCENE)), str(output), width=5, height=5)
        assert output.exists()
        assert framebuffer.pixels.shape == (5, 5, 3)


class TestLogging:
    """Logging setup."""

    def test_no_duplicate_handlers(self):
        logger = setup_logging("DEBUG", name="lumen3d.test")
        setup_logging("DEBUG", name="lumen3d.test")
        assert len(logger.handlers) == 1
        assert logger.level == logging.DEBUG

    def test_log_file(self, tmp_path):
        log_file = tmp_path / "logs" / "render.log"
        logger = setup_logging("INFO", log_file=log_file, name="lumen3d.test_file")
        logger.info("hello")
        for handler in logger.handlers:
            handler.flush()
        assert "hello" in log_file.read_text()
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()
