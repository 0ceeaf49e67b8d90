import logging
import os

import numpy as np
from PIL import Image

from ..core.types import Texture
from ..errors import MissingResourceError

logger = logging.getLogger(__name__)


def resolve_path(path, base_dir=None):
    # Relative to the scene file first, then the working directory
    if base_dir and not os.path.isabs(path):
        candidate = os.path.join(base_dir, path)
        if os.path.exists(candidate):
            return candidate
    return path


def load_texture(path, base_dir=None, x_offset=0.0, y_offset=0.0, reference=None):
    full_path = resolve_path(path, base_dir)
    if not os.path.exists(full_path):
        raise MissingResourceError(path, reference, "file not found")

    try:
        with Image.open(full_path) as img:
            tex_data = np.array(img.convert('RGB'), dtype=np.float64) / 255.0
    except OSError as e:
        raise MissingResourceError(path, reference, str(e)) from e

    logger.debug("Loaded texture %s (%dx%d)", full_path, tex_data.shape[1], tex_data.shape[0])
    return Texture(pixels=tex_data, x_offset=float(x_offset), y_offset=float(y_offset),
                   source=str(path))


def framebuffer_to_image(framebuffer):
    return Image.fromarray(framebuffer.to_uint8())


def save_framebuffer(framebuffer, path):
    directory = os.path.dirname(os.path.abspath(path))
    os.makedirs(directory, exist_ok=True)
    framebuffer_to_image(framebuffer).save(path)
    logger.debug("Saved %s", path)
