import sys
import os
import time

# Add Library to Path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from lumen3d.core.renderer import Renderer
from lumen3d.errors import Lumen3DError
from lumen3d.logging_config import setup_logging
from lumen3d.utils.image_io import save_framebuffer
from lumen3d.utils.parser import parse_scene


def render_examples(examples_dir, output_dir, width=320, height=240):
    # Low quality for speed
    renderer = Renderer(width=width, height=height)

    scenes = sorted(f for f in os.listdir(examples_dir) if f.endswith(('.yml', '.yaml')))
    print(f"Found {len(scenes)} example scenes")

    failed = 0
    for name in scenes:
        input_path = os.path.join(examples_dir, name)
        output_path = os.path.join(output_dir, os.path.splitext(name)[0] + '.png')
        print(f"Rendering {name}...")
        start_time = time.time()
        try:
            framebuffer = renderer.render(parse_scene(input_path))
        except Lumen3DError as e:
            print(f"FAILED: {name} - {e}")
            failed += 1
            continue
        save_framebuffer(framebuffer, output_path)
        print(f"  Saved {output_path} ({time.time() - start_time:.2f}s)")

    return failed


def main():
    setup_logging("WARNING")
    root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
    examples_dir = os.path.join(root, 'examples')
    output_dir = sys.argv[1] if len(sys.argv) > 1 else os.path.join(examples_dir, 'renders')

    failed = render_examples(examples_dir, output_dir)
    print("All examples rendered." if not failed else f"{failed} example(s) failed.")
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
