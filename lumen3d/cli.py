"""Command line entry point: render one or more scene files to PNG."""
import argparse
import logging
import os
import sys
import time

from .core.renderer import Renderer
from .errors import Lumen3DError
from .logging_config import setup_logging
from .utils.image_io import save_framebuffer
from .utils.parser import parse_scene

logger = logging.getLogger("lumen3d.cli")

ONE_MINUTE = 60.0


def format_duration(seconds):
    milliseconds = int(seconds * 1000)
    if milliseconds < 800:
        return f"{milliseconds}ms"
    if seconds < ONE_MINUTE:
        return f"{seconds:.2f}s"
    minutes = int(seconds // ONE_MINUTE)
    return f"{minutes}m {seconds - minutes * ONE_MINUTE:.2f}s"


def output_path_for(input_path, output=None, output_dir=None):
    if output:
        return output
    stem = os.path.splitext(os.path.basename(input_path))[0]
    return os.path.join(output_dir or os.path.dirname(input_path) or '.', f"{stem}.png")


def build_parser():
    parser = argparse.ArgumentParser(prog="lumen3d", description="Render YAML scenes with a ray tracer.")
    parser.add_argument("inputs", nargs="+", metavar="INPUT", help="scene file(s) to render")
    target = parser.add_mutually_exclusive_group()
    target.add_argument("-o", "--output", help="output image (only with a single input)")
    target.add_argument("--output-dir", help="directory for output images, named after the inputs")
    parser.add_argument("-W", "--width", type=int, help="image width, overrides the scene")
    parser.add_argument("-H", "--height", type=int, help="image height, overrides the scene")
    parser.add_argument("-d", "--max-depth", type=int, help="max recursion depth, overrides the scene")
    parser.add_argument("-j", "--threads", type=int, help="number of render threads")
    parser.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING, ERROR")
    parser.add_argument("--log-file", default=None, help="also log to this file")
    return parser


def render_file(input_path, output_path, renderer):
    scene = parse_scene(input_path)

    render_start = time.perf_counter()
    framebuffer = renderer.render(scene)
    render_end = time.perf_counter()

    save_framebuffer(framebuffer, output_path)
    write_end = time.perf_counter()

    logger.info("%s\t→\t%s\t(%s render, %s write)", input_path, output_path,
                format_duration(render_end - render_start),
                format_duration(write_end - render_end))


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.output and len(args.inputs) > 1:
        parser.error("--output needs exactly one input, use --output-dir for several")

    setup_logging(args.log_level, args.log_file)

    try:
        renderer = Renderer(width=args.width, height=args.height,
                            max_depth=args.max_depth, threads=args.threads)
        for input_path in args.inputs:
            render_file(input_path, output_path_for(input_path, args.output, args.output_dir), renderer)
    except Lumen3DError as e:
        logger.error("%s", e)
        return 1
    except OSError as e:
        logger.error("%s: %s", getattr(e, 'filename', None) or 'I/O error', e.strerror or e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
