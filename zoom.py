import os
import sys
import warnings
from dataclasses import dataclass
from pathlib import Path
from typing import Any

_VERBOSE_FLAGS = {"--verbose", "-v"}
_cli_verbose = any(arg in _VERBOSE_FLAGS for arg in sys.argv[1:])
_env_log_level = os.environ.get("TF_CPP_MIN_LOG_LEVEL")
_suppress_messages = (not _cli_verbose) and _env_log_level != "0"

if _suppress_messages and _env_log_level is None:
    os.environ["TF_CPP_MIN_LOG_LEVEL"] = "3"

if _suppress_messages:
    warnings.filterwarnings(
        "ignore",
        message=r"Protobuf gencode version .* is exactly one major version older than the runtime version .*",
        category=UserWarning,
        module="google.protobuf",
    )

VERBOSE = _cli_verbose


def log(message, *args, **kwargs):
    if VERBOSE:
        print(message, *args, **kwargs)


# Numeric core
import tensorflow as tf
import numpy as np

if _suppress_messages:
    tf.get_logger().setLevel("ERROR")
    for handler in tf.get_logger().handlers:
        handler.setLevel("ERROR")

# Imports for output
import PIL.Image
import imageio
import matplotlib

from mandelzoom import (
    FrameDescriptor,
    Viewport,
    ZoomConfig,
    iter_frames,
    iteration_budget,
    render_frame,
)

from argparse import ArgumentParser

# All evaluation runs on the CPU; the row partition supplies the parallelism.
DEVICE = '/CPU:0'


def get_colormap(name):
    return matplotlib.colormaps[name]


class FrameWriteError(OSError):
    """Raised when a rendered frame cannot be persisted."""

    def __init__(self, frame_index: int, path: Path, reason: Any):
        super().__init__(f"could not write frame {frame_index} to {path}: {reason}")
        self.frame_index = frame_index
        self.path = path


@dataclass
class OutputConfig:
    frame_dir: Path
    image_format: str
    gif_path: Path | None


def build_parser():
    parser = ArgumentParser(description='Render a Mandelbrot zoom as a numbered sequence of frames.')

    parser.add_argument('--mode', choices=['zoom', 'still'], default='zoom',
                        help='"zoom" renders frames 0..FRAMES toward the focus point; "still" renders a single viewport.')

    parser.add_argument('--width', type=int,
                        dest='width', help='width of every output image in pixels',
                        metavar='WIDTH', default=1920)

    parser.add_argument('--height', type=int,
                        dest='height', help='height of every output image in pixels (default: WIDTH // 16 * 9)',
                        metavar='HEIGHT', default=None)

    parser.add_argument('--frames', type=int,
                        dest='frames', help='index of the last frame to render; frames 0..FRAMES are generated',
                        metavar='FRAMES', default=480)

    parser.add_argument('--first-frame', type=int,
                        dest='first_frame', help='index of the first frame to render, for resuming a sequence',
                        metavar='FIRST_FRAME', default=0)

    parser.add_argument('--x-focus', type=float,
                        dest='x_focus', help='real part of the point the zoom converges on',
                        metavar='X_FOCUS', default=-1.0067581019642513)

    parser.add_argument('--y-focus', type=float,
                        dest='y_focus', help='imaginary part of the point the zoom converges on',
                        metavar='Y_FOCUS', default=0.3112899872556565)

    parser.add_argument('--rad-x', type=float,
                        dest='rad_x', help='half-width of the viewport at frame 0',
                        metavar='RAD_X', default=2.0)

    parser.add_argument('--rad-y', type=float,
                        dest='rad_y', help='half-height of the viewport at frame 0',
                        metavar='RAD_Y', default=1.0)

    parser.add_argument('--rad-mult', type=float,
                        dest='rad_mult', help='both radii are divided by this factor once per frame; controls zoom speed',
                        metavar='RAD_MULT', default=1.03)

    parser.add_argument('--iteration-constant', type=float,
                        dest='iteration_constant', help='scale factor of the iteration budget heuristic',
                        metavar='K', default=66.5)

    parser.add_argument('--viewport', type=float, nargs=4,
                        dest='viewport', help='still mode: bounds of the rendered region',
                        metavar=('X_MIN', 'X_MAX', 'Y_MIN', 'Y_MAX'), default=None)

    parser.add_argument('--max-iterations', type=int,
                        dest='max_iterations', help='still mode: fixed iteration budget instead of the heuristic',
                        metavar='MAX_ITERATIONS', default=None)

    parser.add_argument('--workers', type=int,
                        dest='workers', help='number of row bands evaluated in parallel (default: CPU count)',
                        metavar='WORKERS', default=None)

    parser.add_argument('--colormap', type=str,
                        dest='colormap', help='matplotlib colormap used to colorize escape times',
                        metavar='COLORMAP', default='viridis')

    parser.add_argument('--format', type=str,
                        dest='format', help='file format of the frames. Can be any extension supported by Pillow. Default: "png".',
                        metavar='FORMAT', default='png')

    parser.add_argument('--output-dir', type=str,
                        dest='output_dir', help='frames are written to OUTPUT_DIR/<width>x<height>/<frame>.<format>',
                        metavar='OUTPUT_DIR', default='images')

    parser.add_argument('--gif', type=str,
                        dest='gif', help='also assemble the rendered frames into an animated GIF at this path',
                        metavar='GIF', default=None)

    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable verbose logging, including per-frame zoom and iteration reports.')

    return parser


def resolve_zoom_config(opt, parser: ArgumentParser) -> ZoomConfig:
    height = opt.height if opt.height is not None else opt.width // 16 * 9
    if opt.frames < 0:
        parser.error("--frames must be non-negative.")
    if not 0 <= opt.first_frame <= opt.frames:
        parser.error("--first-frame must lie between 0 and --frames.")
    if opt.workers is not None and opt.workers <= 0:
        parser.error("--workers must be positive.")
    if opt.mode == 'zoom' and (opt.viewport is not None or opt.max_iterations is not None):
        parser.error("--viewport and --max-iterations are only valid with --mode still.")
    if opt.max_iterations is not None and opt.max_iterations < 0:
        parser.error("--max-iterations must be non-negative.")

    try:
        return ZoomConfig(
            width=opt.width,
            height=height,
            x_focus=opt.x_focus,
            y_focus=opt.y_focus,
            rad_x=opt.rad_x,
            rad_y=opt.rad_y,
            multiplier=opt.rad_mult,
            iteration_constant=opt.iteration_constant,
            max_frames=opt.frames,
        )
    except ValueError as exc:
        parser.error(str(exc))


def resolve_output_config(opt, parser: ArgumentParser, config: ZoomConfig) -> OutputConfig:
    image_format = (opt.format or "png").lower().lstrip(".") or "png"
    frame_dir = Path(opt.output_dir).expanduser().resolve() / f"{config.width}x{config.height}"

    gif_path = None
    if opt.gif:
        gif_path = Path(opt.gif).expanduser()
        if gif_path.suffix:
            if gif_path.suffix.lower() != ".gif":
                parser.error("GIF outputs must end with .gif.")
        else:
            gif_path = gif_path.with_suffix(".gif")
        gif_path = gif_path.resolve()

    return OutputConfig(frame_dir=frame_dir, image_format=image_format, gif_path=gif_path)


def still_frame(opt, parser: ArgumentParser, config: ZoomConfig) -> FrameDescriptor:
    """Descriptor for ``--mode still``: the given viewport, or the frame-0 viewport of the zoom."""

    if opt.viewport is not None:
        try:
            viewport = Viewport(*opt.viewport)
        except ValueError as exc:
            parser.error(str(exc))
    else:
        viewport = Viewport.around(config.x_focus, config.y_focus, config.rad_x, config.rad_y)

    if opt.max_iterations is not None:
        budget = opt.max_iterations
    else:
        budget = iteration_budget(viewport, config.width, config.iteration_constant)
    return FrameDescriptor(
        index=0,
        viewport=viewport,
        budget=budget,
        rad_x=viewport.x_width / 2.0,
        rad_y=viewport.y_width / 2.0,
    )


def colorize_grid(iterations: np.ndarray, budget: int, cmap) -> np.ndarray:
    """Map escape times to RGBA bytes through ``cmap`` using ``iterations / budget``."""

    if budget > 0:
        v = iterations.astype(np.float64) / np.float64(budget)
    else:
        v = np.zeros(iterations.shape, dtype=np.float64)
    rgba = np.array(cmap(np.clip(v, 0.0, 1.0)), copy=True)
    return np.uint8(np.clip(rgba * 255, 0, 255))


def _pil_format_name(ext: str) -> str:
    upper = ext.upper()
    if upper == "JPG":
        return "JPEG"
    if upper == "TIF":
        return "TIFF"
    return upper


def write_frame_image(image: PIL.Image.Image, path: Path, image_format: str, frame_index: int) -> Path:
    """Write ``image`` to ``path``, creating parent directories as needed."""

    pil_format = _pil_format_name(image_format)
    if pil_format == "JPEG" and image.mode != "RGB":
        image = image.convert("RGB")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        image.save(str(path), format=pil_format)
    except (OSError, ValueError, KeyError) as exc:
        raise FrameWriteError(frame_index, path, exc) from exc
    return path


@dataclass
class OutputWriters:
    config: OutputConfig

    def __post_init__(self) -> None:
        self._gif_writer = None
        if self.config.gif_path is not None:
            try:
                self.config.gif_path.parent.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                raise FrameWriteError(0, self.config.gif_path, exc) from exc
            self._gif_writer = imageio.get_writer(str(self.config.gif_path), mode='I', duration=0.1, loop=0)

    def frame_path(self, name: str) -> Path:
        return self.config.frame_dir / f"{name}.{self.config.image_format}"

    def write(self, frame_index: int, frame_array: np.ndarray, name: str) -> Path:
        path = write_frame_image(
            PIL.Image.fromarray(frame_array),
            self.frame_path(name),
            self.config.image_format,
            frame_index,
        )
        if self._gif_writer is not None:
            try:
                self._gif_writer.append_data(frame_array)
            except OSError as exc:
                raise FrameWriteError(frame_index, self.config.gif_path, exc) from exc
        return path

    def close(self) -> None:
        if self._gif_writer is not None:
            self._gif_writer.close()
            self._gif_writer = None


def frame_report(frame: FrameDescriptor) -> str:
    viewport = frame.viewport
    return "Frame {0} | Power {1} | Iters {2} | x scale {3} | y scale {4}".format(
        frame.index,
        frame.power,
        frame.budget,
        viewport.x_width,
        viewport.y_width,
    )


def main(argv=None):
    parser = build_parser()
    opt = parser.parse_args(argv)

    global VERBOSE
    VERBOSE = bool(opt.verbose)
    log("TensorFlow version: %s" % tf.__version__)

    config = resolve_zoom_config(opt, parser)
    output_config = resolve_output_config(opt, parser, config)

    try:
        cmap = get_colormap(opt.colormap)
    except (KeyError, ValueError):
        parser.error(f"Unknown colormap '{opt.colormap}'.")

    if opt.mode == 'still':
        frames = [still_frame(opt, parser, config)]
        names = ["still"]
        last_frame = 0
    else:
        frames = iter_frames(config, start=opt.first_frame)
        names = None
        last_frame = config.max_frames

    try:
        writers = OutputWriters(output_config)
    except FrameWriteError as exc:
        print(f"Fatal: {exc}", file=sys.stderr)
        return 1

    try:
        for position, frame in enumerate(frames):
            print("frame {0} out of {1}".format(frame.index, last_frame), end='\r')
            log(frame_report(frame))
            result = render_frame(frame, config.width, config.height, workers=opt.workers, device=DEVICE)
            frame_array = colorize_grid(result.iterations, result.budget, cmap)
            name = names[position] if names is not None else str(frame.index)
            path = writers.write(frame.index, frame_array, name)
            log("Wrote %s in %.3fs" % (path, result.elapsed))
            del result, frame_array
    except FrameWriteError as exc:
        print(f"\nFatal: {exc}", file=sys.stderr)
        return 1
    finally:
        writers.close()

    print()
    return 0


if __name__ == '__main__':
    sys.exit(main())
