from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import Any, Dict, Optional

from juliamotion.config import ensure_output_parent, load_config, normalise_config, parse_time_base, RenderConfig
from juliamotion.errors import ConfigError, EncoderError, WorkerError
from juliamotion.pipeline import FrameSink, render_animation
from juliamotion.util.logging_setup import configure_root_logging, create_log_queue, get_logger, start_queue_listener
from juliamotion.util.manifest import build_manifest, git_commit, utc_iso, write_manifest
from juliamotion.video.opencv_writer import OpenCVVideoSink, encode_frames
from juliamotion.video.png_frames import PngFrameSink

# Render options that may also come from the --config JSON file.
CONFIG_KEYS = [
    "image_width", "image_height", "frames", "plane_width", "path", "output", "output_format",
    "iterations", "fractal_progress_interval", "video_progress_interval", "time_base",
    "path_tolerance", "smoothing", "mandelbrot", "workers",
]


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="juliamotion", description="Generates a movie of a Julia set whose constant follows a path, or of a crosshair tracing that path across the Mandelbrot set.")
    p.add_argument("--config", type=str, default=None, help="Path to a JSON object of render options (keys as below, with underscores). Command line values win.")
    p.add_argument("--log-level", type=str, default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="Log level.")
    p.add_argument("--log-file", type=str, default="juliamotion.log", help="Log file path (rotating). Set empty to disable file logging.")
    sub = p.add_subparsers(dest="cmd", required=True)

    r = sub.add_parser("render", help="Render the animation.")
    r.add_argument("-w", "--image-width", dest="image_width", metavar="WIDTH", help="Width of the generated video in pixels.")
    r.add_argument("-H", "--image-height", dest="image_height", metavar="HEIGHT", help="Height of the generated video in pixels.")
    r.add_argument("-f", "--frames", dest="frames", metavar="FRAME_COUNT", help="Number of frames; the path is sampled once per frame.")
    r.add_argument("-W", "--plane-width", dest="plane_width", metavar="WIDTH", help="Width of the area of the complex plane covered by the video.")
    r.add_argument("-p", "--path", dest="path", metavar="SVG_PATH", help="Path through the complex plane, in SVG path syntax.")
    r.add_argument("-o", "--output", dest="output", metavar="FILE", help="Output video file, or frames directory with --format png.")
    r.add_argument("--format", dest="output_format", choices=["video", "png"], default=None, help="Write a video file (default) or a directory of PNG frames.")
    r.add_argument("-i", "--iterations", dest="iterations", metavar="ITERATIONS", help="Iteration cap before a pixel is considered inside the set (default 100).")
    r.add_argument("--fractal-progress-interval", dest="fractal_progress_interval", metavar="MILLISECONDS", help="How often to report progress on a slowly generating fractal (default 1000).")
    r.add_argument("--video-progress-interval", dest="video_progress_interval", metavar="MILLISECONDS", help="How often to refresh overall video progress (default 1000).")
    r.add_argument("-t", "--time-base", dest="time_base", metavar="FRACTION", help="Seconds between frames (default 1/30).")
    r.add_argument("--path-tolerance", dest="path_tolerance", metavar="TOLERANCE", help="Tolerance for approximating curves in the path (default 0.01).")
    r.add_argument("--smoothing", dest="smoothing", metavar="SMOOTHING", help="None, LinearIntersection(R) or LogarithmicDistance(R, P) (default LogarithmicDistance(4, 2)).")
    r.add_argument("-m", "--mandelbrot", dest="mandelbrot", action="store_const", const=True, default=None, help="Trace the path with a crosshair over the Mandelbrot set instead of rendering Julia sets.")
    r.add_argument("-j", "--workers", dest="workers", metavar="N", help="Worker processes per frame (default: CPU count).")
    r.add_argument("--manifest", type=str, default=os.path.join("artifacts", "run.json"), help="Where to write the run manifest. Set empty to skip.")
    r.add_argument("--no-progress", action="store_true", help="Disable the frame progress bar.")

    e = sub.add_parser("encode", help="Encode a directory of frames into a video using OpenCV.")
    e.add_argument("--input-dir", type=str, required=True, help="Frames directory.")
    e.add_argument("--output", type=str, required=True, help="Output video file.")
    e.add_argument("--fps", type=float, default=None, help="Frames per second (defaults to the reciprocal of --time-base).")
    e.add_argument("-t", "--time-base", dest="time_base", default="1/30", help="Seconds between frames (default 1/30).")

    return p


def merge_config(args: argparse.Namespace) -> Dict[str, Any]:
    raw = load_config(args.config)
    for key in CONFIG_KEYS:
        value = getattr(args, key, None)
        if value is not None:
            raw[key] = value
    return raw


def open_sink(cfg: RenderConfig) -> FrameSink:
    if cfg.output_format == "png":
        return PngFrameSink(cfg.output, cfg.image_width, cfg.image_height)
    ensure_output_parent(cfg.output)
    return OpenCVVideoSink(cfg.output, cfg.image_width, cfg.image_height, cfg.time_base)


def _render(args: argparse.Namespace, log_queue, log_level: int) -> int:
    logger = get_logger()
    started = utc_iso()
    cfg = normalise_config(merge_config(args))

    sink = open_sink(cfg)
    with sink:
        result = render_animation(cfg=cfg, sink=sink, log_queue=log_queue, log_level=log_level, show_progress=not args.no_progress)

    if args.manifest:
        manifest = build_manifest(config=cfg.to_dict(), result=result, started_utc=started, commit=git_commit())
        write_manifest(args.manifest, manifest)
        logger.info("Run manifest written: %s", args.manifest)
    return 0


def _encode(args: argparse.Namespace) -> int:
    if args.fps is not None:
        fps = args.fps
    else:
        try:
            fps = float(1 / parse_time_base(args.time_base))
        except ValueError as e:
            raise ConfigError("time_base", str(e)) from e
    if not fps > 0:
        raise ConfigError("fps", "must be > 0")
    encode_frames(input_dir=args.input_dir, output_file=args.output, fps=fps)
    return 0


def main(argv: Optional[list] = None) -> int:
    args = build_arg_parser().parse_args(argv)

    log_level = getattr(logging, args.log_level.upper(), logging.INFO)
    log_file = args.log_file if args.log_file and args.log_file.strip() else None
    listener_logger = configure_root_logging(level=log_level, console=True, log_file=log_file)

    queue = create_log_queue()
    listener = start_queue_listener(queue, listener_logger)

    logger = get_logger()

    try:
        if args.cmd == "render":
            return _render(args, queue, log_level)
        if args.cmd == "encode":
            return _encode(args)
        raise RuntimeError("Unknown command.")
    except ConfigError as e:
        logger.error("Configuration error: %s", e)
        return 2
    except EncoderError as e:
        logger.error("Encoder error: %s", e)
        return 1
    except WorkerError as e:
        logger.error("Fractal generation failed in worker %s: %s", e.worker, e)
        return 1
    finally:
        listener.stop()


def run() -> None:
    sys.exit(main())
