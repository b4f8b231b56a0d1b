from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, Protocol

import numpy as np
from tqdm import tqdm

from juliamotion.config import RenderConfig
from juliamotion.errors import ConfigError
from juliamotion.generator.values import ValueGenerator
from juliamotion.generator.view import View
from juliamotion.geometry.path_sampler import approximate_length, sample_points
from juliamotion.overlay.raster import draw_constrained_crosshair, draw_constrained_label, format_point
from juliamotion.renderers.cpu_pool import generate_fractal
from juliamotion.util.logging_setup import format_progress, get_logger


class FrameSink(Protocol):
    def write_frame(self, frame: np.ndarray, pts: int) -> None: ...

    def finish(self) -> None: ...


def _fractal_progress(frame_id: str) -> Callable[[List[float]], None]:
    logger = get_logger()

    def report(progress: List[float]) -> None:
        logger.info("[Frame %s] Fractal progress: %s", frame_id, format_progress(progress))

    return report


def plan_path(cfg: RenderConfig) -> Dict[str, Any]:
    """Sample the configured path into one plane point per frame."""
    length = approximate_length(cfg.path, cfg.path_tolerance)
    if not length > 0:
        raise ConfigError("path", "path has zero length")
    step = length / cfg.frames
    points = sample_points(cfg.path, cfg.path_tolerance, step)
    return {"length": length, "step": step, "points": points}


def render_animation(
    *,
    cfg: RenderConfig,
    sink: FrameSink,
    log_queue=None,
    log_level: int = logging.INFO,
    show_progress: bool = True,
) -> Dict[str, Any]:
    """Render one frame per path sample and hand each to ``sink`` in order.

    Julia mode renders a fresh Julia set with ``c`` at every sample.
    Mandelbrot mode renders the Mandelbrot set once and draws a labelled
    crosshair at every sample on a copy of it. Sink failures propagate and
    abort the remaining frames.
    """
    logger = get_logger()
    view = View.new_uniform(cfg.image_width, cfg.image_height, cfg.plane_width)

    plan = plan_path(cfg)
    length, step, points = plan["length"], plan["step"], plan["points"]

    logger.info("Render start frames=%s fps=%g size=%sx%s plane_width=%s mode=%s smoothing=%s workers=%s path_length=%s",
                len(points), cfg.fps, cfg.image_width, cfg.image_height, cfg.plane_width,
                "mandelbrot" if cfg.mandelbrot else "julia", cfg.smoothing, cfg.workers, length)
    if len(points) != cfg.frames:
        logger.warning("Path sampling produced %s points for %s requested frames", len(points), cfg.frames)

    def compute(generator: ValueGenerator, frame_id: str) -> np.ndarray:
        return generate_fractal(
            generator,
            workers=cfg.workers,
            progress_callback=_fractal_progress(frame_id),
            progress_interval=cfg.fractal_progress_interval,
            frame_id=frame_id,
            log_queue=log_queue,
            log_level=log_level,
        )

    base: Optional[np.ndarray] = None
    if cfg.mandelbrot:
        base = compute(ValueGenerator.mandelbrot_set(view, cfg.iterations, cfg.smoothing), "base")

    written = 0
    frames = tqdm(points, desc="Frames", unit="frame", mininterval=cfg.video_progress_interval, disable=not show_progress)
    for i, point in enumerate(frames):
        frame_id = f"{i:06d}"
        if base is not None:
            frame = base.copy()
            pixel = view.pixel_of(point)
            draw_constrained_crosshair(frame, pixel)
            draw_constrained_label(frame, pixel, format_point(point))
        else:
            frame = compute(ValueGenerator.julia(view, point, cfg.iterations, cfg.smoothing), frame_id)

        sink.write_frame(frame, i)
        written += 1
        logger.debug("[Frame %s] Written c=%s", frame_id, point)

    sink.finish()
    logger.info("Render complete frames=%s", written)
    return {"frames": written, "path_length": length, "step": step, "width": cfg.image_width, "height": cfg.image_height}
