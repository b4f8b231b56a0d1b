import json
import os
import re
from dataclasses import dataclass
from fractions import Fraction
from typing import Any, Dict, Optional

from svg.path import Path

from juliamotion.errors import ConfigError
from juliamotion.generator.smoothing import DEFAULT_SMOOTHING, Smoothing, parse_smoothing
from juliamotion.geometry.path_sampler import parse_svg_path

_RATIONAL_RE = re.compile(r"^\s*(\d+)\s*/\s*(\d+)\s*$")

REQUIRED = ["image_width", "image_height", "frames", "plane_width", "path", "output"]

DEFAULTS: Dict[str, Any] = {
    "iterations": 100,
    "fractal_progress_interval": 1000,
    "video_progress_interval": 1000,
    "time_base": "1/30",
    "path_tolerance": 0.01,
    "smoothing": DEFAULT_SMOOTHING,
    "mandelbrot": False,
    "workers": None,
    "output_format": "video",
}

OUTPUT_FORMATS = ("video", "png")


@dataclass(frozen=True)
class RenderConfig:
    image_width: int
    image_height: int
    plane_width: float
    frames: int
    path_data: str
    path: Path
    output: str
    output_format: str
    iterations: int
    fractal_progress_interval: float
    video_progress_interval: float
    time_base: Fraction
    path_tolerance: float
    smoothing: Smoothing
    mandelbrot: bool
    workers: int

    @property
    def fps(self) -> float:
        return float(1 / self.time_base)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "image_width": self.image_width,
            "image_height": self.image_height,
            "plane_width": self.plane_width,
            "frames": self.frames,
            "path": self.path_data,
            "output": self.output,
            "output_format": self.output_format,
            "iterations": self.iterations,
            "fractal_progress_interval": self.fractal_progress_interval,
            "video_progress_interval": self.video_progress_interval,
            "time_base": str(self.time_base),
            "path_tolerance": self.path_tolerance,
            "smoothing": str(self.smoothing),
            "mandelbrot": self.mandelbrot,
            "workers": self.workers,
        }


def load_config(config_path: Optional[str]) -> Dict[str, Any]:
    if not config_path:
        return {}
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            cfg = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError("config", str(e)) from e
    if not isinstance(cfg, dict):
        raise ConfigError("config", "config JSON must be an object")
    return cfg


def parse_time_base(text: str) -> Fraction:
    m = _RATIONAL_RE.match(str(text))
    if not m:
        raise ValueError(f"not a fraction: {text!r}")
    num, den = int(m.group(1)), int(m.group(2))
    if num == 0 or den == 0:
        raise ValueError("time base components must be non-zero")
    return Fraction(num, den)


def _int(cfg: Dict[str, Any], key: str, *, minimum: int = 1) -> int:
    value = cfg[key]
    if isinstance(value, bool):
        raise ConfigError(key, f"expected an integer, got {value!r}")
    try:
        out = int(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(key, f"expected an integer, got {value!r}") from e
    if isinstance(value, float) and out != value:
        raise ConfigError(key, f"expected an integer, got {value!r}")
    if out < minimum:
        raise ConfigError(key, f"must be >= {minimum}")
    return out


def _positive_float(cfg: Dict[str, Any], key: str) -> float:
    value = cfg[key]
    try:
        out = float(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(key, f"expected a number, got {value!r}") from e
    if not out > 0:
        raise ConfigError(key, "must be > 0")
    return out


def _bool(cfg: Dict[str, Any], key: str) -> bool:
    value = cfg[key]
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false", "1", "0", "yes", "no"):
        return value.strip().lower() in ("true", "1", "yes")
    raise ConfigError(key, f"expected a boolean, got {value!r}")


def normalise_config(raw: Dict[str, Any]) -> RenderConfig:
    """Validate and convert a merged config mapping.

    Every failure is a ConfigError naming the argument it came from.
    """
    cfg = dict(DEFAULTS)
    cfg.update({k: v for k, v in raw.items() if v is not None})

    for r in REQUIRED:
        if cfg.get(r) is None:
            raise ConfigError(r, "missing required value")

    path_data = str(cfg["path"])
    try:
        path = parse_svg_path(path_data)
    except ValueError as e:
        raise ConfigError("path", str(e)) from e

    try:
        time_base = parse_time_base(cfg["time_base"])
    except ValueError as e:
        raise ConfigError("time_base", str(e)) from e

    try:
        smoothing = parse_smoothing(str(cfg["smoothing"]))
    except ValueError as e:
        raise ConfigError("smoothing", str(e)) from e

    output_format = str(cfg["output_format"])
    if output_format not in OUTPUT_FORMATS:
        raise ConfigError("output_format", f"must be one of: {', '.join(OUTPUT_FORMATS)}")

    if cfg["workers"] is None:
        cfg["workers"] = os.cpu_count() or 1

    return RenderConfig(
        image_width=_int(cfg, "image_width"),
        image_height=_int(cfg, "image_height"),
        plane_width=_positive_float(cfg, "plane_width"),
        frames=_int(cfg, "frames"),
        path_data=path_data,
        path=path,
        output=str(cfg["output"]),
        output_format=output_format,
        iterations=_int(cfg, "iterations"),
        fractal_progress_interval=_int(cfg, "fractal_progress_interval", minimum=0) / 1000.0,
        video_progress_interval=_int(cfg, "video_progress_interval", minimum=0) / 1000.0,
        time_base=time_base,
        path_tolerance=_positive_float(cfg, "path_tolerance"),
        smoothing=smoothing,
        mandelbrot=_bool(cfg, "mandelbrot"),
        workers=_int(cfg, "workers"),
    )


def ensure_output_parent(output: str) -> None:
    parent = os.path.dirname(os.path.abspath(output))
    os.makedirs(parent, exist_ok=True)
