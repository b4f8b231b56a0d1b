from __future__ import annotations

import math
from dataclasses import dataclass
from typing import NamedTuple, Optional

from juliamotion.generator.smoothing import NoSmoothing, Smoothing
from juliamotion.generator.view import View


class RGBAColor(NamedTuple):
    r: int
    g: int
    b: int
    a: int


BLACK = RGBAColor(0, 0, 0, 255)


def wrap(value: float, low: float, high: float) -> float:
    """Wrap ``value`` into ``[low, high)``, from either side."""
    size = high - low
    out = (value - low) % size + low
    # tiny negatives can round up to exactly ``high``
    if out >= high:
        out -= size
    return out


def _channel(v: float) -> int:
    return int(v * 255.0 + 0.5)


def from_hsb(hue: float, saturation: float, brightness: float, alpha: float = 1.0) -> RGBAColor:
    """HSB -> RGBA, all inputs in 0..1."""
    a = _channel(alpha)
    if saturation == 0.0:
        v = _channel(brightness)
        return RGBAColor(v, v, v, a)

    sector = (hue - math.floor(hue)) * 6.0
    offset = sector - math.floor(sector)
    off = brightness * (1.0 - saturation)
    fade_out = brightness * (1.0 - saturation * offset)
    fade_in = brightness * (1.0 - saturation * (1.0 - offset))

    s = int(sector) % 6
    if s == 0:
        rgb = (brightness, fade_in, off)
    elif s == 1:
        rgb = (fade_out, brightness, off)
    elif s == 2:
        rgb = (off, brightness, fade_in)
    elif s == 3:
        rgb = (off, fade_out, brightness)
    elif s == 4:
        rgb = (fade_in, off, brightness)
    else:
        rgb = (brightness, off, fade_out)
    return RGBAColor(_channel(rgb[0]), _channel(rgb[1]), _channel(rgb[2]), a)


@dataclass(frozen=True)
class ValueGenerator:
    """Escape-time evaluation and coloring for one frame.

    ``c`` is the Julia constant and is ignored in Mandelbrot mode.
    """

    view: View
    iterations: int
    smoothing: Smoothing = NoSmoothing()
    mandelbrot: bool = False
    c: complex = 0j

    @classmethod
    def julia(cls, view: View, c: complex, iterations: int, smoothing: Optional[Smoothing] = None) -> "ValueGenerator":
        return cls(view=view, iterations=iterations, smoothing=smoothing or NoSmoothing(), mandelbrot=False, c=c)

    @classmethod
    def mandelbrot_set(cls, view: View, iterations: int, smoothing: Optional[Smoothing] = None) -> "ValueGenerator":
        return cls(view=view, iterations=iterations, smoothing=smoothing or NoSmoothing(), mandelbrot=True)

    def evaluate(self, point: complex) -> float:
        if self.mandelbrot:
            # z starts at 0; its first step 0*0 + c is taken as the seed, so
            # counts are one lower than a zero-seeded loop and the cap allows
            # one extra step
            c = point
            z = point
        else:
            c = self.c
            z = point
        z_prev = z

        radius_squared = self.smoothing.escape_radius_squared()
        n = 0
        while n < self.iterations:
            if z.real * z.real + z.imag * z.imag > radius_squared:
                break
            z_prev = z
            z = z * z + c
            n += 1

        return self.smoothing.smooth(n, z, z_prev)

    def pixel_value(self, x: int, y: int) -> float:
        return self.evaluate(self.view.plane_of(x, y))

    def color_of(self, value: float) -> RGBAColor:
        if value >= self.iterations:
            return BLACK
        return from_hsb(
            wrap(value * 3.3, 0.0, 256.0) / 256.0,
            1.0,
            wrap(value * 16.0, 0.0, 256.0) / 256.0,
        )

    def pixel(self, x: int, y: int) -> RGBAColor:
        return self.color_of(self.pixel_value(x, y))
