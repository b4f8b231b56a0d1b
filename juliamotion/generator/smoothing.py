from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Union

_SMOOTHING_RE = re.compile(r"^\s*([A-Za-z]+)\s*(?:\(\s*([^()]*?)\s*\))?\s*$")

DEFAULT_SMOOTHING = "LogarithmicDistance(4, 2)"


def _norm_sqr(z: complex) -> float:
    return z.real * z.real + z.imag * z.imag


@dataclass(frozen=True)
class NoSmoothing:
    """Discrete escape bands: the raw iteration count."""

    radius: float = 2.0

    def escape_radius_squared(self) -> float:
        return self.radius * self.radius

    def smooth(self, n: int, z: complex, z_prev: complex) -> float:
        return float(n)

    def __str__(self) -> str:
        return "None"


@dataclass(frozen=True)
class LinearIntersection:
    """Fractional count from where the last step crossed the escape circle.

    The step from |z_prev| to |z| is treated as linear in magnitude; the
    fraction of it spent inside the radius is added to n - 1.
    """

    radius: float = 2.0

    def escape_radius_squared(self) -> float:
        return self.radius * self.radius

    def smooth(self, n: int, z: complex, z_prev: complex) -> float:
        if n == 0 or _norm_sqr(z) <= self.escape_radius_squared():
            return float(n)
        before = abs(z_prev)
        after = abs(z)
        if after <= before:
            return float(n)
        t = (self.radius - before) / (after - before)
        return n - 1 + min(1.0, max(0.0, t))

    def __str__(self) -> str:
        return f"LinearIntersection({self.radius:g})"


@dataclass(frozen=True)
class LogarithmicDistance:
    """Normalized iteration count: n + 1 - log_p(log|z| / log R)."""

    radius: float = 4.0
    power: float = 2.0

    def escape_radius_squared(self) -> float:
        return self.radius * self.radius

    def smooth(self, n: int, z: complex, z_prev: complex) -> float:
        if _norm_sqr(z) <= self.escape_radius_squared():
            return float(n)
        ratio = math.log(abs(z)) / math.log(self.radius)
        return n + 1 - math.log(ratio) / math.log(self.power)

    def __str__(self) -> str:
        return f"LogarithmicDistance({self.radius:g}, {self.power:g})"


Smoothing = Union[NoSmoothing, LinearIntersection, LogarithmicDistance]


def parse_smoothing(text: str) -> Smoothing:
    """Parse ``None``, ``LinearIntersection(R)`` or ``LogarithmicDistance(R, P)``.

    Raises ValueError on anything else.
    """
    m = _SMOOTHING_RE.match(text or "")
    if not m:
        raise ValueError(f"not a smoothing expression: {text!r}")
    name, raw_args = m.group(1), m.group(2)
    args = [float(a) for a in raw_args.split(",")] if raw_args else []

    if name == "None":
        if args:
            raise ValueError("None smoothing takes no arguments")
        return NoSmoothing()
    if name == "LinearIntersection":
        if len(args) > 1:
            raise ValueError("LinearIntersection takes (radius)")
        smoothing = LinearIntersection(*args)
        if smoothing.radius <= 0:
            raise ValueError("radius must be > 0")
        return smoothing
    if name == "LogarithmicDistance":
        if len(args) > 2:
            raise ValueError("LogarithmicDistance takes (radius, power)")
        smoothing = LogarithmicDistance(*args)
        # log(radius) and log(power) are divisors
        if smoothing.radius <= 1 or smoothing.power <= 1:
            raise ValueError("radius and power must be > 1")
        return smoothing
    raise ValueError(f"unknown smoothing kind: {name}")
