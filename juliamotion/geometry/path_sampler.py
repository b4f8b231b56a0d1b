from __future__ import annotations

from typing import List, Tuple, Union

from svg.path import Close, CubicBezier, Line, Move, Path, QuadraticBezier, parse_path

Segment = Tuple[complex, complex]

# Subdivision stops here even if the tolerance is not met.
MAX_DEPTH = 16

# Fraction of the total length treated as "the end of the path" when deciding
# whether a final sample lands on the terminal point.
_END_EPSILON = 1e-9


def parse_svg_path(text: str) -> Path:
    """Parse SVG path data (``M``, ``L``, ``H``, ``V``, ``C``, ``S``, ``Q``, ``T``, ``A``, ``Z``)."""
    try:
        return parse_path(text)
    except Exception as e:
        # svg.path reports malformed data as ValueError or IndexError depending on the element
        raise ValueError(f"invalid SVG path {text!r}: {e}") from e


def _as_path(path: Union[Path, str]) -> Path:
    return parse_svg_path(path) if isinstance(path, str) else path


def _chord_distance(p: complex, a: complex, b: complex) -> float:
    """Distance from ``p`` to the segment ``a``-``b`` (not the infinite line)."""
    d = b - a
    length_sqr = d.real * d.real + d.imag * d.imag
    if length_sqr == 0.0:
        return abs(p - a)
    t = min(1.0, max(0.0, ((p - a) * d.conjugate()).real / length_sqr))
    return abs(p - (a + d * t))


def _split_bezier(points: List[complex]) -> Tuple[List[complex], List[complex]]:
    # de Casteljau at t = 1/2
    left, right = [points[0]], [points[-1]]
    level = points
    while len(level) > 1:
        level = [(a + b) / 2 for a, b in zip(level, level[1:])]
        left.append(level[0])
        right.append(level[-1])
    return left, right[::-1]


def _flatten_bezier(points: List[complex], tolerance: float, depth: int, out: List[Segment]) -> None:
    # the curve lies in the hull of its control points, so a hull within
    # tolerance of the chord bounds the curve too
    p0, p1 = points[0], points[-1]
    flat = all(_chord_distance(p, p0, p1) <= tolerance for p in points[1:-1])
    if flat or depth >= MAX_DEPTH:
        out.append((p0, p1))
        return
    left, right = _split_bezier(points)
    _flatten_bezier(left, tolerance, depth + 1, out)
    _flatten_bezier(right, tolerance, depth + 1, out)


def _flatten_curve(segment, tolerance: float, t0: float, p0: complex, t1: float, p1: complex, depth: int, out: List[Segment]) -> None:
    probes = [(t0 + (t1 - t0) * f) for f in (0.25, 0.5, 0.75)]
    points = [segment.point(t) for t in probes]
    flat = all(_chord_distance(p, p0, p1) <= tolerance for p in points)
    if flat or depth >= MAX_DEPTH:
        out.append((p0, p1))
        return
    tm, pm = probes[1], points[1]
    _flatten_curve(segment, tolerance, t0, p0, tm, pm, depth + 1, out)
    _flatten_curve(segment, tolerance, tm, pm, t1, p1, depth + 1, out)


def flatten(path: Union[Path, str], tolerance: float) -> List[Segment]:
    """Approximate ``path`` by line segments deviating at most ``tolerance`` from it.

    Moves lift the pen and produce no segment; close commands produce the
    closing line back to the start of the subpath.
    """
    if tolerance <= 0:
        raise ValueError("tolerance must be > 0")

    out: List[Segment] = []
    for segment in _as_path(path):
        if isinstance(segment, Move):
            continue
        if isinstance(segment, (Line, Close)):
            out.append((segment.start, segment.end))
            continue
        if isinstance(segment, QuadraticBezier):
            _flatten_bezier([segment.start, segment.control, segment.end], tolerance, 0, out)
        elif isinstance(segment, CubicBezier):
            _flatten_bezier([segment.start, segment.control1, segment.control2, segment.end], tolerance, 0, out)
        else:
            _flatten_curve(segment, tolerance, 0.0, segment.start, 1.0, segment.end, 0, out)
    return out


def approximate_length(path: Union[Path, str], tolerance: float) -> float:
    return sum(abs(b - a) for a, b in flatten(path, tolerance))


def sample_points(path: Union[Path, str], tolerance: float, step_interval: float) -> List[complex]:
    """Walk the flattened path and emit a point every ``step_interval`` of arc length.

    The first point is the start of the path. The terminal point is not
    emitted: points land on arc lengths ``k * step_interval`` strictly below
    the total length, so ``step_interval = length / n`` gives exactly ``n``
    points.
    """
    if step_interval <= 0:
        raise ValueError("step_interval must be > 0")

    segments = flatten(path, tolerance)
    total = sum(abs(b - a) for a, b in segments)
    end = total * (1.0 - _END_EPSILON)

    points: List[complex] = []
    travelled = 0.0
    k = 0
    for a, b in segments:
        length = abs(b - a)
        if length == 0.0:
            continue
        while True:
            target = k * step_interval
            if target >= end:
                return points
            if target > travelled + length:
                break
            points.append(a + (b - a) * ((target - travelled) / length))
            k += 1
        travelled += length
    return points
