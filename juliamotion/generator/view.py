from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Tuple, Union

# Guards the pixel index against float error when a pixel's own plane
# coordinate is mapped back (x*s + o - o can land a hair below x*s).
_INDEX_EPSILON = 1e-9


@dataclass(frozen=True)
class BelowRange:
    pass


@dataclass(frozen=True)
class InRange:
    value: int


@dataclass(frozen=True)
class AboveRange:
    pass


Constrained = Union[BelowRange, InRange, AboveRange]


@dataclass(frozen=True)
class View:
    """Maps integer pixel coordinates onto the complex plane and back."""

    image_width: int
    image_height: int
    scale_x: float
    scale_y: float
    plane_origin_x: float
    plane_origin_y: float

    def __post_init__(self) -> None:
        if self.scale_x <= 0 or self.scale_y <= 0:
            raise ValueError("View scale must be positive.")

    @classmethod
    def new_uniform(cls, image_width: int, image_height: int, plane_width: float) -> "View":
        scale = plane_width / image_width
        plane_height = image_height * scale
        return cls(
            image_width=image_width,
            image_height=image_height,
            scale_x=scale,
            scale_y=scale,
            plane_origin_x=-plane_width / 2.0,
            plane_origin_y=-plane_height / 2.0,
        )

    @property
    def pixel_count(self) -> int:
        return self.image_width * self.image_height

    def plane_of(self, x: int, y: int) -> complex:
        return complex(x * self.scale_x + self.plane_origin_x, y * self.scale_y + self.plane_origin_y)

    def pixel_of(self, point: complex) -> Tuple[Constrained, Constrained]:
        return (
            _constrain(point.real, self.plane_origin_x, self.scale_x, self.image_width),
            _constrain(point.imag, self.plane_origin_y, self.scale_y, self.image_height),
        )


def _constrain(plane: float, origin: float, scale: float, dimension: int) -> Constrained:
    # lower bound is strict on the plane coordinate, upper bound on the index;
    # the epsilon also sends an exact index within 1e-9 below dimension to
    # AboveRange
    if not plane > origin:
        return BelowRange()
    index = int(math.floor((plane - origin) / scale + _INDEX_EPSILON))
    if index < dimension:
        return InRange(index)
    return AboveRange()
