from __future__ import annotations

from typing import Optional, Tuple

import numpy as np
from PIL import Image, ImageDraw, ImageFont

from juliamotion.generator.view import AboveRange, BelowRange, Constrained, InRange

WHITE = (255, 255, 255, 255)


def draw_horizontal_line(image: np.ndarray, y: int, color=WHITE) -> None:
    image[y, :, :] = color


def draw_vertical_line(image: np.ndarray, x: int, color=WHITE) -> None:
    image[:, x, :] = color


def draw_constrained_crosshair(image: np.ndarray, pixel: Tuple[Constrained, Constrained], color=WHITE) -> None:
    """Draw full-width/full-height lines through ``pixel``.

    Only in-range axes get a line; ``image`` is an (H, W, 4) uint8 array.
    """
    px, py = pixel
    if isinstance(py, InRange):
        draw_horizontal_line(image, py.value, color)
    if isinstance(px, InRange):
        draw_vertical_line(image, px.value, color)


def _place(coord: Constrained, extent: int, size: int) -> int:
    # keep the label on the side of the point that faces the image center
    if isinstance(coord, BelowRange):
        return 0
    if isinstance(coord, AboveRange):
        return max(0, extent - size)
    if coord.value < extent // 2:
        return coord.value
    return max(0, coord.value - size)


def label_dimensions(text: str, font, margin: int) -> Tuple[int, int]:
    probe = ImageDraw.Draw(Image.new("RGBA", (1, 1)))
    left, top, right, bottom = probe.textbbox((0, 0), text, font=font)
    return right - left + 2 * margin, bottom - top + 2 * margin


def draw_constrained_label(
    image: np.ndarray,
    pixel: Tuple[Constrained, Constrained],
    text: str,
    *,
    margin: int = 4,
    font: Optional[ImageFont.ImageFont] = None,
    color=WHITE,
) -> Tuple[int, int]:
    """Draw ``text`` next to ``pixel``, clamped to the image. Returns the label's top-left corner."""
    height, width = image.shape[:2]
    font = font or ImageFont.load_default()
    label_w, label_h = label_dimensions(text, font, margin)
    x = _place(pixel[0], width, label_w)
    y = _place(pixel[1], height, label_h)

    canvas = Image.fromarray(image)
    draw = ImageDraw.Draw(canvas)
    left, top, _, _ = draw.textbbox((0, 0), text, font=font)
    draw.text((x + margin - left, y + margin - top), text, font=font, fill=color)
    image[...] = np.asarray(canvas)
    return x, y


def format_point(point: complex) -> str:
    sign = "+" if point.imag >= 0 else "-"
    return f"{point.real:.6f} {sign} {abs(point.imag):.6f}i"
