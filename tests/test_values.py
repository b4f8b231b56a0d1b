import pytest

from juliamotion.generator.smoothing import LinearIntersection, LogarithmicDistance, NoSmoothing
from juliamotion.generator.values import BLACK, RGBAColor, ValueGenerator, from_hsb, wrap
from juliamotion.generator.view import View


@pytest.fixture
def view4():
    return View.new_uniform(4, 4, 4.0)


def test_wrap_both_directions():
    assert wrap(260.0, 0.0, 256.0) == 4.0
    assert wrap(256.0, 0.0, 256.0) == 0.0
    assert wrap(-1.0, 0.0, 256.0) == 255.0
    assert wrap(-513.0, 0.0, 256.0) == 255.0
    assert 0.0 <= wrap(-1e-20, 0.0, 256.0) < 256.0
    assert wrap(5.0, 2.0, 4.0) == 3.0


def test_from_hsb_primaries():
    assert from_hsb(0.0, 1.0, 1.0) == RGBAColor(255, 0, 0, 255)
    assert from_hsb(0.5, 1.0, 1.0) == RGBAColor(0, 255, 255, 255)
    assert from_hsb(0.0, 1.0, 0.0) == RGBAColor(0, 0, 0, 255)
    assert from_hsb(0.3, 0.0, 0.5) == RGBAColor(128, 128, 128, 255)


def test_end_to_end_corner_pixel(view4):
    gen = ValueGenerator.mandelbrot_set(view4, 1, NoSmoothing())
    assert view4.plane_of(0, 0) == complex(-2, -2)
    value = gen.pixel_value(0, 0)
    assert value == 0.0
    # below the cap, so the hue path is taken (which is black at brightness 0)
    assert gen.color_of(value) == from_hsb(0.0, 1.0, 0.0)


def test_mandelbrot_interior_is_black(view4):
    gen = ValueGenerator.mandelbrot_set(view4, 50, NoSmoothing())
    assert view4.plane_of(2, 2) == 0j
    assert gen.pixel_value(2, 2) == 50.0
    assert gen.pixel(2, 2) == BLACK


def test_mandelbrot_escape_count(view4):
    gen = ValueGenerator.mandelbrot_set(view4, 10, NoSmoothing())
    # c = 1: 1 -> 2 -> 5
    assert gen.evaluate(1 + 0j) == 2.0


def test_julia_mode_uses_fixed_constant(view4):
    gen = ValueGenerator.julia(view4, 0j, 20, NoSmoothing())
    assert gen.evaluate(0.5 + 0j) == 20.0
    assert gen.evaluate(3 + 0j) == 0.0
    # z: 1.5 -> 2.25 escapes
    assert gen.evaluate(1.5 + 0j) == 1.0


def test_julia_constant_changes_result(view4):
    a = ValueGenerator.julia(view4, 0j, 30, NoSmoothing())
    b = ValueGenerator.julia(view4, complex(0.5, 0.5), 30, NoSmoothing())
    assert a.evaluate(0.1 + 0j) != b.evaluate(0.1 + 0j)


@pytest.mark.parametrize("smoothing", [NoSmoothing(), LinearIntersection(2.0), LogarithmicDistance(4.0, 2.0)])
def test_value_at_cap_is_black(view4, smoothing):
    gen = ValueGenerator.mandelbrot_set(view4, 25, smoothing)
    assert gen.color_of(25.0) == BLACK
    assert gen.color_of(25.5) == BLACK
    assert gen.color_of(1000.0) == BLACK
    assert gen.pixel(2, 2) == BLACK


def test_color_formula():
    gen = ValueGenerator.mandelbrot_set(View.new_uniform(4, 4, 4.0), 100)
    # hue = 3.3/256, brightness = 16/256
    assert gen.color_of(1.0) == RGBAColor(16, 1, 0, 255)
    assert gen.color_of(1.0) == from_hsb(3.3 / 256, 1.0, 16 / 256)


def test_negative_value_wraps():
    gen = ValueGenerator.mandelbrot_set(View.new_uniform(4, 4, 4.0), 100)
    color = gen.color_of(-3.0)
    assert color == from_hsb(wrap(-3.0 * 3.3, 0, 256) / 256, 1.0, wrap(-3.0 * 16, 0, 256) / 256)
    assert color.a == 255


def test_smoothed_values_are_fractional():
    view = View.new_uniform(64, 48, 3.0)
    gen = ValueGenerator.mandelbrot_set(view, 64, LogarithmicDistance(4.0, 2.0))
    values = {gen.pixel_value(x, 10) for x in range(64)}
    assert any(v != int(v) for v in values)


def _zero_seeded_count(c, cap):
    z, n = 0j, 0
    while n < cap and abs(z) <= 2.0:
        z = z * z + c
        n += 1
    return n


@pytest.mark.parametrize("c", [1 + 0j, 0.5 + 0.5j, -1.5 + 0.7j, 0.3 - 0.6j])
def test_mandelbrot_counts_are_one_below_zero_seeded_loop(view4, c):
    gen = ValueGenerator.mandelbrot_set(view4, 100, NoSmoothing())
    assert gen.evaluate(c) == _zero_seeded_count(c, 101) - 1
