import json
from fractions import Fraction

import pytest

from juliamotion.config import DEFAULTS, load_config, normalise_config, parse_time_base
from juliamotion.errors import ConfigError
from juliamotion.generator.smoothing import LogarithmicDistance, NoSmoothing


def _raw(**overrides):
    raw = {
        "image_width": "64",
        "image_height": "48",
        "frames": "10",
        "plane_width": "3.0",
        "path": "M -0.8 0.156 L 0.3 0.5",
        "output": "out/video.mp4",
    }
    raw.update(overrides)
    return raw


def test_normalise_applies_defaults():
    cfg = normalise_config(_raw())
    assert cfg.image_width == 64
    assert cfg.image_height == 48
    assert cfg.frames == 10
    assert cfg.plane_width == 3.0
    assert cfg.iterations == DEFAULTS["iterations"]
    assert cfg.fractal_progress_interval == 1.0
    assert cfg.video_progress_interval == 1.0
    assert cfg.time_base == Fraction(1, 30)
    assert cfg.fps == 30.0
    assert cfg.path_tolerance == 0.01
    assert cfg.smoothing == LogarithmicDistance(4.0, 2.0)
    assert cfg.mandelbrot is False
    assert cfg.workers >= 1
    assert cfg.output_format == "video"


def test_normalise_explicit_values():
    cfg = normalise_config(_raw(iterations=250, smoothing="None", mandelbrot=True, workers=3,
                                time_base="1/60", fractal_progress_interval="250"))
    assert cfg.iterations == 250
    assert cfg.smoothing == NoSmoothing()
    assert cfg.mandelbrot is True
    assert cfg.workers == 3
    assert cfg.fps == 60.0
    assert cfg.fractal_progress_interval == 0.25


def test_none_values_fall_back_to_defaults():
    cfg = normalise_config(_raw(iterations=None))
    assert cfg.iterations == DEFAULTS["iterations"]


@pytest.mark.parametrize("key", ["image_width", "image_height", "frames", "plane_width", "path", "output"])
def test_missing_required_names_argument(key):
    raw = _raw()
    del raw[key]
    with pytest.raises(ConfigError) as info:
        normalise_config(raw)
    assert info.value.argument == key


@pytest.mark.parametrize("key,value", [
    ("image_width", "wide"),
    ("image_width", "0"),
    ("image_height", "-3"),
    ("frames", "1.5"),
    ("plane_width", "zero"),
    ("plane_width", "0"),
    ("iterations", "0"),
    ("path_tolerance", "-0.1"),
    ("time_base", "30"),
    ("time_base", "1/0"),
    ("smoothing", "Cubic(2)"),
    ("path", "M 0 0 L 1"),
    ("mandelbrot", "maybe"),
    ("workers", "0"),
    ("output_format", "gif"),
    ("fractal_progress_interval", "-1"),
])
def test_bad_values_name_argument(key, value):
    with pytest.raises(ConfigError) as info:
        normalise_config(_raw(**{key: value}))
    assert info.value.argument == key
    assert "--" + key.replace("_", "-") in str(info.value)


def test_config_error_is_value_error():
    with pytest.raises(ValueError):
        normalise_config(_raw(frames="x"))


def test_parse_time_base():
    assert parse_time_base("1/30") == Fraction(1, 30)
    assert parse_time_base(" 1001 / 30000 ") == Fraction(1001, 30000)
    with pytest.raises(ValueError):
        parse_time_base("0.5")


def test_load_config(tmp_path):
    p = tmp_path / "render.json"
    p.write_text(json.dumps({"image_width": 32, "mandelbrot": True}), encoding="utf-8")
    assert load_config(str(p)) == {"image_width": 32, "mandelbrot": True}
    assert load_config(None) == {}


def test_load_config_rejects_non_object(tmp_path):
    p = tmp_path / "render.json"
    p.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(ConfigError) as info:
        load_config(str(p))
    assert info.value.argument == "config"


def test_to_dict_is_json_serialisable():
    cfg = normalise_config(_raw())
    data = json.loads(json.dumps(cfg.to_dict()))
    assert data["smoothing"] == "LogarithmicDistance(4, 2)"
    assert data["time_base"] == "1/30"
    assert data["path"] == "M -0.8 0.156 L 0.3 0.5"
