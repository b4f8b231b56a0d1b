import json
import logging

import pytest
from PIL import Image

from juliamotion.cli import build_arg_parser, main, merge_config


@pytest.fixture(autouse=True)
def _reset_logging(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    yield
    logger = logging.getLogger("juliamotion")
    for h in list(logger.handlers):
        logger.removeHandler(h)
        h.close()
    logger.propagate = True


def test_cli_overrides_config_file(tmp_path):
    cfg_path = tmp_path / "render.json"
    cfg_path.write_text(json.dumps({"image_width": 10, "frames": 4, "mandelbrot": True}), encoding="utf-8")
    args = build_arg_parser().parse_args(["--config", str(cfg_path), "render", "-w", "20", "-p", "M 0 0 L 1 1"])
    raw = merge_config(args)
    assert raw["image_width"] == "20"
    assert raw["frames"] == 4
    assert raw["mandelbrot"] is True
    assert raw["path"] == "M 0 0 L 1 1"


def test_bad_argument_exits_with_config_error():
    code = main(["--log-file", "", "render", "-w", "abc", "-H", "10", "-f", "2", "-W", "3", "-p", "M 0 0 L 1 0", "-o", "x.mp4", "--manifest", ""])
    assert code == 2


def test_render_png_frames_end_to_end(tmp_path):
    frames_dir = tmp_path / "frames"
    manifest = tmp_path / "run.json"
    code = main([
        "--log-file", "",
        "render",
        "-w", "12", "-H", "8", "-f", "3", "-W", "3.0",
        "-p", "M -0.8 0.156 Q 0 0.8 0.3 0.5",
        "-o", str(frames_dir), "--format", "png",
        "-i", "16", "-j", "2", "--smoothing", "LinearIntersection(2)",
        "--manifest", str(manifest), "--no-progress",
    ])
    assert code == 0
    files = sorted(p.name for p in frames_dir.iterdir())
    assert files == ["frame_000000.png", "frame_000001.png", "frame_000002.png"]
    assert Image.open(frames_dir / files[0]).size == (12, 8)

    data = json.loads(manifest.read_text(encoding="utf-8"))
    assert data["config"]["smoothing"] == "LinearIntersection(2)"
    assert data["result"]["frames"] == 3
    assert "numpy" in data["packages"]


def test_encode_without_frames_fails(tmp_path):
    (tmp_path / "empty").mkdir()
    code = main(["--log-file", "", "encode", "--input-dir", str(tmp_path / "empty"), "--output", str(tmp_path / "o.avi")])
    assert code == 1
