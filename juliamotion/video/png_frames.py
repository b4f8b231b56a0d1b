from __future__ import annotations

import os
from typing import Optional

import numpy as np
from PIL import Image

from juliamotion.errors import EncoderError
from juliamotion.util.logging_setup import get_logger
from juliamotion.video.opencv_writer import check_frame


class PngFrameSink:
    """Writes each frame as ``frame_%06d.png`` into a directory."""

    def __init__(self, directory: str, width: int, height: int):
        self.directory = directory
        self.width = width
        self.height = height
        self._last_pts: Optional[int] = None
        self._finished = False
        try:
            os.makedirs(directory, exist_ok=True)
        except OSError as e:
            raise EncoderError(f"Failed to create frames directory {directory}: {e}") from e

    def frame_path(self, pts: int) -> str:
        return os.path.join(self.directory, f"frame_{pts:06d}.png")

    def write_frame(self, frame: np.ndarray, pts: int) -> None:
        if self._last_pts is not None and pts <= self._last_pts:
            raise EncoderError(f"Non-increasing timestamp {pts} after {self._last_pts}")
        img = Image.fromarray(check_frame(frame, self.width, self.height))
        path = self.frame_path(pts)
        try:
            img.save(path, format="PNG", optimize=True)
        except OSError as e:
            raise EncoderError(f"Failed to save frame {path}: {e}") from e
        self._last_pts = pts
        get_logger().debug("Saved frame %s -> %s", pts, path)

    def finish(self) -> None:
        if self._finished:
            return
        self._finished = True
        get_logger().info("Frames written to %s", self.directory)

    def __enter__(self) -> "PngFrameSink":
        return self

    def __exit__(self, *exc) -> None:
        self.finish()
