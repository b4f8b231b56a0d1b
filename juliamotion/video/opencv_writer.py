from __future__ import annotations

import glob
import os
from fractions import Fraction
from typing import Optional

import numpy as np
from natsort import natsorted

from juliamotion.errors import EncoderError
from juliamotion.util.logging_setup import get_logger

FOURCC_BY_SUFFIX = {
    ".mp4": "mp4v",
    ".m4v": "mp4v",
    ".mov": "mp4v",
    ".mkv": "mp4v",
    ".avi": "XVID",
    ".webm": "VP80",
}

FRAME_EXTENSIONS = (".png", ".jpg", ".jpeg")


def _cv2():
    try:
        import cv2  # type: ignore
    except ImportError as e:
        raise EncoderError(f"OpenCV not installed: {e}") from e
    return cv2


def check_frame(frame: np.ndarray, width: int, height: int) -> np.ndarray:
    buf = np.asarray(frame)
    if buf.dtype != np.uint8 or buf.size != width * height * 4:
        raise EncoderError(f"Frame must be {width}x{height} RGBA8 ({width * height * 4} bytes), got {buf.dtype} {buf.shape}")
    return buf.reshape(height, width, 4)


class OpenCVVideoSink:
    """Encodes RGBA frames into a video file with OpenCV's VideoWriter.

    Timestamps are frame numbers in units of ``time_base``; they must
    strictly increase.
    """

    def __init__(self, path: str, width: int, height: int, time_base: Fraction):
        self.path = path
        self.width = width
        self.height = height
        self.time_base = time_base
        self._last_pts: Optional[int] = None
        self._frames = 0

        cv2 = _cv2()
        suffix = os.path.splitext(path)[1].lower()
        fourcc = cv2.VideoWriter_fourcc(*FOURCC_BY_SUFFIX.get(suffix, "mp4v"))
        fps = float(1 / time_base)
        self._writer = cv2.VideoWriter(path, fourcc, fps, (width, height))
        if not self._writer.isOpened():
            raise EncoderError(f"Failed to open VideoWriter for {path}")
        get_logger().info("Opened video %s (%sx%s @ %sfps)", path, width, height, fps)

    def write_frame(self, frame: np.ndarray, pts: int) -> None:
        if self._writer is None:
            raise EncoderError(f"Video {self.path} is already finished")
        if self._last_pts is not None and pts <= self._last_pts:
            raise EncoderError(f"Non-increasing timestamp {pts} after {self._last_pts}")
        rgba = check_frame(frame, self.width, self.height)
        cv2 = _cv2()
        try:
            self._writer.write(cv2.cvtColor(rgba, cv2.COLOR_RGBA2BGR))
        except cv2.error as e:
            raise EncoderError(f"Failed to write frame {pts} to {self.path}: {e}") from e
        self._last_pts = pts
        self._frames += 1

    def finish(self) -> None:
        if self._writer is None:
            return
        self._writer.release()
        self._writer = None
        get_logger().info("Video written: %s (%s frames)", self.path, self._frames)

    def __enter__(self) -> "OpenCVVideoSink":
        return self

    def __exit__(self, *exc) -> None:
        self.finish()


def encode_frames(*, input_dir: str, output_file: str, fps: float) -> int:
    """Stitch a directory of frame images into a video, in natural sort order."""
    logger = get_logger()
    cv2 = _cv2()

    frames = natsorted(p for p in glob.glob(os.path.join(input_dir, "*")) if p.lower().endswith(FRAME_EXTENSIONS))
    if not frames:
        raise EncoderError(f"No frames found in {input_dir}")

    first = cv2.imread(frames[0])
    if first is None:
        raise EncoderError(f"Failed to read first frame: {frames[0]}")
    h, w, _ = first.shape

    suffix = os.path.splitext(output_file)[1].lower()
    fourcc = cv2.VideoWriter_fourcc(*FOURCC_BY_SUFFIX.get(suffix, "mp4v"))
    out = cv2.VideoWriter(output_file, fourcc, fps, (w, h))
    if not out.isOpened():
        raise EncoderError(f"Failed to open VideoWriter for {output_file}")

    logger.info("Encoding video %s from %s frames (%sx%s @ %sfps)", output_file, len(frames), w, h, fps)
    try:
        for i, path in enumerate(frames):
            img = cv2.imread(path)
            if img is None:
                raise EncoderError(f"Failed to read frame: {path}")
            if img.shape[0] != h or img.shape[1] != w:
                raise EncoderError(f"Frame {path} is {img.shape[1]}x{img.shape[0]}, expected {w}x{h}")
            out.write(img)
            if i % 200 == 0:
                logger.info("Encoded %s/%s frames", i, len(frames))
    finally:
        out.release()
    logger.info("Video written: %s", output_file)
    return len(frames)
