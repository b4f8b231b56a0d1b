from __future__ import annotations

import logging
import multiprocessing as mp
import queue
import time
from concurrent.futures import Future, ProcessPoolExecutor
from concurrent.futures.process import BrokenProcessPool
from typing import Callable, List, Optional, Sequence, Set

import numpy as np

from juliamotion.errors import WorkerError
from juliamotion.generator.values import ValueGenerator
from juliamotion.util.logging_setup import get_logger, logging_initialiser

ProgressCallback = Callable[[List[float]], None]

# How long the coordinator waits on the result channel before checking on
# the workers themselves.
WAIT_SECONDS = 0.1

_G = {}


def _init_worker(results, log_queue, log_level: int) -> None:
    _G["results"] = results
    if log_queue is not None:
        logging_initialiser(log_queue, log_level)


def partition(total: int, workers: int, worker: int) -> range:
    """Pixel indices owned by ``worker``: worker, worker+K, worker+2K, ..."""
    return range(worker, total, workers)


def partition_size(total: int, workers: int, worker: int) -> int:
    return total // workers + (1 if worker < total % workers else 0)


def _render_partition(generator: ValueGenerator, worker: int, workers: int, chunk_size: int, frame_id: str) -> int:
    results = _G["results"]
    logger = get_logger()
    width = generator.view.image_width
    total = generator.view.pixel_count

    indices: List[int] = []
    colors: list = []
    for index in partition(total, workers, worker):
        indices.append(index)
        colors.append(generator.pixel(index % width, index // width))
        if len(indices) >= chunk_size:
            results.put((worker, indices, colors))
            indices, colors = [], []
    if indices:
        results.put((worker, indices, colors))

    # end-of-stream marker for this worker
    results.put((worker, None, None))
    logger.debug("[Frame %s] Worker %s finished %s pixels", frame_id, worker, partition_size(total, workers, worker))
    return worker


def _check_workers(futures: Sequence[Future]) -> None:
    for worker, fut in enumerate(futures):
        if not fut.done():
            continue
        exc = fut.exception()
        if exc is None:
            continue
        if isinstance(exc, BrokenProcessPool):
            raise WorkerError(worker, exc, pool_broken=True) from exc
        raise WorkerError(worker, exc) from exc


def generate_fractal(
    generator: ValueGenerator,
    *,
    workers: int,
    progress_callback: Optional[ProgressCallback] = None,
    progress_interval: float = 1.0,
    chunk_size: int = 1024,
    frame_id: str = "-",
    log_queue=None,
    log_level: int = logging.INFO,
) -> np.ndarray:
    """Render one frame across ``workers`` processes.

    Returns an RGBA uint8 array of shape (height, width, 4). Each worker owns
    an interleaved slice of the pixel indices and streams ``(worker, indices,
    colors)`` chunks back over a shared queue; this process places every
    chunk straight into the output buffer. ``progress_callback`` receives the
    completed fraction of every worker, at most once per
    ``progress_interval`` seconds.
    """
    if workers <= 0:
        raise ValueError("workers must be > 0")
    if chunk_size <= 0:
        raise ValueError("chunk_size must be > 0")

    logger = get_logger()
    view = generator.view
    total = view.pixel_count

    assigned = [partition_size(total, workers, i) for i in range(workers)]
    completed = [0] * workers
    image = np.zeros((total, 4), dtype=np.uint8)
    written = np.zeros(total, dtype=bool)

    logger.info("[Frame %s] Fractal start %sx%s workers=%s iter=%s", frame_id, view.image_width, view.image_height, workers, generator.iterations)

    with mp.Manager() as manager:
        results = manager.Queue()
        with ProcessPoolExecutor(
            max_workers=workers,
            initializer=_init_worker,
            initargs=(results, log_queue, log_level),
        ) as pool:
            futures = [pool.submit(_render_partition, generator, i, workers, chunk_size, frame_id) for i in range(workers)]

            finished: Set[int] = set()
            previous_progress = time.monotonic()
            while len(finished) < workers:
                try:
                    worker, indices, colors = results.get(timeout=WAIT_SECONDS)
                except queue.Empty:
                    _check_workers(futures)
                    continue

                if indices is None:
                    finished.add(worker)
                    continue

                idx = np.asarray(indices, dtype=np.int64)
                if written[idx].any():
                    raise WorkerError(worker, RuntimeError("pixel delivered twice"))
                image[idx] = np.asarray(colors, dtype=np.uint8)
                written[idx] = True
                completed[worker] += len(idx)

                now = time.monotonic()
                if progress_callback is not None and now - previous_progress > progress_interval:
                    progress_callback([c / a if a else 1.0 for c, a in zip(completed, assigned)])
                    previous_progress = now

            _check_workers(futures)

    if not written.all():
        missing = int(np.argmin(written))
        raise WorkerError(missing % workers, RuntimeError(f"pixel {missing} was never delivered"))

    logger.info("[Frame %s] Fractal done", frame_id)
    return image.reshape(view.image_height, view.image_width, 4)
