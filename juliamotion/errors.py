from __future__ import annotations

from typing import Optional


class JuliaMotionError(Exception):
    """Base class for every failure that aborts a render."""


class ConfigError(JuliaMotionError, ValueError):
    def __init__(self, argument: str, message: str):
        super().__init__(f"Unable to parse --{argument.replace('_', '-')} argument: {message}")
        self.argument = argument
        self.message = message


class EncoderError(JuliaMotionError, RuntimeError):
    pass


class WorkerError(JuliaMotionError, RuntimeError):
    """A fractal worker failed.

    When the process pool itself broke (a worker process died outright) every
    pending worker fails at once, so ``worker`` is only the first failed
    worker seen and ``pool_broken`` is set.
    """

    def __init__(self, worker: int, cause: Optional[BaseException] = None, *, pool_broken: bool = False):
        detail = f": {cause!r}" if cause is not None else ""
        where = f"Fractal worker {worker} (best-effort index, process pool broke)" if pool_broken else f"Fractal worker {worker}"
        super().__init__(f"{where} failed{detail}")
        self.worker = worker
        self.cause = cause
        self.pool_broken = pool_broken
