import logging
import logging.handlers
import multiprocessing as mp
from typing import List, Optional

_LOGGER_NAME = "juliamotion"


def get_logger() -> logging.Logger:
    return logging.getLogger(_LOGGER_NAME)


def _reset(level: int) -> logging.Logger:
    logger = get_logger()
    logger.setLevel(level)
    logger.propagate = False
    for h in list(logger.handlers):
        logger.removeHandler(h)
    return logger


def _add_handler(logger: logging.Logger, handler: logging.Handler, level: int, fmt: Optional[logging.Formatter] = None) -> None:
    handler.setLevel(level)
    if fmt is not None:
        handler.setFormatter(fmt)
    logger.addHandler(handler)


def configure_root_logging(
    *,
    level: int = logging.INFO,
    console: bool = True,
    log_file: Optional[str] = "juliamotion.log",
    rotate_bytes: int = 5 * 1024 * 1024,
    rotate_count: int = 5,
) -> logging.Logger:
    """Console plus rotating-file logging for the coordinating process."""
    logger = _reset(level)
    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03dZ %(processName)s %(levelname)s %(name)s - %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )
    if console:
        _add_handler(logger, logging.StreamHandler(), level, fmt)
    if log_file:
        fh = logging.handlers.RotatingFileHandler(log_file, maxBytes=rotate_bytes, backupCount=rotate_count, encoding="utf-8")
        _add_handler(logger, fh, level, fmt)
    return logger


def create_log_queue() -> mp.Queue:
    return mp.Queue(-1)


def start_queue_listener(queue: mp.Queue, listener_logger: logging.Logger) -> logging.handlers.QueueListener:
    listener = logging.handlers.QueueListener(queue, *listener_logger.handlers, respect_handler_level=True)
    listener.start()
    return listener


def logging_initialiser(queue: mp.Queue, level: int) -> None:
    """Route a worker process's records through ``queue`` to the listener."""
    logger = _reset(level)
    _add_handler(logger, logging.handlers.QueueHandler(queue), level)


def format_progress(progress: List[float]) -> str:
    return " ".join(f"{p * 100:.2f}%" for p in progress)
