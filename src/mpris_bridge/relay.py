import logging
import os
import stat
import time

from typing import TextIO

from mpris_bridge import config


_LOGGER = logging.getLogger(__name__)


class PipeMissing(Exception):
    pass


def is_fifo(path: str) -> bool:
    try:
        return stat.S_ISFIFO(os.stat(path).st_mode)
    except FileNotFoundError:
        return False


def open_pipe(path: str, wait: float = config.RELAY_WAIT) -> TextIO:
    """
    Open the named pipe at path for writing.

    The pipe is created by the consumer.  If it is not there yet, wait
    once for it to appear.  Opening blocks until the consumer has the
    pipe open for reading.
    """
    if not is_fifo(path):
        _LOGGER.warning("Waiting for pipe at %s", path)
        time.sleep(wait)
        if not is_fifo(path):
            raise PipeMissing("No pipe found at %s" % path)
    _LOGGER.info("Relaying updates to %s", path)
    return open(path, "w", encoding="utf-8")
