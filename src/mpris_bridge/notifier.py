import logging
import signal

from typing import Any, Callable, List, Optional, TextIO, Tuple

from dasbus.loop import EventLoop

from mpris_bridge import config
from mpris_bridge.mpris.dbus import BUS_ERRORS
from mpris_bridge.snapshot import serialize

import gi

gi.require_version("GLib", "2.0")
from gi.repository import GLib  # noqa


_LOGGER = logging.getLogger(__name__)


def step(held: Optional[str], payload: str) -> Tuple[str, Optional[str]]:
    """
    Advance the notifier state by one snapshot.

    Returns the payload to hold from now on, and the payload to emit,
    or None if nothing changed since the held one was emitted.  With
    nothing held yet, the payload is always emitted.
    """
    if held is None or held != payload:
        return payload, payload
    return held, None


class ChangeNotifier(object):
    """
    Prints a serialized snapshot every time it differs from the last one
    printed.  Snapshots are taken on a fixed GLib timer; a tick runs to
    completion before the timer fires again.
    """

    def __init__(
        self,
        snapshot: Callable[[], str],
        stream: TextIO,
        interval: int = config.POLL_INTERVAL,
    ) -> None:
        self.snapshot = snapshot
        self.stream = stream
        self.interval = interval
        self.held: Optional[str] = None
        self.output_closed = False
        self._loop: Optional[EventLoop] = None
        self._source: Any = None
        self._signal_sources: List[int] = []

    def _take(self) -> str:
        try:
            return self.snapshot()
        except BUS_ERRORS as e:
            _LOGGER.warning("Snapshot failed, reporting no players: %s", e)
            return serialize([])

    def tick(self) -> bool:
        self.held, payload = step(self.held, self._take())
        if payload is None:
            return True
        try:
            print(payload, file=self.stream, flush=True)
        except BrokenPipeError:
            _LOGGER.info("Output was closed, stopping")
            self.output_closed = True
            # Returning False removes the timer.
            self._source = None
            self.stop()
            return False
        return True

    def _quit(self, signum: int) -> bool:
        _LOGGER.info("Stopping after signal %s.", signal.Signals(signum).name)
        self.stop()
        return True

    def run(self) -> None:
        """Run until the output is closed or a signal stops the loop."""
        self._loop = EventLoop()
        for signum in (signal.SIGINT, signal.SIGTERM):
            self._signal_sources.append(
                GLib.unix_signal_add(
                    GLib.PRIORITY_DEFAULT,
                    signum,
                    self._quit,
                    signum,
                )
            )
        try:
            if self.tick():
                self._source = GLib.timeout_add(self.interval, self.tick)
                _LOGGER.debug("Polling every %s ms", self.interval)
                self._loop.run()
        finally:
            while self._signal_sources:
                GLib.source_remove(self._signal_sources.pop())

    def stop(self) -> None:
        if self._source is not None:
            GLib.source_remove(self._source)
            self._source = None
        if self._loop is not None:
            self._loop.quit()
