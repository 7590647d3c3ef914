import argparse
import logging
import os
import sys

from typing import List, NoReturn, Optional, TextIO

from mpris_bridge import config
from mpris_bridge.control import CommandError, Controller
from mpris_bridge.mpris.dbus import BusClient
from mpris_bridge.notifier import ChangeNotifier
from mpris_bridge.relay import PipeMissing, open_pipe
from mpris_bridge.snapshot import build, serialize

import gi

gi.require_version("GLib", "2.0")
from gi.repository import GLib  # noqa


_LOGGER = logging.getLogger(__name__)


class ArgumentParser(argparse.ArgumentParser):
    """Exits with status 1 on usage errors, not 2."""

    def error(self, message: str) -> NoReturn:
        self.print_usage(sys.stderr)
        self.exit(1, "%s: error: %s\n" % (self.prog, message))


def positive_int(s: str) -> int:
    value = int(s)
    if value <= 0:
        raise argparse.ArgumentTypeError("%s is not a positive integer" % s)
    return value


def parser() -> ArgumentParser:
    p = ArgumentParser(
        prog="mpris-bridge",
        description="Report and control MPRIS media players.",
    )
    p.add_argument("-v", "--verbose", action="store_true", help="log progress")
    p.add_argument("-d", "--debug", action="store_true", help="log everything")
    p.add_argument(
        "--timeout",
        type=positive_int,
        default=config.CALL_TIMEOUT,
        metavar="MS",
        help="timeout of each bus call (default %(default)s)",
    )
    sub = p.add_subparsers(dest="command", metavar="command")

    sub.add_parser("get", help="print the state of all active players")

    listen = sub.add_parser("listen", help="print the state when it changes")
    relay = sub.add_parser("relay", help="like listen, into a named pipe")
    for s in (listen, relay):
        s.add_argument(
            "--interval",
            type=positive_int,
            default=config.POLL_INTERVAL,
            metavar="MS",
            help="poll interval (default %(default)s)",
        )
    relay.add_argument("pipe", nargs="?", default=config.RELAY_PIPE)

    play_pause = sub.add_parser("play-pause", help="toggle playback")
    play_pause.add_argument("player_id", nargs="?")

    set_position = sub.add_parser("set-position", help="seek to a time")
    set_position.add_argument("player_id", nargs="?")
    set_position.add_argument("usecs", type=int)

    set_percent = sub.add_parser(
        "set-position-percent",
        help="seek to a percentage of the track",
    )
    set_percent.add_argument("player_id", nargs="?")
    set_percent.add_argument("percent", type=float)

    return p


def setup_logging(verbose: bool, debug: bool) -> None:
    level = logging.WARNING
    if verbose:
        level = logging.INFO
    if debug:
        level = logging.DEBUG
    logging.basicConfig(level=level, stream=sys.stderr)


def listen(bus: BusClient, stream: TextIO, interval: int) -> int:
    notifier = ChangeNotifier(
        lambda: serialize(build(bus)),
        stream,
        interval,
    )
    notifier.run()
    return 1 if notifier.output_closed else 0


def dispatch(args: argparse.Namespace, bus: BusClient) -> int:
    if args.command == "get":
        print(serialize(build(bus)), flush=True)
        return 0

    if args.command == "listen":
        ret = listen(bus, sys.stdout, args.interval)
        if ret:
            # Keep the interpreter from failing again on exit flush.
            devnull = os.open(os.devnull, os.O_WRONLY)
            os.dup2(devnull, sys.stdout.fileno())
        return ret

    if args.command == "relay":
        try:
            stream = open_pipe(args.pipe)
        except (PipeMissing, OSError) as e:
            _LOGGER.error("%s", e)
            return 1
        try:
            return listen(bus, stream, args.interval)
        finally:
            try:
                stream.close()
            except BrokenPipeError:
                pass

    controller = Controller(bus)
    try:
        if args.command == "play-pause":
            controller.play_pause(args.player_id)
        elif args.command == "set-position":
            controller.set_position(args.usecs, args.player_id)
        elif args.command == "set-position-percent":
            controller.set_position_percent(args.percent, args.player_id)
    except CommandError as e:
        _LOGGER.error("%s: %s", args.command, e)
        return 1
    return 0


def main(
    argv: Optional[List[str]] = None,
    bus: Optional[BusClient] = None,
) -> int:
    p = parser()
    args = p.parse_args(argv)
    if not args.command:
        p.print_help(sys.stderr)
        return 1
    setup_logging(args.verbose, args.debug)

    if bus is None:
        bus = BusClient(timeout=args.timeout)
    try:
        bus.connect()
    except GLib.Error as e:
        _LOGGER.error("Cannot connect to the session bus: %s", e)
        return 1
    return dispatch(args, bus)


if __name__ == "__main__":
    sys.exit(main())
