import sys
from os.path import dirname as d
from os.path import abspath, join

from typing import Any, Dict, List, Optional, Tuple

import pytest

root_dir = d(d(abspath(__file__)))
sys.path.append(join(root_dir, "src"))

from dasbus.error import DBusError  # noqa: E402

import gi  # noqa: E402

gi.require_version("GLib", "2.0")
from gi.repository import GLib  # noqa: E402


PREFIX = "org.mpris.MediaPlayer2."
PLAYER_INTERFACE = "org.mpris.MediaPlayer2.Player"


def metadata(
    length: Optional[int] = None,
    title: Optional[str] = None,
    artists: Optional[List[str]] = None,
) -> GLib.Variant:
    entries = {}
    if length is not None:
        entries["mpris:length"] = GLib.Variant("x", length)
    if title is not None:
        entries["xesam:title"] = GLib.Variant("s", title)
    if artists is not None:
        entries["xesam:artist"] = GLib.Variant("as", artists)
    return GLib.Variant("a{sv}", entries)


def player_properties(
    status: Optional[str] = "Playing",
    position: Optional[int] = 0,
    can_seek: Optional[bool] = True,
    meta: Optional[GLib.Variant] = None,
) -> Dict[str, Any]:
    props: Dict[str, Any] = {}
    if status is not None:
        props["PlaybackStatus"] = GLib.Variant("s", status)
    if position is not None:
        props["Position"] = GLib.Variant("x", position)
    if can_seek is not None:
        props["CanSeek"] = GLib.Variant("b", can_seek)
    if meta is not None:
        props["Metadata"] = meta
    return props


class FakeBus(object):
    """
    Stands in for mpris_bridge.mpris.dbus.BusClient.  Serves GLib.Variant
    properties from memory and records every method call.
    """

    def __init__(self) -> None:
        self.names: List[str] = ["org.freedesktop.DBus", ":1.1"]
        self.players: Dict[str, Dict[str, Any]] = {}
        self.broken: List[str] = []
        self.hung: List[str] = []
        self.fail_list_names = False
        self.fail_calls = False
        self.calls: List[Tuple[str, str, Tuple[Any, ...]]] = []
        self.bus_calls = 0

    def add(self, name: str, props: Dict[str, Any]) -> str:
        bus_name = PREFIX + name
        self.names.append(bus_name)
        self.players[bus_name] = props
        return bus_name

    def connect(self) -> None:
        pass

    def list_names(self) -> List[str]:
        self.bus_calls += 1
        if self.fail_list_names:
            raise DBusError("org.freedesktop.DBus.Error.Failed")
        return list(self.names)

    def get_all(self, bus_name: str, interface: str) -> Dict[str, Any]:
        self.bus_calls += 1
        assert interface == PLAYER_INTERFACE
        if bus_name in self.hung:
            raise TimeoutError("The DBus call timeout was reached.")
        if bus_name in self.broken or bus_name not in self.players:
            raise DBusError("org.freedesktop.DBus.Error.ServiceUnknown")
        return dict(self.players[bus_name])

    def call(
        self,
        bus_name: str,
        interface: str,
        method: str,
        in_type_str: Optional[str],
        *parameters: Any,
    ) -> None:
        self.bus_calls += 1
        assert interface == PLAYER_INTERFACE
        if bus_name in self.hung:
            raise TimeoutError("The DBus call timeout was reached.")
        if self.fail_calls or bus_name not in self.players:
            raise DBusError("org.freedesktop.DBus.Error.NoReply")
        self.calls.append((bus_name, method, parameters))


@pytest.fixture
def bus() -> FakeBus:
    return FakeBus()
