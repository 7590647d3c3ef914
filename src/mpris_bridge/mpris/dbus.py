import logging

from typing import Any, Dict, List, Optional, Tuple

from dasbus.error import DBusError
from dasbus.connection import SessionMessageBus
from dasbus.client.proxy import (
    disconnect_proxy,
    get_object_handler as goh,
)

from mpris_bridge import config

import gi

gi.require_version("GLib", "2.0")
from gi.repository import GLib  # noqa


_LOGGER = logging.getLogger(__name__)

# Anything a single bus round-trip can raise.  DBusError covers errors
# returned by the remote end, TimeoutError a call that got no reply in
# time (dasbus raises it instead of the GLib.Error), GLib.Error the
# transport.
BUS_ERRORS = (DBusError, TimeoutError, GLib.Error)

_INT_TYPES = ("x", "t", "i", "u", "n", "q")
_UINT64_SPAN = 1 << 64
_INT64_MAX = (1 << 63) - 1


def _signed64(value: int) -> int:
    value = value % _UINT64_SPAN
    if value > _INT64_MAX:
        value -= _UINT64_SPAN
    return value


def _native_type_string(value: Any) -> str:
    # bool must be checked before int.
    if isinstance(value, bool):
        return "b"
    if isinstance(value, int):
        return "t" if value > _INT64_MAX else "x"
    if isinstance(value, str):
        return "s"
    if isinstance(value, dict):
        return "a{sv}"
    if isinstance(value, (list, tuple)):
        if all(isinstance(v, str) for v in value):
            return "as"
        return "av"
    return ""


def tag(value: Any) -> Tuple[str, Any]:
    """
    Classify a property value by its D-Bus type string.

    Returns the type string and the value in native form.  Nested
    variants are unwrapped first.  Dictionaries keep their values
    wrapped so that each entry can be tagged on its own.  Values the
    binding has already unpacked are classified by their Python type.
    """
    while isinstance(value, GLib.Variant):
        type_string = value.get_type_string()
        if type_string == "v":
            value = value.get_variant()
            continue
        if type_string.startswith("a{"):
            entries = {}
            for i in range(value.n_children()):
                entry = value.get_child_value(i)
                entries[entry.get_child_value(0).unpack()] = (
                    entry.get_child_value(1)
                )
            return type_string, entries
        return type_string, value.unpack()
    return _native_type_string(value), value


def decode_int64(value: Any) -> Optional[int]:
    type_string, native = tag(value)
    if type_string == "t":
        return _signed64(native)
    if type_string in _INT_TYPES:
        return int(native)
    return None


def decode_string(value: Any) -> Optional[str]:
    type_string, native = tag(value)
    if type_string in ("s", "o"):
        return str(native)
    return None


def decode_first_string(value: Any) -> Optional[str]:
    type_string, native = tag(value)
    if type_string == "as":
        if not native:
            return ""
        return str(native[0])
    if type_string == "s":
        return str(native)
    return None


def decode_bool(value: Any) -> Optional[bool]:
    type_string, native = tag(value)
    if type_string == "b":
        return bool(native)
    return None


def decode_dict(value: Any) -> Optional[Dict[str, Any]]:
    type_string, native = tag(value)
    if type_string == "a{sv}":
        return dict(native)
    return None


def is_mpris(bus_name: str) -> bool:
    return bus_name.startswith(config.MPRIS_PREFIX)


class BusClient(object):
    """
    Synchronous access to the session bus.

    Calls go through the low-level call of the dasbus object handler,
    which does not need introspection data from the remote object.
    Some players (Chromium among them) publish none.
    """

    def __init__(
        self,
        bus: Optional[SessionMessageBus] = None,
        timeout: int = config.CALL_TIMEOUT,
    ) -> None:
        self.bus = bus if bus is not None else SessionMessageBus()
        self.timeout = timeout

    def connect(self) -> None:
        """Open the connection now.  Raises GLib.Error if unreachable."""
        self.bus.connection

    def _call(
        self,
        bus_name: str,
        object_path: str,
        interface: str,
        method: str,
        in_type_str: Optional[str],
        out_type_str: Optional[str],
        *parameters: Any,
    ) -> Any:
        proxy = self.bus.get_proxy(bus_name, object_path)
        try:
            return goh(proxy)._call_method(
                interface,
                method,
                in_type_str,
                out_type_str,
                *parameters,
                timeout=self.timeout,
            )
        finally:
            disconnect_proxy(proxy)

    def list_names(self) -> List[str]:
        names = self._call(
            config.DBUS_NAME,
            config.DBUS_PATH,
            config.DBUS_INTERFACE,
            "ListNames",
            None,
            "(as)",
        )
        return list(names or [])

    def get_all(self, bus_name: str, interface: str) -> Dict[str, Any]:
        props = self._call(
            bus_name,
            config.MPRIS_PATH,
            config.PROPERTIES_INTERFACE,
            "GetAll",
            "(s)",
            "(a{sv})",
            interface,
        )
        return dict(props or {})

    def call(
        self,
        bus_name: str,
        interface: str,
        method: str,
        in_type_str: Optional[str],
        *parameters: Any,
    ) -> Any:
        _LOGGER.debug("Calling %s.%s on %s", interface, method, bus_name)
        return self._call(
            bus_name,
            config.MPRIS_PATH,
            interface,
            method,
            in_type_str,
            None,
            *parameters,
        )
