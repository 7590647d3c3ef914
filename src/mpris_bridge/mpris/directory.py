import logging

from typing import Iterable, List, Tuple

from mpris_bridge import config
from mpris_bridge.mpris.dbus import (
    BUS_ERRORS,
    BusClient,
    decode_string,
    is_mpris,
)


_LOGGER = logging.getLogger(__name__)

STATUS_PLAYING = "Playing"
STATUS_PAUSED = "Paused"
STATUS_STOPPED = "Stopped"
STATUS_UNKNOWN = "Unknown"

ALL_STATUSES = (STATUS_PLAYING, STATUS_PAUSED, STATUS_STOPPED)

PROP_PLAYBACKSTATUS = "PlaybackStatus"


def rank(statuses: Iterable[Tuple[str, str]]) -> List[str]:
    """
    Order (player_id, status) pairs: playing players first, then paused
    ones, each group in the order given.  Anything else is left out.
    """
    playing: List[str] = []
    paused: List[str] = []
    for player_id, status in statuses:
        if status == STATUS_PLAYING:
            playing.append(player_id)
        elif status == STATUS_PAUSED:
            paused.append(player_id)
    return playing + paused


def playback_status(bus: BusClient, player_id: str) -> str:
    """May raise DBusError or GLib.Error if the player cannot be read."""
    props = bus.get_all(player_id, config.PLAYER_INTERFACE)
    if PROP_PLAYBACKSTATUS not in props:
        return STATUS_UNKNOWN
    status = decode_string(props[PROP_PLAYBACKSTATUS])
    if status not in ALL_STATUSES:
        return STATUS_UNKNOWN
    return status


def discover(bus: BusClient) -> List[str]:
    """Return the bus names of the playing and paused players, ranked."""
    try:
        names = bus.list_names()
    except BUS_ERRORS as e:
        _LOGGER.debug("Cannot list bus names: %s", e)
        return []

    statuses = []
    for bus_name in names:
        if not is_mpris(bus_name):
            continue
        try:
            status = playback_status(bus, bus_name)
        except BUS_ERRORS as e:
            _LOGGER.debug("Ignoring player %s: %s", bus_name, e)
            continue
        _LOGGER.debug("Player %s has status %s", bus_name, status)
        statuses.append((bus_name, status))

    return rank(statuses)
