import logging

from typing import Any, Callable, Dict, NamedTuple, Optional, TypeVar

from mpris_bridge import config
from mpris_bridge.mpris.dbus import (
    BUS_ERRORS,
    BusClient,
    decode_dict,
    decode_first_string,
    decode_int64,
    decode_string,
)
from mpris_bridge.mpris.directory import (
    ALL_STATUSES,
    PROP_PLAYBACKSTATUS,
    STATUS_UNKNOWN,
)


_LOGGER = logging.getLogger(__name__)

PROP_POSITION = "Position"
PROP_METADATA = "Metadata"
PROP_CANSEEK = "CanSeek"

META_LENGTH = "mpris:length"
META_TITLE = "xesam:title"
META_ARTIST = "xesam:artist"

T = TypeVar("T")


class PlayerState(NamedTuple):
    player_id: str
    status: str = STATUS_UNKNOWN
    position: int = 0
    length: int = 0
    title: str = ""
    artist: str = ""
    icon: str = ""


def icon_for(player_id: str) -> str:
    if player_id.startswith(config.MPRIS_PREFIX):
        return player_id[len(config.MPRIS_PREFIX):]
    return ""


def read_field(
    props: Dict[str, Any],
    name: str,
    decoder: Callable[[Any], Optional[T]],
    default: T,
) -> T:
    """Decode props[name], falling back to default if absent or malformed."""
    if name not in props:
        return default
    try:
        value = decoder(props[name])
    except Exception as e:
        _LOGGER.debug("Cannot decode %s: %s", name, e)
        return default
    if value is None:
        _LOGGER.debug("Ignoring %s of unexpected type", name)
        return default
    return value


def decode_status(value: Any) -> Optional[str]:
    status = decode_string(value)
    if status not in ALL_STATUSES:
        return None
    return status


def decode_usec(value: Any) -> Optional[int]:
    usec = decode_int64(value)
    if usec is None or usec < 0:
        return None
    return usec


def player_state(player_id: str, props: Dict[str, Any]) -> PlayerState:
    """Build the state of one player out of its Player properties."""
    metadata = read_field(props, PROP_METADATA, decode_dict, {})
    return PlayerState(
        player_id=player_id,
        status=read_field(props, PROP_PLAYBACKSTATUS, decode_status, STATUS_UNKNOWN),
        position=read_field(props, PROP_POSITION, decode_usec, 0),
        length=read_field(metadata, META_LENGTH, decode_usec, 0),
        title=read_field(metadata, META_TITLE, decode_string, ""),
        artist=read_field(metadata, META_ARTIST, decode_first_string, ""),
        icon=icon_for(player_id),
    )


def aggregate(bus: BusClient, player_id: str) -> PlayerState:
    """Never fails.  An unreadable player yields a record of defaults."""
    try:
        props = bus.get_all(player_id, config.PLAYER_INTERFACE)
    except BUS_ERRORS as e:
        _LOGGER.debug("Cannot read properties of %s: %s", player_id, e)
        props = {}
    return player_state(player_id, props)
