import logging

from typing import Any, Dict, Optional

from mpris_bridge import config
from mpris_bridge.mpris.dbus import (
    BUS_ERRORS,
    BusClient,
    decode_bool,
    decode_dict,
    decode_int64,
    is_mpris,
)
from mpris_bridge.mpris.directory import discover
from mpris_bridge.mpris.state import (
    META_LENGTH,
    PROP_CANSEEK,
    PROP_METADATA,
    PROP_POSITION,
)


_LOGGER = logging.getLogger(__name__)


class CommandError(Exception):
    pass


class NoTarget(CommandError):
    pass


class SeekUnsupported(CommandError):
    pass


class InvalidPercentage(CommandError):
    pass


class UnknownLength(CommandError):
    pass


class UnknownPosition(CommandError):
    pass


def expand_player_id(player_id: str) -> str:
    """Accept either a full bus name or the part after the MPRIS prefix."""
    if is_mpris(player_id) or player_id.startswith(":"):
        return player_id
    return config.MPRIS_PREFIX + player_id


def percent_target(percentage: float, length: int) -> int:
    """Position in microseconds at percentage of length, truncated."""
    return int((percentage / 100.0) * length)


class Controller(object):
    def __init__(self, bus: BusClient) -> None:
        self.bus = bus

    def resolve(self, player_id: Optional[str] = None) -> str:
        """Return the given player, or the top ranked one."""
        if player_id:
            return expand_player_id(player_id)
        players = discover(self.bus)
        if not players:
            raise NoTarget("No player is playing or paused")
        _LOGGER.debug("Defaulting to player %s", players[0])
        return players[0]

    def _call(self, player_id: str, method: str, *args: Any) -> None:
        signature = "(x)" if args else None
        try:
            self.bus.call(
                player_id,
                config.PLAYER_INTERFACE,
                method,
                signature,
                *args,
            )
        except BUS_ERRORS as e:
            raise CommandError("%s failed on %s: %s" % (method, player_id, e)) from e

    def _seekable_properties(self, player_id: str) -> Dict[str, Any]:
        try:
            props = self.bus.get_all(player_id, config.PLAYER_INTERFACE)
        except BUS_ERRORS as e:
            raise CommandError("Cannot reach player %s: %s" % (player_id, e)) from e
        if not decode_bool(props.get(PROP_CANSEEK)):
            raise SeekUnsupported("Player %s cannot seek" % player_id)
        return props

    def _position(self, player_id: str, props: Dict[str, Any]) -> int:
        position = decode_int64(props.get(PROP_POSITION))
        if position is None:
            raise UnknownPosition("Player %s has no position" % player_id)
        return position

    def _seek_from(self, player_id: str, position: int, target: int) -> int:
        offset = target - position
        _LOGGER.info(
            "Seeking %s from %s to %s (offset %s)",
            player_id,
            position,
            target,
            offset,
        )
        self._call(player_id, "Seek", offset)
        return offset

    def play_pause(self, player_id: Optional[str] = None) -> str:
        player_id = self.resolve(player_id)
        _LOGGER.info("Toggling playback of %s", player_id)
        self._call(player_id, "PlayPause")
        return player_id

    def set_position(self, usecs: int, player_id: Optional[str] = None) -> int:
        """Seek to usecs microseconds.  Returns the relative offset sent."""
        player_id = self.resolve(player_id)
        props = self._seekable_properties(player_id)
        position = self._position(player_id, props)
        return self._seek_from(player_id, position, usecs)

    def set_position_percent(
        self,
        percentage: float,
        player_id: Optional[str] = None,
    ) -> int:
        """Seek to percentage of the track.  Returns the offset sent."""
        if not 0.0 <= percentage <= 100.0:
            raise InvalidPercentage("%s is not between 0 and 100" % percentage)
        player_id = self.resolve(player_id)
        props = self._seekable_properties(player_id)
        metadata = decode_dict(props.get(PROP_METADATA)) or {}
        length = decode_int64(metadata.get(META_LENGTH))
        if length is None or length <= 0:
            raise UnknownLength("Player %s has no track length" % player_id)
        position = self._position(player_id, props)
        target = percent_target(percentage, length)
        return self._seek_from(player_id, position, target)
