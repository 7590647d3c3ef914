import json

from typing import List, Sequence

from mpris_bridge.mpris.dbus import BusClient
from mpris_bridge.mpris.directory import discover
from mpris_bridge.mpris.state import PlayerState, aggregate


def build(bus: BusClient) -> List[PlayerState]:
    """State of every ranked player, in ranking order."""
    return [aggregate(bus, player_id) for player_id in discover(bus)]


def serialize(snapshot: Sequence[PlayerState]) -> str:
    """
    Encode a snapshot as a single-line JSON array.

    The encoding is deterministic: keys keep the field order of
    PlayerState and no whitespace is emitted, so equal snapshots always
    produce the same string.
    """
    return json.dumps(
        [state._asdict() for state in snapshot],
        separators=(",", ":"),
        ensure_ascii=False,
    )
