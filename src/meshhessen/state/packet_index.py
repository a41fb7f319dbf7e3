from __future__ import annotations

from collections.abc import Iterable

from meshhessen.core.models import Message


class PacketIndex:
    """Packet id -> position in the unified feed.

    Positions shift when rows are removed, so after any bulk removal the
    index must be rebuilt from the feed rather than patched.
    """

    def __init__(self) -> None:
        self._positions: dict[int, int] = {}

    def register(self, packet_id: int, position: int) -> None:
        self._positions[packet_id] = position

    def position(self, packet_id: int) -> int | None:
        return self._positions.get(packet_id)

    def rebuild(self, feed: Iterable[Message]) -> None:
        self._positions = {
            message.packet_id: position
            for position, message in enumerate(feed)
            if message.packet_id is not None
        }

    def clear(self) -> None:
        self._positions.clear()

    def __contains__(self, packet_id: object) -> bool:
        return packet_id in self._positions

    def __len__(self) -> int:
        return len(self._positions)


def find_slot(messages: list[Message], packet_id: int | None) -> int | None:
    """Linear scan for *packet_id*, newest first. Used where no index is kept."""
    if packet_id is None:
        return None
    for slot in range(len(messages) - 1, -1, -1):
        if messages[slot].packet_id == packet_id:
            return slot
    return None
