"""Type definitions for meshhessen.

Decoded events arrive as plain dicts from the protocol layer; the
classes below document their expected structure.
"""

from __future__ import annotations

from typing import Any, Protocol


class MeshEvent:
    """Decoded event structure consumed by the dispatcher.

    Events always have 'type' and 'data' keys. 'type' is an
    :class:`~meshhessen.core.enums.EventType` value.
    """

    type: str
    data: dict[str, Any]


# Actual runtime type
MeshEventDict = dict[str, Any]


class NodeData:
    """Payload of a ``node.update`` event.

    Only ``num`` is required; absent keys mean "no data" and never
    overwrite known values.
    """

    num: int
    short_name: str | None
    long_name: str | None
    snr: float | None
    rssi: int | None
    last_heard: int | None
    battery_level: int | None
    latitude: float | None
    longitude: float | None
    altitude: int | None
    via_mqtt: bool | None


class MessageData:
    """Payload of a ``message.new`` event."""

    packet_id: int | None
    from_id: int
    to_id: int | None
    channel_index: int | None
    text: str | None
    rx_time: int | float | str | None
    sender_name: str | None
    channel_name: str | None
    encrypted: bool | None
    via_mqtt: bool | None
    delivery: str | None


class OwnPositionSource(Protocol):
    """Read accessor for the operator's configured position."""

    def own_position(self) -> tuple[float, float] | None:
        """Return ``(latitude, longitude)`` or None when no position is configured."""
        ...
