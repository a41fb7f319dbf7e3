"""Field-level merge rules for records sharing a logical identity.

Merging is ordered, not commutative: ``merge(merge(a, b), c)`` can differ
from ``merge(merge(a, c), b)`` when ``b`` and ``c`` carry conflicting
scalars. Callers must apply updates for one identity in arrival order.
"""

from __future__ import annotations

from dataclasses import replace

from .models import DeliveryState, Message, Node

# Display text: incoming wins only when non-empty.
MESSAGE_TEXT_FIELDS = (
    "body",
    "sender_name",
    "channel_name",
    "sender_short_name",
    "sender_color_hex",
    "sender_note",
)

# Latest known truth: incoming always wins.
MESSAGE_SCALAR_FIELDS = (
    "timestamp",
    "sender_id",
    "recipient_id",
    "channel_index",
    "is_encrypted",
    "via_mqtt",
    "has_alert_bell",
)

# ``name`` is derived from long/short name and recomputed after the merge.
NODE_TEXT_FIELDS = ("short_name", "long_name", "note", "color_hex")

# Optional readings: incoming wins only when not None.
NODE_OPTIONAL_FIELDS = (
    "snr",
    "rssi",
    "last_heard",
    "battery_level",
    "voltage",
    "channel_utilization",
    "air_util_tx",
    "latitude",
    "longitude",
    "altitude",
)


def merge_delivery(existing: DeliveryState, incoming: DeliveryState) -> DeliveryState:
    """An incoming ``none`` never erases an observed delivery outcome."""
    return existing if incoming.is_none else incoming


def merge_reactions(
    existing: dict[str, list[int]], incoming: dict[str, list[int]]
) -> dict[str, list[int]]:
    merged = {emoji: list(reactors) for emoji, reactors in existing.items()}
    for emoji, reactors in incoming.items():
        target = merged.setdefault(emoji, [])
        for reactor in reactors:
            if reactor not in target:
                target.append(reactor)
    return merged


def merge_message(existing: Message, incoming: Message) -> Message:
    """Return ``existing`` updated with ``incoming``; ``local_id`` and packet id are kept."""
    changes: dict[str, object] = {}
    for name in MESSAGE_TEXT_FIELDS:
        value = getattr(incoming, name)
        if value:
            changes[name] = value
    for name in MESSAGE_SCALAR_FIELDS:
        changes[name] = getattr(incoming, name)
    changes["delivery"] = merge_delivery(existing.delivery, incoming.delivery)
    changes["reactions"] = merge_reactions(existing.reactions, incoming.reactions)
    return replace(existing, **changes)


def merge_node(existing: Node, incoming: Node) -> Node:
    """Return ``existing`` updated with ``incoming``; ``pinned`` is sticky."""
    changes: dict[str, object] = {}
    for name in NODE_TEXT_FIELDS:
        value = getattr(incoming, name)
        if value:
            changes[name] = value
    for name in NODE_OPTIONAL_FIELDS:
        value = getattr(incoming, name)
        if value is not None:
            changes[name] = value
    changes["via_mqtt"] = incoming.via_mqtt
    changes["pinned"] = existing.pinned or incoming.pinned
    changes["name"] = ""
    return replace(existing, **changes)
