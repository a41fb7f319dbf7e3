from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from uuid import uuid4

from .enums import DeliveryStatus, RoutingError
from .geo import format_distance

BROADCAST_ADDR = 0xFFFFFFFF


def format_node_id(num: int) -> str:
    """Return the Meshtastic ``!xxxxxxxx`` address for a node number."""
    return f"!{num & 0xFFFFFFFF:08x}"


@dataclass(frozen=True, slots=True)
class DeliveryState:
    status: DeliveryStatus = DeliveryStatus.NONE
    reason: str = ""

    @classmethod
    def pending(cls) -> DeliveryState:
        return cls(DeliveryStatus.PENDING)

    @classmethod
    def delivered(cls) -> DeliveryState:
        return cls(DeliveryStatus.DELIVERED)

    @classmethod
    def failed(cls, reason: str = "") -> DeliveryState:
        return cls(DeliveryStatus.FAILED, reason)

    @classmethod
    def from_routing_error(cls, error: RoutingError) -> DeliveryState:
        if error is RoutingError.NONE:
            return cls.delivered()
        return cls.failed(error.display)

    @property
    def is_none(self) -> bool:
        return self.status is DeliveryStatus.NONE


NO_DELIVERY = DeliveryState()


@dataclass(slots=True)
class Node:
    num: int
    short_name: str = ""
    long_name: str = ""
    node_id: str = ""
    name: str = ""

    # Radio / telemetry; None means "no data"
    snr: float | None = None
    rssi: int | None = None
    last_heard: int | None = None
    battery_level: int | None = None
    voltage: float | None = None
    channel_utilization: float | None = None
    air_util_tx: float | None = None

    # GPS
    latitude: float | None = None
    longitude: float | None = None
    altitude: int | None = None
    distance_meters: float | None = None

    via_mqtt: bool = False

    # User customization
    pinned: bool = False
    note: str = ""
    color_hex: str = ""

    def __post_init__(self) -> None:
        if not self.node_id:
            self.node_id = format_node_id(self.num)
        if not self.name:
            self.name = self.long_name or self.short_name

    @property
    def has_position(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    @property
    def distance(self) -> str:
        return format_distance(self.distance_meters)

    @property
    def snr_text(self) -> str:
        return "-" if self.snr is None else f"{self.snr:.1f} dB"

    @property
    def rssi_text(self) -> str:
        return "-" if self.rssi is None else f"{self.rssi} dBm"

    @property
    def battery_text(self) -> str:
        if self.battery_level is None:
            return "-"
        # Meshtastic reports 101 when running on external power
        if self.battery_level > 100:
            return "PWR"
        return f"{self.battery_level}%"

    @property
    def last_heard_text(self) -> str:
        if self.last_heard is None:
            return "-"
        try:
            heard = datetime.fromtimestamp(self.last_heard, UTC)
        except (OverflowError, OSError, ValueError):
            return "-"
        return heard.strftime("%Y-%m-%d %H:%M:%S")


@dataclass(slots=True)
class Message:
    sender_id: int
    body: str = ""
    packet_id: int | None = None
    recipient_id: int = BROADCAST_ADDR
    channel_index: int = 0
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    # Display fields
    sender_name: str = ""
    channel_name: str = ""
    sender_short_name: str = ""
    sender_color_hex: str = ""
    sender_note: str = ""

    delivery: DeliveryState = NO_DELIVERY
    reactions: dict[str, list[int]] = field(default_factory=dict)

    is_encrypted: bool = False
    via_mqtt: bool = False
    has_alert_bell: bool = False

    local_id: str = field(default_factory=lambda: uuid4().hex)

    @property
    def is_direct(self) -> bool:
        return self.recipient_id not in (BROADCAST_ADDR, 0)

    @property
    def has_reactions(self) -> bool:
        return bool(self.reactions)

    def detached(self) -> Message:
        """Copy that shares no mutable state with this record."""
        return replace(self, reactions={e: list(ids) for e, ids in self.reactions.items()})

    def with_reaction(self, emoji: str, reactor_id: int) -> Message:
        """Return a copy carrying the reaction; adding the same pair twice is a no-op."""
        reactors = self.reactions.get(emoji, [])
        if reactor_id in reactors:
            return self
        reactions = {key: list(ids) for key, ids in self.reactions.items()}
        reactions[emoji] = [*reactors, reactor_id]
        return replace(self, reactions=reactions)

    def without_reaction(self, emoji: str, reactor_id: int) -> Message:
        reactors = self.reactions.get(emoji)
        if not reactors or reactor_id not in reactors:
            return self
        reactions = {key: list(ids) for key, ids in self.reactions.items()}
        reactions[emoji].remove(reactor_id)
        if not reactions[emoji]:
            del reactions[emoji]
        return replace(self, reactions=reactions)


@dataclass(slots=True)
class Conversation:
    partner_id: int
    node_name: str
    color_hex: str = ""
    messages: list[Message] = field(default_factory=list)
    has_unread: bool = False

    @property
    def last_activity(self) -> datetime | None:
        return self.messages[-1].timestamp if self.messages else None


@dataclass(slots=True)
class ChannelInfo:
    index: int
    name: str = ""
    psk: str = ""  # Base64
    role: str = "SECONDARY"
    uplink_enabled: bool = False
    downlink_enabled: bool = False

    @property
    def display_name(self) -> str:
        if not self.name:
            return f"Channel {self.index}"
        suffix = " 📡" if self.uplink_enabled or self.downlink_enabled else ""
        return self.name + suffix


@dataclass(slots=True)
class MyNodeInfo:
    num: int
    short_name: str = ""
    long_name: str = ""
    hardware_model: str = ""
    firmware_version: str = ""

    @property
    def node_id(self) -> str:
        return format_node_id(self.num)
