"""Enums for delivery states, routing errors, event types and views."""

from enum import IntEnum, StrEnum


class DeliveryStatus(StrEnum):
    """Lifecycle of a sent message's transport acknowledgement."""

    NONE = "none"
    PENDING = "pending"
    DELIVERED = "delivered"
    FAILED = "failed"


class RoutingError(IntEnum):
    """Meshtastic routing ``error_reason`` codes carried by ACK/NAK packets.

    ``NONE`` means the packet was delivered.
    """

    NONE = 0
    NO_ROUTE = 1
    GOT_NAK = 2
    TIMEOUT = 3
    NO_INTERFACE = 4
    MAX_RETRANSMIT = 5
    NO_CHANNEL = 6
    TOO_LARGE = 7
    NO_RESPONSE = 8
    DUTY_CYCLE_LIMIT = 9
    BAD_REQUEST = 32
    NOT_AUTHORIZED = 33
    PKI_FAILED = 34
    PKI_UNKNOWN_PUBKEY = 35
    ADMIN_BAD_SESSION_KEY = 36
    ADMIN_PUBLIC_KEY_UNAUTHORIZED = 37
    RATE_LIMIT_EXCEEDED = 38

    @property
    def display(self) -> str:
        return _ROUTING_ERROR_TEXT[self]

    @classmethod
    def from_code(cls, code: int) -> "RoutingError":
        """Map a raw code to a member; unknown codes count as delivered."""
        try:
            return cls(code)
        except ValueError:
            return cls.NONE


_ROUTING_ERROR_TEXT: dict[RoutingError, str] = {
    RoutingError.NONE: "Delivered",
    RoutingError.NO_ROUTE: "No route",
    RoutingError.GOT_NAK: "NAK received",
    RoutingError.TIMEOUT: "Timeout",
    RoutingError.NO_INTERFACE: "No interface",
    RoutingError.MAX_RETRANSMIT: "Max retransmit exceeded",
    RoutingError.NO_CHANNEL: "No channel",
    RoutingError.TOO_LARGE: "Packet too large",
    RoutingError.NO_RESPONSE: "No response",
    RoutingError.DUTY_CYCLE_LIMIT: "Duty cycle limit",
    RoutingError.BAD_REQUEST: "Bad request",
    RoutingError.NOT_AUTHORIZED: "Not authorized",
    RoutingError.PKI_FAILED: "PKI failed",
    RoutingError.PKI_UNKNOWN_PUBKEY: "Unknown public key",
    RoutingError.ADMIN_BAD_SESSION_KEY: "Bad admin session key",
    RoutingError.ADMIN_PUBLIC_KEY_UNAUTHORIZED: "Admin key unauthorized",
    RoutingError.RATE_LIMIT_EXCEEDED: "Rate limit exceeded",
}


class EventType(StrEnum):
    """Decoded event types consumed by the dispatcher."""

    # Node events
    NODE_UPDATE = "node.update"
    NODE_SELF = "node.self"

    # Channel configuration
    CHANNEL_UPDATE = "channel.update"

    # Message events
    MESSAGE_NEW = "message.new"
    MESSAGE_DELIVERY = "message.delivery"
    MESSAGE_REACTION = "message.reaction"

    # UI / session
    VIEW_ACTIVATED = "view.activated"
    CONNECTION_STATE = "connection.state"


class MainTab(StrEnum):
    """Top-level views of the client window."""

    MESSAGES = "messages"
    NODES = "nodes"
    CHANNELS = "channels"
    MAP = "map"
    DEBUG = "debug"
    INFO = "info"


class ConnectionStatus(StrEnum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    RECONNECTING = "reconnecting"
    ERROR = "error"
