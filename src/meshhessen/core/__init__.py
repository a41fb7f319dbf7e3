from .enums import ConnectionStatus, DeliveryStatus, EventType, MainTab, RoutingError
from .geo import format_distance, haversine_meters
from .merge import merge_delivery, merge_message, merge_node
from .models import (
    BROADCAST_ADDR,
    ChannelInfo,
    Conversation,
    DeliveryState,
    Message,
    MyNodeInfo,
    Node,
    format_node_id,
)
from .types import MeshEventDict, OwnPositionSource

__all__ = [
    "BROADCAST_ADDR",
    "ChannelInfo",
    "ConnectionStatus",
    "Conversation",
    "DeliveryState",
    "DeliveryStatus",
    "EventType",
    "MainTab",
    "MeshEventDict",
    "Message",
    "MyNodeInfo",
    "Node",
    "OwnPositionSource",
    "RoutingError",
    "format_distance",
    "format_node_id",
    "haversine_meters",
    "merge_delivery",
    "merge_message",
    "merge_node",
]
