"""Route decoded mesh events into :class:`AppState`.

Events are ``{"type": EventType, "data": {...}}`` dicts produced by the
protocol layer. Malformed events are dropped with a debug-log entry; the
dispatcher never raises on bad input.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from dataclasses import replace
from datetime import UTC, datetime
from typing import Any

from meshhessen.core.enums import ConnectionStatus, DeliveryStatus, EventType, MainTab, RoutingError
from meshhessen.core.models import (
    BROADCAST_ADDR,
    ChannelInfo,
    DeliveryState,
    Message,
    MyNodeInfo,
    Node,
)
from meshhessen.core.types import MeshEventDict

from .app_state import AppState
from .debug_log import MIRRORED

logger = logging.getLogger(__name__)

# Bell character used by Meshtastic clients as an alert trigger
ALERT_BELL_CHARS = ("\u0007", "🔔")

# Channel values above the last slot are hashes of channels we hold no key for
MAX_CHANNEL_SLOT = 7

_STATUS_ALIASES = {"acknowledged": "delivered", "ack": "delivered", "": "none"}


class MalformedEvent(ValueError):
    """Raised by the builders when a payload lacks a required field."""


def _opt_int(value: Any) -> int | None:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return None


def _opt_float(value: Any) -> float | None:
    if value is None or value == "":
        return None
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    return number if math.isfinite(number) else None


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def _require_int(data: dict[str, Any], *keys: str) -> int:
    for key in keys:
        value = _opt_int(data.get(key))
        if value is not None:
            return value
    raise MalformedEvent(f"missing {' / '.join(keys)}")


def _timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value if value.tzinfo is not None else value.replace(tzinfo=UTC)
    if isinstance(value, (int, float)) and value > 0:
        try:
            return datetime.fromtimestamp(value, UTC)
        except (OverflowError, OSError, ValueError):
            return datetime.now(UTC)
    if isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value)
        except ValueError:
            return datetime.now(UTC)
        return parsed if parsed.tzinfo is not None else parsed.replace(tzinfo=UTC)
    return datetime.now(UTC)


def _delivery(value: Any) -> DeliveryState:
    if isinstance(value, DeliveryState):
        return value
    name = _text(value).lower()
    try:
        return DeliveryState(DeliveryStatus(_STATUS_ALIASES.get(name, name)))
    except ValueError:
        return DeliveryState()


def node_from_dict(data: dict[str, Any]) -> Node:
    """Build a :class:`Node` from a ``node.update`` payload; absent keys stay None."""
    num = _require_int(data, "num", "node_num", "id")
    latitude = _opt_float(data.get("latitude"))
    longitude = _opt_float(data.get("longitude"))
    # Meshtastic reports 0/0 when a node has no fix
    if latitude == 0.0 and longitude == 0.0:
        latitude = longitude = None
    return Node(
        num=num,
        short_name=_text(data.get("short_name")),
        long_name=_text(data.get("long_name")),
        snr=_opt_float(data.get("snr")),
        rssi=_opt_int(data.get("rssi")),
        last_heard=_opt_int(data.get("last_heard")),
        battery_level=_opt_int(data.get("battery_level")),
        voltage=_opt_float(data.get("voltage")),
        channel_utilization=_opt_float(data.get("channel_utilization")),
        air_util_tx=_opt_float(data.get("air_util_tx")),
        latitude=latitude,
        longitude=longitude,
        altitude=_opt_int(data.get("altitude")),
        via_mqtt=bool(data.get("via_mqtt", False)),
    )


def _channel(data: dict[str, Any]) -> tuple[int, str]:
    """Local channel slot plus a fallback name for foreign channel hashes."""
    raw = _opt_int(data.get("channel_index", data.get("channel"))) or 0
    if raw > MAX_CHANNEL_SLOT:
        return 0, f"Other Channel ({raw & 0xFF})"
    return max(0, raw), ""


def message_from_dict(data: dict[str, Any]) -> Message:
    """Build a :class:`Message` from a ``message.new`` payload.

    The alert-bell marker is detected and stripped from the body.
    """
    sender_id = _require_int(data, "from_id", "from", "sender_id")
    text = _text(data.get("text") or data.get("message"))
    has_bell = bool(data.get("has_alert_bell")) or any(ch in text for ch in ALERT_BELL_CHARS)
    if "\u0007" in text:
        text = text.replace("\u0007", "")
    recipient = _opt_int(data.get("to_id", data.get("to")))
    channel_index, foreign_name = _channel(data)
    return Message(
        packet_id=_opt_int(data.get("packet_id", data.get("id"))),
        sender_id=sender_id,
        recipient_id=BROADCAST_ADDR if recipient is None else recipient,
        channel_index=channel_index,
        body=text.strip(),
        timestamp=_timestamp(data.get("rx_time", data.get("timestamp"))),
        sender_name=_text(data.get("sender_name")),
        channel_name=_text(data.get("channel_name")) or foreign_name,
        sender_short_name=_text(data.get("sender_short_name")),
        is_encrypted=bool(data.get("encrypted", False)),
        via_mqtt=bool(data.get("via_mqtt", False)),
        has_alert_bell=has_bell,
        delivery=_delivery(data.get("delivery")),
    )


class EventDispatcher:
    """Apply decoded events to an :class:`AppState` in arrival order."""

    def __init__(self, state: AppState, *, show_encrypted: bool = True) -> None:
        self.state = state
        self.show_encrypted = show_encrypted
        self._handlers = {
            EventType.NODE_UPDATE: self._on_node_update,
            EventType.NODE_SELF: self._on_node_self,
            EventType.CHANNEL_UPDATE: self._on_channel_update,
            EventType.MESSAGE_NEW: self._on_message,
            EventType.MESSAGE_DELIVERY: self._on_delivery,
            EventType.MESSAGE_REACTION: self._on_reaction,
            EventType.VIEW_ACTIVATED: self._on_view_activated,
            EventType.CONNECTION_STATE: self._on_connection_state,
        }

    def dispatch(self, event: MeshEventDict) -> bool:
        """Apply one event. Returns False when it was ignored."""
        event_type = event.get("type", "")
        data = event.get("data")
        if not isinstance(data, dict):
            self._drop(f"event {event_type!r} without data")
            return False
        try:
            handler = self._handlers[EventType(event_type)]
        except (ValueError, KeyError):
            self._drop(f"unknown event type {event_type!r}")
            return False
        try:
            return handler(data)
        except MalformedEvent as exc:
            self._drop(f"malformed {event_type} event: {exc}")
            return False

    def dispatch_all(self, events: Iterable[MeshEventDict]) -> int:
        return sum(1 for event in events if self.dispatch(event))

    def _drop(self, reason: str) -> None:
        logger.debug("dropped: %s", reason, extra=MIRRORED)
        self.state.debug_log.log(f"[Dispatch] dropped {reason}")

    # -- handlers -----------------------------------------------------------

    def _on_node_update(self, data: dict[str, Any]) -> bool:
        self.state.ingest_node(node_from_dict(data))
        return True

    def _on_node_self(self, data: dict[str, Any]) -> bool:
        info = MyNodeInfo(
            num=_require_int(data, "num", "node_num", "id"),
            short_name=_text(data.get("short_name")),
            long_name=_text(data.get("long_name")),
            hardware_model=_text(data.get("hardware_model")),
            firmware_version=_text(data.get("firmware_version")),
        )
        self.state.set_my_node(info)
        return True

    def _on_channel_update(self, data: dict[str, Any]) -> bool:
        self.state.upsert_channel(
            ChannelInfo(
                index=_require_int(data, "index", "channel_index"),
                name=_text(data.get("name")),
                psk=_text(data.get("psk")),
                role=_text(data.get("role")) or "SECONDARY",
                uplink_enabled=bool(data.get("uplink_enabled", False)),
                downlink_enabled=bool(data.get("downlink_enabled", False)),
            )
        )
        return True

    def _on_message(self, data: dict[str, Any]) -> bool:
        message = message_from_dict(data)
        if message.is_encrypted and not self.show_encrypted:
            return False
        node = self.state.nodes.lookup(message.sender_id)
        if node is not None:
            # Sender display data is copied at arrival; views re-query for live data.
            message = replace(
                message,
                sender_name=message.sender_name or node.name,
                sender_short_name=message.sender_short_name or node.short_name,
                sender_color_hex=node.color_hex,
                sender_note=node.note,
            )
        self.state.ingest_message(message)
        return True

    def _on_delivery(self, data: dict[str, Any]) -> bool:
        request_id = _require_int(data, "request_id", "packet_id")
        if "error_reason" in data:
            state = DeliveryState.from_routing_error(
                RoutingError.from_code(_opt_int(data.get("error_reason")) or 0)
            )
        else:
            state = _delivery(data.get("state", DeliveryStatus.DELIVERED))

        # The firmware acks our own unicast packets locally when it accepts
        # them; for DMs only the destination's ack counts.
        from_id = _opt_int(data.get("from_id", data.get("from")))
        own = self.state.own_id
        if from_id is not None and from_id == own and state.status is DeliveryStatus.DELIVERED:
            target = self.state.find_message(request_id)
            if target is not None and target.is_direct:
                self.state.debug_log.log(
                    f"[ACK] Local ACK for requestId={request_id} "
                    "(ignoring, waiting for destination ACK)"
                )
                return False
        return self.state.update_delivery_state(request_id, state)

    def _on_reaction(self, data: dict[str, Any]) -> bool:
        emoji = _text(data.get("emoji"))
        if not emoji:
            raise MalformedEvent("missing emoji")
        reactor = _require_int(data, "from_id", "from", "reactor_id")
        target = _require_int(data, "target_packet_id", "reply_id")
        return self.state.apply_reaction(emoji, reactor, target)

    def _on_view_activated(self, data: dict[str, Any]) -> bool:
        try:
            tab = MainTab(_text(data.get("tab")) or MainTab.MESSAGES)
        except ValueError as exc:
            raise MalformedEvent(f"unknown tab {data.get('tab')!r}") from exc
        self.state.activate_view(
            tab,
            channel_index=_opt_int(data.get("channel_index")),
            dm_partner_id=_opt_int(data.get("dm_partner_id")),
        )
        return True

    def _on_connection_state(self, data: dict[str, Any]) -> bool:
        try:
            status = ConnectionStatus(_text(data.get("status")))
        except ValueError as exc:
            raise MalformedEvent(f"unknown status {data.get('status')!r}") from exc
        self.state.set_connection_status(status, _text(data.get("error")))
        if status is ConnectionStatus.DISCONNECTED:
            self.state.reset_for_disconnect()
        return True
