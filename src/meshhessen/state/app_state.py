"""Central application state shared by every view.

All mutations must come from one thread (the event-dispatch loop). A
multi-threaded host has to guard the whole object with a single lock:
the feed, buckets, index and conversations only stay consistent as a
unit.
"""

from __future__ import annotations

import logging
from dataclasses import replace

from meshhessen.core.enums import ConnectionStatus, MainTab
from meshhessen.core.models import (
    ChannelInfo,
    Conversation,
    DeliveryState,
    Message,
    MyNodeInfo,
    Node,
)
from meshhessen.core.types import OwnPositionSource

from .conversations import ConversationRegistry
from .debug_log import MIRRORED, DebugLog
from .message_store import MessageStore
from .node_registry import NodeRegistry
from .unread import UnreadTracker

logger = logging.getLogger(__name__)


class AppState:
    def __init__(self, position_source: OwnPositionSource | None = None) -> None:
        self.nodes = NodeRegistry(position_source)
        self.messages = MessageStore()
        self.conversations = ConversationRegistry(self.nodes)
        self.unread = UnreadTracker()
        self.debug_log = DebugLog()

        self.connection_status = ConnectionStatus.DISCONNECTED
        self.connection_error = ""
        self.my_node: MyNodeInfo | None = None
        self.channels: dict[int, ChannelInfo] = {}
        self.active_alert: Message | None = None
        self.active_dm_partner: int | None = None

    @property
    def own_id(self) -> int | None:
        return self.my_node.num if self.my_node is not None else None

    def _diag(self, message: str) -> None:
        logger.debug(message, extra=MIRRORED)
        self.debug_log.log(message)

    # -- connection / identity ----------------------------------------------

    def set_connection_status(self, status: ConnectionStatus, error: str = "") -> None:
        self.connection_status = status
        self.connection_error = error if status is ConnectionStatus.ERROR else ""
        self._diag(f"[Connection] {status.value}{': ' + error if error else ''}")

    def set_my_node(self, info: MyNodeInfo) -> None:
        self.my_node = info
        self.nodes.set_own_node(info.num)
        self._diag(f"[Node] own node {info.node_id} ({info.long_name or info.short_name})")
        self._adopt_direct_messages()

    def _adopt_direct_messages(self) -> None:
        """Move feed rows that are DMs of the now-known own node into conversations."""
        own = self.own_id
        if own is None:
            return
        moved = self.messages.extract(self.is_dm)
        for message in moved:
            if message.sender_id != own:
                self.unread.discount(message.channel_index)
            self.conversations.add_or_update(message, own)
        if self.active_dm_partner is not None:
            self.conversations.mark_read(self.active_dm_partner)
        if moved:
            self._diag(f"[DM] moved {len(moved)} direct messages out of the channel feed")

    def set_own_position_source(self, source: OwnPositionSource | None) -> None:
        self.nodes.set_position_source(source)

    # -- nodes --------------------------------------------------------------

    def ingest_node(self, node: Node) -> Node:
        return self.nodes.upsert(node)

    def filtered_nodes(self, query: str | None = None) -> list[Node]:
        return self.nodes.filtered_list(query)

    # -- channels -----------------------------------------------------------

    def upsert_channel(self, channel: ChannelInfo) -> None:
        self.channels[channel.index] = channel

    def set_channels(self, channels: list[ChannelInfo]) -> None:
        self.channels = {ch.index: ch for ch in channels}

    def channel_list(self) -> list[ChannelInfo]:
        return [self.channels[i] for i in sorted(self.channels)]

    def clear_channel(self, channel_index: int) -> int:
        removed = self.messages.clear_channel(channel_index)
        self.unread.mark_read(channel_index)
        self._diag(f"[Channel] cleared channel {channel_index} ({removed} messages)")
        return removed

    # -- messages -----------------------------------------------------------

    def is_dm(self, message: Message) -> bool:
        """A direct message addressed to or sent by the own node."""
        own = self.own_id
        return (
            message.is_direct
            and own is not None
            and own in (message.sender_id, message.recipient_id)
        )

    def ingest_message(self, message: Message) -> bool:
        """Route a message to its conversation or channel. Returns True for a new row.

        Without a known own id, direct messages cannot be told apart from
        channel traffic; a packet id some conversation already holds still
        merges there, so a replay after a soft reset does not duplicate it.
        """
        own = self.own_id
        if own is not None and self.is_dm(message):
            inserted = self.conversations.add_or_update(message, own)
            if message.sender_id != own and self.active_dm_partner == message.sender_id:
                self.conversations.mark_read(message.sender_id)
        elif self.conversations.merge_known(message):
            inserted = False
        else:
            inserted = self.messages.append(message)
            if inserted:
                self.unread.on_channel_message(message.channel_index, message.sender_id, own)
        if inserted and message.has_alert_bell and message.sender_id != own:
            self.active_alert = message
        return inserted

    def append_outgoing(self, message: Message) -> bool:
        """Record a locally sent message, normally with a pending delivery state."""
        if message.delivery.is_none:
            message = replace(message, delivery=DeliveryState.pending())
        return self.ingest_message(message)

    def update_delivery_state(self, request_id: int, state: DeliveryState) -> bool:
        in_feed = self.messages.apply_delivery_update(request_id, state)
        in_dm = self.conversations.apply_delivery_update(request_id, state)
        if not (in_feed or in_dm):
            self._diag(f"[ACK] no message for requestId={request_id} ({state.status.value})")
        return in_feed or in_dm

    def apply_reaction(self, emoji: str, reactor_id: int, target_packet_id: int) -> bool:
        in_feed = self.messages.apply_reaction(emoji, reactor_id, target_packet_id)
        in_dm = self.conversations.apply_reaction(emoji, reactor_id, target_packet_id)
        if not (in_feed or in_dm):
            self._diag(f"[Reaction] {emoji} for unknown packet {target_packet_id}")
        return in_feed or in_dm

    def find_message(self, packet_id: int) -> Message | None:
        found = self.messages.find_by_packet_id(packet_id)
        if found is None:
            found = self.conversations.find_by_packet_id(packet_id)
        return found

    def dismiss_alert(self) -> None:
        self.active_alert = None

    # -- direct messages ----------------------------------------------------

    def ensure_conversation(self, partner_id: int) -> Conversation:
        return self.conversations.ensure(partner_id)

    def clear_conversation(self, partner_id: int) -> bool:
        return self.conversations.clear(partner_id)

    # -- views / unread -----------------------------------------------------

    def activate_view(
        self,
        tab: MainTab,
        channel_index: int | None = None,
        dm_partner_id: int | None = None,
    ) -> None:
        self.unread.activate_view(tab, channel_index)
        self.active_dm_partner = dm_partner_id
        if dm_partner_id is not None:
            self.conversations.mark_read(dm_partner_id)

    def channel_unread(self, channel_index: int) -> int:
        return self.unread.count(channel_index)

    @property
    def total_unread(self) -> int:
        return self.unread.total()

    @property
    def dm_unread_count(self) -> int:
        return self.unread.dm_unread_total(self.conversations.conversations())

    # -- reset --------------------------------------------------------------

    def reset_for_disconnect(self) -> None:
        """Drop transient connection state; nodes, channels and messages stay."""
        self.my_node = None
        self.connection_status = ConnectionStatus.DISCONNECTED
        self.connection_error = ""
        self.active_alert = None
        self.nodes.set_own_node(None)

    def reset(self) -> None:
        """Clear all in-memory state."""
        self.reset_for_disconnect()
        self.nodes.clear()
        self.messages.clear()
        self.conversations.clear_all()
        self.unread.clear()
        self.channels.clear()
        self.active_dm_partner = None
        self.debug_log.clear()
