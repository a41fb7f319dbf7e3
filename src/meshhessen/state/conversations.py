"""Direct-message conversations, one per partner node."""

from __future__ import annotations

import logging
from dataclasses import replace

from meshhessen.core.merge import merge_delivery, merge_message
from meshhessen.core.models import Conversation, DeliveryState, Message

from .node_registry import NodeRegistry
from .packet_index import find_slot

logger = logging.getLogger(__name__)


class ConversationRegistry:
    """Per-partner DM histories.

    This is a separate identity space from the channel feed: packet ids
    are only deduplicated within one conversation, and lookups scan every
    conversation instead of sharing the feed's index.
    """

    def __init__(self, nodes: NodeRegistry) -> None:
        self._nodes = nodes
        self._conversations: dict[int, Conversation] = {}

    def ensure(self, partner_id: int) -> Conversation:
        existing = self._conversations.get(partner_id)
        if existing is not None:
            return existing
        name, color = self._resolve_display(partner_id)
        conversation = Conversation(partner_id=partner_id, node_name=name, color_hex=color)
        self._conversations[partner_id] = conversation
        logger.debug("new conversation with %s", name)
        return conversation

    def _resolve_display(self, partner_id: int) -> tuple[str, str]:
        node = self._nodes.lookup(partner_id)
        if node is None:
            return f"Node {partner_id}", ""
        return node.name or f"Node {partner_id}", node.color_hex

    def refresh_display(self, partner_id: int) -> bool:
        """Re-read name and color from the node registry."""
        conversation = self._conversations.get(partner_id)
        if conversation is None:
            return False
        conversation.node_name, conversation.color_hex = self._resolve_display(partner_id)
        return True

    def add_or_update(self, message: Message, own_id: int) -> bool:
        """Merge or append a DM. Returns True when a new row was appended."""
        partner_id = message.recipient_id if message.sender_id == own_id else message.sender_id
        conversation = self.ensure(partner_id)
        slot = find_slot(conversation.messages, message.packet_id)
        if slot is not None:
            conversation.messages[slot] = merge_message(conversation.messages[slot], message)
            appended = False
        else:
            conversation.messages.append(message.detached())
            appended = True
        if message.sender_id != own_id:
            conversation.has_unread = True
        return appended

    def merge_known(self, message: Message) -> bool:
        """Merge into whichever conversation already holds this packet id."""
        if message.packet_id is None:
            return False
        for conversation in self._conversations.values():
            slot = find_slot(conversation.messages, message.packet_id)
            if slot is not None:
                conversation.messages[slot] = merge_message(conversation.messages[slot], message)
                return True
        return False

    def find_by_packet_id(self, packet_id: int) -> Message | None:
        for conversation in self._conversations.values():
            slot = find_slot(conversation.messages, packet_id)
            if slot is not None:
                return conversation.messages[slot]
        return None

    def apply_reaction(self, emoji: str, reactor_id: int, target_packet_id: int) -> bool:
        found = False
        for conversation in self._conversations.values():
            slot = find_slot(conversation.messages, target_packet_id)
            if slot is not None:
                current = conversation.messages[slot]
                conversation.messages[slot] = current.with_reaction(emoji, reactor_id)
                found = True
        return found

    def apply_delivery_update(self, request_id: int, state: DeliveryState) -> bool:
        found = False
        for conversation in self._conversations.values():
            slot = find_slot(conversation.messages, request_id)
            if slot is not None:
                current = conversation.messages[slot]
                delivery = merge_delivery(current.delivery, state)
                conversation.messages[slot] = replace(current, delivery=delivery)
                found = True
        return found

    def clear(self, partner_id: int) -> bool:
        """Empty a conversation's history; the conversation itself stays."""
        conversation = self._conversations.get(partner_id)
        if conversation is None:
            return False
        conversation.messages.clear()
        conversation.has_unread = False
        return True

    def clear_all(self) -> None:
        self._conversations.clear()

    def mark_read(self, partner_id: int) -> None:
        conversation = self._conversations.get(partner_id)
        if conversation is not None:
            conversation.has_unread = False

    def get(self, partner_id: int) -> Conversation | None:
        return self._conversations.get(partner_id)

    def conversations(self) -> list[Conversation]:
        """All conversations, most recent activity first; empty ones last."""
        return sorted(
            self._conversations.values(),
            key=lambda c: (c.last_activity is not None, c.last_activity or 0),
            reverse=True,
        )

    def unread_count(self) -> int:
        return sum(1 for c in self._conversations.values() if c.has_unread)

    def __len__(self) -> int:
        return len(self._conversations)

    def __contains__(self, partner_id: object) -> bool:
        return partner_id in self._conversations
