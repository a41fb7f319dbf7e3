"""In-memory channel message storage: unified feed plus per-channel buckets."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import replace

from meshhessen.core.merge import merge_delivery, merge_message
from meshhessen.core.models import DeliveryState, Message

from .packet_index import PacketIndex, find_slot

logger = logging.getLogger(__name__)


class MessageStore:
    """Unified feed and per-channel buckets kept consistent by packet id.

    Every row of a bucket is also in the feed and vice versa. Records are
    replaced, never mutated, so the feed and bucket copies are swapped
    together on each update.
    """

    def __init__(self) -> None:
        self._feed: list[Message] = []
        self._buckets: dict[int, list[Message]] = {}
        self._index = PacketIndex()

    def append(self, message: Message) -> bool:
        """Insert or merge *message*. Returns True when a new row was added."""
        packet_id = message.packet_id
        if packet_id is not None:
            position = self._index.position(packet_id)
            if position is not None:
                existing = self._feed[position]
                merged = merge_message(existing, message)
                self._feed[position] = merged
                self._propagate(merged, previous_channel=existing.channel_index)
                return False

        message = message.detached()
        self._feed.append(message)
        self._buckets.setdefault(message.channel_index, []).append(message)
        if packet_id is not None:
            self._index.register(packet_id, len(self._feed) - 1)
        return True

    def _propagate(self, merged: Message, previous_channel: int) -> None:
        """Write *merged* into the bucket of its (possibly new) channel."""
        bucket = self._buckets.setdefault(merged.channel_index, [])
        slot = find_slot(bucket, merged.packet_id)
        if slot is not None:
            bucket[slot] = merged
            return
        # The merge moved the message to another channel.
        old_bucket = self._buckets.get(previous_channel, [])
        old_slot = find_slot(old_bucket, merged.packet_id)
        if old_slot is not None:
            del old_bucket[old_slot]
        logger.debug(
            "packet %s moved from channel %d to %d",
            merged.packet_id,
            previous_channel,
            merged.channel_index,
        )
        bucket.append(merged)

    def find_by_packet_id(self, packet_id: int) -> Message | None:
        position = self._index.position(packet_id)
        return self._feed[position] if position is not None else None

    def apply_reaction(self, emoji: str, reactor_id: int, target_packet_id: int) -> bool:
        """Add a reaction to the target message. Returns False if the target is unknown."""
        position = self._index.position(target_packet_id)
        if position is None:
            return False
        self._replace(position, self._feed[position].with_reaction(emoji, reactor_id))
        return True

    def apply_delivery_update(self, request_id: int, state: DeliveryState) -> bool:
        position = self._index.position(request_id)
        if position is None:
            return False
        current = self._feed[position]
        delivery = merge_delivery(current.delivery, state)
        if delivery != current.delivery:
            self._replace(position, replace(current, delivery=delivery))
        return True

    def _replace(self, position: int, updated: Message) -> None:
        self._feed[position] = updated
        bucket = self._buckets.get(updated.channel_index, [])
        slot = find_slot(bucket, updated.packet_id)
        if slot is not None:
            bucket[slot] = updated

    def clear_channel(self, channel_index: int) -> int:
        """Drop every message of a channel. Returns the number of feed rows removed."""
        self._buckets.pop(channel_index, None)
        before = len(self._feed)
        self._feed = [m for m in self._feed if m.channel_index != channel_index]
        self._index.rebuild(self._feed)
        return before - len(self._feed)

    def extract(self, predicate: Callable[[Message], bool]) -> list[Message]:
        """Remove and return every row matching *predicate*; the index is rebuilt."""
        taken = [m for m in self._feed if predicate(m)]
        if not taken:
            return []
        gone = {m.local_id for m in taken}
        self._feed = [m for m in self._feed if m.local_id not in gone]
        for index in list(self._buckets):
            kept = [m for m in self._buckets[index] if m.local_id not in gone]
            if kept:
                self._buckets[index] = kept
            else:
                del self._buckets[index]
        self._index.rebuild(self._feed)
        return taken

    def clear(self) -> None:
        self._feed.clear()
        self._buckets.clear()
        self._index.clear()

    def all_messages(self) -> list[Message]:
        return list(self._feed)

    def channel_messages(self, channel_index: int, limit: int = 0) -> list[Message]:
        bucket = self._buckets.get(channel_index, [])
        return bucket[-limit:] if limit > 0 else list(bucket)

    def channel_indices(self) -> list[int]:
        return sorted(self._buckets)

    def __len__(self) -> int:
        return len(self._feed)

