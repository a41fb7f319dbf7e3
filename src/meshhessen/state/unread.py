from __future__ import annotations

from collections.abc import Iterable

from meshhessen.core.enums import MainTab
from meshhessen.core.models import Conversation


class UnreadTracker:
    """Per-channel unread counters gated on the active view.

    A channel counts as "being viewed" only while the Messages tab is
    active and showing that channel index.
    """

    def __init__(self) -> None:
        self._counts: dict[int, int] = {}
        self.active_tab: MainTab = MainTab.MESSAGES
        self.active_channel: int = 0

    def is_viewing(self, channel_index: int) -> bool:
        return self.active_tab is MainTab.MESSAGES and self.active_channel == channel_index

    def activate_view(self, tab: MainTab, channel_index: int | None = None) -> None:
        self.active_tab = tab
        if channel_index is not None:
            self.active_channel = channel_index
        if tab is MainTab.MESSAGES:
            self.mark_read(self.active_channel)

    def on_channel_message(self, channel_index: int, sender_id: int, own_id: int | None) -> bool:
        """Count a newly appended message. Returns True if the counter moved."""
        if sender_id == own_id or self.is_viewing(channel_index):
            return False
        self._counts[channel_index] = self._counts.get(channel_index, 0) + 1
        return True

    def mark_read(self, channel_index: int) -> None:
        self._counts.pop(channel_index, None)

    def discount(self, channel_index: int, amount: int = 1) -> None:
        """Take back counts for rows that left the channel; never below zero."""
        remaining = self._counts.get(channel_index, 0) - amount
        if remaining > 0:
            self._counts[channel_index] = remaining
        else:
            self._counts.pop(channel_index, None)

    def count(self, channel_index: int) -> int:
        return self._counts.get(channel_index, 0)

    def counts(self) -> dict[int, int]:
        return dict(self._counts)

    def total(self) -> int:
        return sum(self._counts.values())

    @staticmethod
    def dm_unread_total(conversations: Iterable[Conversation]) -> int:
        return sum(1 for c in conversations if c.has_unread)

    def clear(self) -> None:
        self._counts.clear()
        self.active_tab = MainTab.MESSAGES
        self.active_channel = 0
